# src/app/infra/identity/base.py
"""
Abstract identity provider. Issuing and verifying credentials happens
outside this service; we only consume the verified identity and role.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from src.app.domain.models import Role, VerifiedIdentity


class IdentityProvider(ABC):

    @abstractmethod
    def verify(self, token: str) -> VerifiedIdentity:
        """
        Resolve a bearer credential to the caller's identity.

        Raises:
            UnauthorizedError: if the credential is missing, invalid or expired
        """
        pass

    @abstractmethod
    def create_user(self, email: str, password: str, name: str, role: Role) -> VerifiedIdentity:
        """
        Register a new credential with the provider.

        Raises:
            ConflictError: if the provider already knows the email
            ValidationError: if the provider rejects the email or password
        """
        pass

    @abstractmethod
    def find_user(self, email: str) -> Optional[VerifiedIdentity]:
        """Look up a registered credential by email. Returns None if the provider has none."""
        pass
