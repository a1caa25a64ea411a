# src/app/infra/identity/supabase_identity.py
from __future__ import annotations

import logging
from typing import Any, Optional

from supabase import Client

from src.app.domain.errors import ConflictError, InternalError, UnauthorizedError, ValidationError
from src.app.domain.models import Role, VerifiedIdentity, now_utc
from src.app.infra.identity.base import IdentityProvider
from src.app.infra.supabase_client import get_supabase_client

logger = logging.getLogger(__name__)

_LIST_PAGE_SIZE = 200


def _identity_from_user(user: Any) -> VerifiedIdentity:
    meta = getattr(user, "user_metadata", None) or {}
    if not isinstance(meta, dict):
        meta = {}
    role_value = meta.get("userType")
    role = Role.COOK if role_value == Role.COOK.value else Role.CUSTOMER
    return VerifiedIdentity(
        id=str(user.id),
        email=getattr(user, "email", None),
        name=meta.get("name"),
        role=role,
    )


class SupabaseIdentityProvider(IdentityProvider):
    """Supabase Auth (GoTrue) with the service-role key."""

    def __init__(self, client: Client | None = None):
        self._client = client or get_supabase_client()

    def verify(self, token: str) -> VerifiedIdentity:
        if not token:
            raise UnauthorizedError("Authorization required")
        try:
            res = self._client.auth.get_user(token)
        except Exception as error:
            logger.info("Token rejected by identity provider: %s", error)
            raise UnauthorizedError("Invalid/expired token") from error

        user = getattr(res, "user", None) if res else None
        if not user or not getattr(user, "id", None):
            raise UnauthorizedError("Invalid token")
        return _identity_from_user(user)

    def create_user(self, email: str, password: str, name: str, role: Role) -> VerifiedIdentity:
        try:
            res = self._client.auth.admin.create_user(
                {
                    "email": email,
                    "password": password,
                    "user_metadata": {
                        "name": name,
                        "userType": role.value,
                        "created_at": now_utc().isoformat(),
                    },
                    # no mail server configured, confirm right away
                    "email_confirm": True,
                }
            )
        except Exception as error:
            message = str(error)
            logger.info("Identity provider signup error: %s", message)
            if "already registered" in message or "already been registered" in message:
                raise ConflictError(
                    "This email address is already registered. Please sign in instead or use a different email address."
                ) from error
            if "Password" in message or "password" in message:
                raise ValidationError("Password must be at least 6 characters long.") from error
            if "Unable to validate email address" in message:
                raise ValidationError("Please provide a valid email address.") from error
            raise ValidationError(f"Account creation failed: {message}") from error

        user = getattr(res, "user", None) if res else None
        if not user:
            raise InternalError("Account creation failed - no user data returned")
        return _identity_from_user(user)

    def find_user(self, email: str) -> Optional[VerifiedIdentity]:
        wanted = (email or "").strip().lower()
        page = 1
        while True:
            try:
                users = self._client.auth.admin.list_users(page=page, per_page=_LIST_PAGE_SIZE)
            except Exception as error:
                logger.error("Identity provider user lookup failed: %s", error)
                raise InternalError("Could not look up the existing account") from error
            for user in users or []:
                if (getattr(user, "email", None) or "").lower() == wanted:
                    return _identity_from_user(user)
            if not users or len(users) < _LIST_PAGE_SIZE:
                return None
            page += 1
