# src/app/services/account_service.py
"""
Account directory.
Profiles for customers and cooks, keyed by the identity provider's user id.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Callable, Optional

from src.app.domain.errors import ConflictError, InternalError, NotFoundError, StoreError, ValidationError
from src.app.domain.models import Account, AccountProfile, CookStats, Role, now_utc
from src.app.infra.identity.base import IdentityProvider
from src.app.infra.kv import keys
from src.app.infra.kv.base import KeyValueStore

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6
DEFAULT_COOK_RATING = 5.0

_PROFILE_FIELDS = ("phone", "address", "avatar")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class AccountDirectory:
    """
    Responsibilities:
    - Register accounts (identity provider + profile record)
    - Look up and edit profiles
    - Rank cooks for the featured list
    """

    def __init__(
        self,
        store: KeyValueStore,
        identity_provider: Optional[IdentityProvider] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._store = store
        self._identity = identity_provider
        self._clock = clock

    def signup(self, email: str, password: str, name: str, role: Role | str) -> Account:
        """
        Register a credential with the identity provider and create the profile.

        Raises:
            ValidationError: missing or malformed fields
            ConflictError: the email is already registered
            InternalError: the credential exists but the profile could not be stored;
                signing up again with the same email finishes the account
        """
        normalized = normalize_email(email)
        clean_name = (name or "").strip()
        if not normalized or not password or not clean_name or not role:
            raise ValidationError(
                "Missing required fields: email, password, name, and userType are required"
            )
        role = self._parse_role(role)
        if not EMAIL_RE.match(normalized):
            raise ValidationError("Please provide a valid email address")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError("Password must be at least 6 characters long")
        if self._identity is None:
            raise RuntimeError("AccountDirectory.signup needs an identity provider")

        # held across the provider call so two signups for one email cannot both pass the scan
        with self._store.lock(keys.SIGNUP_LOCK):
            self._ensure_email_free(normalized)
            logger.info("Creating new user with identity provider: email=%s role=%s", normalized, role.value)
            try:
                identity = self._identity.create_user(normalized, password, clean_name, role)
            except ConflictError:
                identity = self._identity.find_user(normalized)
                if identity is None:
                    raise
                # credential left behind by an earlier signup whose profile write failed;
                # name and role come from the provider, not from this request
                logger.warning("Finishing interrupted signup: id=%s email=%s", identity.id, normalized)
                clean_name = (identity.name or clean_name).strip()
                role = identity.role

            try:
                return self.create_account(normalized, clean_name, role, identity.id)
            except StoreError as error:
                logger.error("Profile write failed after identity was created: id=%s error=%s", identity.id, error)
                raise InternalError(
                    "Your login was created but the profile could not be saved. Please sign up again to finish."
                ) from error

    def create_account(self, email: str, name: str, role: Role | str, auth_identity: str) -> Account:
        """
        Store the profile for an identity that already exists upstream.

        Raises:
            ConflictError: an account with the same email (case-insensitive) exists
        """
        normalized = normalize_email(email)
        role = self._parse_role(role)

        with self._store.lock(keys.SIGNUP_LOCK):
            self._ensure_email_free(normalized)

            profile = AccountProfile()
            if role == Role.COOK:
                profile.rating = DEFAULT_COOK_RATING
                profile.specialties = []
            account = Account(
                id=auth_identity,
                email=normalized,
                name=name.strip(),
                role=role,
                profile=profile,
                created_at=self._clock(),
            )
            self._store.set(keys.user_key(account.id), account.to_record())

        if role == Role.COOK:
            self._store.set(keys.cook_recipes_key(account.id), [])
            self._store.set(keys.cook_stats_key(account.id), CookStats(rating=DEFAULT_COOK_RATING).to_record())

        logger.info("Account stored: id=%s role=%s", account.id, role.value)
        return account

    def get_account(self, identity: str) -> Account:
        record = self._store.get(keys.user_key(identity))
        if not record:
            raise NotFoundError("User", identity)
        return Account.from_record(record)

    def find_account(self, identity: str) -> Optional[Account]:
        record = self._store.get(keys.user_key(identity))
        return Account.from_record(record) if record else None

    def update_profile(self, identity: str, changes: dict[str, Any]) -> Account:
        """Apply a partial edit of name, phone, address, avatar and (cooks only) specialties."""
        key = keys.user_key(identity)

        def _apply(record: Optional[dict[str, Any]]) -> dict[str, Any]:
            if not record:
                raise NotFoundError("User", identity)
            account = Account.from_record(record)
            if "name" in changes and changes["name"] is not None:
                new_name = str(changes["name"]).strip()
                if not new_name:
                    raise ValidationError("Name cannot be empty")
                account.name = new_name
            for field_name in _PROFILE_FIELDS:
                if field_name in changes and changes[field_name] is not None:
                    setattr(account.profile, field_name, str(changes[field_name]).strip())
            if changes.get("specialties") is not None:
                if not account.is_cook:
                    raise ValidationError("Only cooks can list specialties")
                account.profile.specialties = sorted({s.strip() for s in changes["specialties"] if s and s.strip()})
            return account.to_record()

        record = self._store.update(key, _apply)
        logger.info("Profile updated: id=%s fields=%s", identity, sorted(changes))
        return Account.from_record(record)

    def get_cook_stats(self, cook_id: str) -> CookStats:
        return CookStats.from_record(self._store.get(keys.cook_stats_key(cook_id)))

    def featured_cooks(self, limit: int = 6) -> list[tuple[Account, CookStats]]:
        """Cooks ranked by 0.7 * rating + 0.3 * total orders, best first."""
        cooks = [
            Account.from_record(record)
            for record in self._store.get_by_prefix(keys.USER_PREFIX)
            if record and record.get("userType") == Role.COOK.value
        ]
        ranked: list[tuple[float, Account, CookStats]] = []
        for cook in cooks:
            stats = self.get_cook_stats(cook.id)
            score = (cook.profile.rating or 0) * 0.7 + stats.total_orders * 0.3
            ranked.append((score, cook, stats))
        ranked.sort(key=lambda entry: (-entry[0], entry[1].id))
        return [(cook, stats) for _, cook, stats in ranked[:limit]]

    def _ensure_email_free(self, normalized_email: str) -> None:
        # full scan of user:*, fine at marketplace scale
        for record in self._store.get_by_prefix(keys.USER_PREFIX):
            if record and normalize_email(record.get("email", "")) == normalized_email:
                raise ConflictError(
                    "A user with this email address has already been registered. "
                    "Please sign in instead or use a different email address."
                )

    @staticmethod
    def _parse_role(role: Role | str) -> Role:
        try:
            return Role(role)
        except ValueError as exc:
            raise ValidationError('Invalid userType. Must be either "customer" or "cook"') from exc
