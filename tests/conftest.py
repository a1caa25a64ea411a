from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from src.app.domain.errors import ConflictError, UnauthorizedError
from src.app.domain.models import Role, VerifiedIdentity
from src.app.infra.identity.base import IdentityProvider
from src.app.infra.kv.memory import InMemoryKVStore


class StepClock:
    """Returns a later instant on every call so creation times never tie."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)) -> None:
        self.current = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value


class IdentityProviderStub(IdentityProvider):
    def __init__(self) -> None:
        self.tokens: dict[str, VerifiedIdentity] = {}
        self.created: list[tuple[str, str, Role]] = []
        self.users: dict[str, VerifiedIdentity] = {}
        self._next_id = 0

    def add_token(self, token: str, user_id: str, role: Role, name: str | None = None) -> VerifiedIdentity:
        identity = VerifiedIdentity(id=user_id, name=name, role=role)
        self.tokens[token] = identity
        return identity

    def verify(self, token: str) -> VerifiedIdentity:
        if token not in self.tokens:
            raise UnauthorizedError("Invalid token")
        return self.tokens[token]

    def create_user(self, email: str, password: str, name: str, role: Role) -> VerifiedIdentity:
        if email in self.users:
            raise ConflictError("This email address is already registered.")
        self._next_id += 1
        self.created.append((email, name, role))
        self.users[email] = VerifiedIdentity(id=f"user-{self._next_id}", email=email, name=name, role=role)
        return self.users[email]

    def find_user(self, email: str) -> VerifiedIdentity | None:
        return self.users.get(email)


@pytest.fixture
def store() -> InMemoryKVStore:
    return InMemoryKVStore()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def identity_provider() -> IdentityProviderStub:
    return IdentityProviderStub()


@pytest.fixture
def cook_a() -> VerifiedIdentity:
    return VerifiedIdentity(id="cook-a", name="Fatma", role=Role.COOK)


@pytest.fixture
def cook_b() -> VerifiedIdentity:
    return VerifiedIdentity(id="cook-b", name="Layla", role=Role.COOK)


@pytest.fixture
def customer() -> VerifiedIdentity:
    return VerifiedIdentity(id="customer-c", name="Ahmed", role=Role.CUSTOMER)
