from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from src.app.deps import get_account_directory, get_account_lookup, get_current_user
from src.app.domain.errors import ForbiddenError
from src.app.domain.models import Account, VerifiedIdentity
from src.app.schemas.accounts import (
    ProfileEnvelope,
    ProfileUpdate,
    SignupRequest,
    SignupResponse,
    UserResponse,
)
from src.app.services.account_service import AccountDirectory

logger = logging.getLogger(__name__)

router = APIRouter(tags=["accounts"])


def user_response(account: Account) -> UserResponse:
    return UserResponse(**account.to_record())


@router.post("/signup", response_model=SignupResponse)
def signup(
    payload: SignupRequest,
    directory: AccountDirectory = Depends(get_account_directory),
) -> SignupResponse:
    account = directory.signup(payload.email, payload.password, payload.name, payload.userType)
    return SignupResponse(user=user_response(account))


@router.get("/profile/{user_id}", response_model=ProfileEnvelope)
def get_profile(
    user_id: str,
    user: VerifiedIdentity = Depends(get_current_user),
    directory: AccountDirectory = Depends(get_account_lookup),
) -> ProfileEnvelope:
    return ProfileEnvelope(user=user_response(directory.get_account(user_id)))


@router.put("/profile/{user_id}", response_model=ProfileEnvelope)
def update_profile(
    user_id: str,
    payload: ProfileUpdate,
    user: VerifiedIdentity = Depends(get_current_user),
    directory: AccountDirectory = Depends(get_account_lookup),
) -> ProfileEnvelope:
    if user.id != user_id:
        raise ForbiddenError("You can only edit your own profile")
    account = directory.update_profile(user_id, payload.model_dump(exclude_unset=True))
    return ProfileEnvelope(user=user_response(account))
