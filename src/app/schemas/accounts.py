# src/app/schemas/accounts.py
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

UserType = Literal["customer", "cook"]


class SignupRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=120)
    userType: UserType


class ProfileData(BaseModel):
    phone: str = ""
    address: str = ""
    avatar: str = ""
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    specialties: Optional[list[str]] = None


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    userType: UserType
    profile: ProfileData
    created_at: Optional[str] = None


class SignupResponse(BaseModel):
    success: bool = True
    message: str = "Account created successfully"
    user: UserResponse


class ProfileEnvelope(BaseModel):
    user: UserResponse


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    phone: Optional[str] = Field(default=None, max_length=40)
    address: Optional[str] = Field(default=None, max_length=300)
    avatar: Optional[str] = None
    specialties: Optional[list[str]] = None


class CookStatsData(BaseModel):
    totalSales: float = 0
    totalOrders: int = 0
    rating: float = 5.0
    reviewCount: int = 0


class FeaturedCook(UserResponse):
    stats: CookStatsData
