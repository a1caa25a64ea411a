# src/app/schemas/recipes.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, model_validator


class RecipeCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=160)
    description: str = Field(default="", max_length=2000)
    price: float = Field(..., ge=0, allow_inf_nan=False)
    # the cook app sends `cuisine`, older clients `category`
    category: Optional[str] = None
    cuisine: Optional[str] = None
    prepTime: int = Field(..., gt=0)
    servings: int = Field(..., gt=0)
    ingredients: list[str] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    image: str = ""

    @model_validator(mode="after")
    def _require_category(self) -> "RecipeCreate":
        if not (self.cuisine or self.category):
            raise ValueError("category (or cuisine) is required")
        return self

    @property
    def resolved_category(self) -> str:
        return self.cuisine or self.category or ""


class RecipeUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=160)
    description: Optional[str] = Field(default=None, max_length=2000)
    price: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    category: Optional[str] = None
    cuisine: Optional[str] = None
    prepTime: Optional[int] = Field(default=None, gt=0)
    servings: Optional[int] = Field(default=None, gt=0)
    ingredients: Optional[list[str]] = None
    instructions: Optional[list[str]] = None
    image: Optional[str] = None
    available: Optional[bool] = None

    def changes(self) -> dict:
        data = self.model_dump(exclude_unset=True, exclude={"cuisine"})
        if self.cuisine is not None:
            data["category"] = self.cuisine
        return data


class RecipeResponse(BaseModel):
    id: str
    title: str
    description: str = ""
    price: float
    category: str
    prepTime: int
    servings: int
    ingredients: list[str] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    image: str = ""
    cookId: str
    cookName: str
    rating: float = 5.0
    totalOrders: int = 0
    available: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class RecipeEnvelope(BaseModel):
    success: bool = True
    recipe: RecipeResponse
