from __future__ import annotations

from fastapi import APIRouter, Depends

from src.app.config import settings
from src.app.deps import get_account_lookup
from src.app.schemas.accounts import CookStatsData, FeaturedCook
from src.app.services.account_service import AccountDirectory

router = APIRouter(tags=["cooks"])


@router.get("/featured-cooks", response_model=list[FeaturedCook])
def featured_cooks(
    directory: AccountDirectory = Depends(get_account_lookup),
) -> list[FeaturedCook]:
    return [
        FeaturedCook(**cook.to_record(), stats=CookStatsData(**stats.to_record()))
        for cook, stats in directory.featured_cooks(settings.FEATURED_COOKS_LIMIT)
    ]
