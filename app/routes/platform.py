"""
app/routes/platform.py
Platform endpoints: one-time initialization, admin updates, inspection.
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.routes.common import get_caller
from app.services.platform_service import initialize_platform, load_platform, update_platform
from core.constants import MAX_FEE_BPS, STORAGE_INT_MAX
from core.layout import encode_platform, platform_layout
from database.connection import get_session
from database.models import PlatformConfig

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/platform", tags=["platform"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class InitializeRequest(BaseModel):
    """Body for POST /platform/initialize. Every field is required."""
    house_wallet: str
    house_fee_bps: int = Field(..., ge=0, le=MAX_FEE_BPS)
    min_bet: int = Field(..., ge=0, le=STORAGE_INT_MAX)
    max_bet: int = Field(..., ge=0, le=STORAGE_INT_MAX)


class UpdateRequest(BaseModel):
    """Body for PATCH /platform. Omitted fields keep their value."""
    is_active: bool | None = None
    house_fee_bps: int | None = Field(None, ge=0, le=MAX_FEE_BPS)
    min_bet: int | None = Field(None, ge=0, le=STORAGE_INT_MAX)
    max_bet: int | None = Field(None, ge=0, le=STORAGE_INT_MAX)


class PlatformView(BaseModel):
    """Response for the platform endpoints."""
    admin: str
    house_wallet: str
    house_fee_bps: int
    min_bet: int
    max_bet: int
    total_bets: int
    total_volume: int
    is_active: bool


class LayoutResponse(BaseModel):
    """Raw account bytes, hex encoded."""
    size: int
    data: str


def _platform_to_view(p: PlatformConfig) -> PlatformView:
    return PlatformView(
        admin=p.admin,
        house_wallet=p.house_wallet,
        house_fee_bps=p.house_fee_bps,
        min_bet=p.min_bet,
        max_bet=p.max_bet,
        total_bets=p.total_bets,
        total_volume=p.total_volume,
        is_active=p.is_active,
    )


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/initialize", response_model=PlatformView, status_code=201)
async def initialize(
    body: InitializeRequest,
    caller: str = Depends(get_caller),
    session: AsyncSession = Depends(get_session),
) -> PlatformView:
    """Create the platform; the caller becomes admin."""
    platform = await initialize_platform(
        session,
        caller=caller,
        house_wallet=body.house_wallet,
        house_fee_bps=body.house_fee_bps,
        min_bet=body.min_bet,
        max_bet=body.max_bet,
    )
    return _platform_to_view(platform)


@router.get("", response_model=PlatformView)
async def get_platform(session: AsyncSession = Depends(get_session)) -> PlatformView:
    """Current configuration and running totals."""
    return _platform_to_view(await load_platform(session))


@router.patch("", response_model=PlatformView)
async def patch_platform(
    body: UpdateRequest,
    caller: str = Depends(get_caller),
    session: AsyncSession = Depends(get_session),
) -> PlatformView:
    """Admin: pause/resume betting or change fee and bet bounds."""
    platform = await update_platform(
        session,
        caller=caller,
        is_active=body.is_active,
        house_fee_bps=body.house_fee_bps,
        min_bet=body.min_bet,
        max_bet=body.max_bet,
    )
    return _platform_to_view(platform)


@router.get("/layout", response_model=LayoutResponse)
async def get_platform_layout(
    discriminator: bool = False,
    session: AsyncSession = Depends(get_session),
) -> LayoutResponse:
    """The platform record in its byte-exact account layout."""
    data = encode_platform(platform_layout(await load_platform(session)), with_discriminator=discriminator)
    return LayoutResponse(size=len(data), data=data.hex())
