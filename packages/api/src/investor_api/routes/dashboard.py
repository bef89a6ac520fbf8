# This project was developed with assistance from AI tools.
"""Investor dashboard route."""

from datetime import date

from fastapi import APIRouter, Depends
from investor_db import get_db
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser
from ..schemas.dashboard import DashboardOverview
from ..services.dashboard import build_overview

router = APIRouter()


@router.get("/overview", response_model=DashboardOverview)
async def get_overview(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    as_of: date | None = None,
) -> DashboardOverview:
    """Figures, activity feed and documents for the current user."""
    return await build_overview(session, user.user_id, as_of=as_of)
