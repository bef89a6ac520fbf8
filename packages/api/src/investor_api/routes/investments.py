# This project was developed with assistance from AI tools.
"""Investment routes: lifecycle transitions and admin workflow actions."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from investor_db import get_db
from investor_db.enums import RecordKind, UserRole
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles, require_transition_target
from ..schemas.application import InvestmentResponse
from ..schemas.transition import TransitionRequest, TransitionResult
from ..services import investment as investment_service
from ..services.transition import build_engine

router = APIRouter()

_admin_only = [Depends(require_roles(UserRole.ADMIN))]


@router.get("/{investment_id}", response_model=InvestmentResponse)
async def get_investment(
    investment_id: uuid.UUID,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> InvestmentResponse:
    investment = await investment_service.get_investment(session, user, investment_id)
    if investment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Investment not found",
        )
    return InvestmentResponse.model_validate(investment)


@router.post("/{investment_id}/transitions", response_model=TransitionResult)
async def transition_investment(
    investment_id: uuid.UUID,
    body: TransitionRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> TransitionResult:
    """Move an investment (and its application) to a new stage."""
    require_transition_target(user, body.target_status)
    if await investment_service.get_investment(session, user, investment_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Investment not found",
        )
    engine = build_engine(session)
    return await engine.apply_transition(
        investment_id,
        body.target_status,
        kind=RecordKind.INVESTMENT,
        metadata=body.metadata,
    )


@router.post(
    "/{investment_id}/promissory-note",
    response_model=TransitionResult,
    dependencies=_admin_only,
)
async def send_promissory_note(
    investment_id: uuid.UUID,
    session: AsyncSession = Depends(get_db),
) -> TransitionResult:
    """Issue the promissory note for signature."""
    return await build_engine(session).send_promissory_note(investment_id)


@router.post(
    "/{investment_id}/fast-track",
    response_model=TransitionResult,
    dependencies=_admin_only,
)
async def fast_track(
    investment_id: uuid.UUID,
    session: AsyncSession = Depends(get_db),
) -> TransitionResult:
    """Verify note and funds together, moving straight to bank linkage."""
    return await build_engine(session).fast_track(investment_id)


@router.post(
    "/{investment_id}/activate",
    response_model=TransitionResult,
    dependencies=_admin_only,
)
async def activate_investment(
    investment_id: uuid.UUID,
    session: AsyncSession = Depends(get_db),
) -> TransitionResult:
    return await build_engine(session).activate_investment(investment_id)
