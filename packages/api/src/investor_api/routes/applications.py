# This project was developed with assistance from AI tools.
"""Application routes: submission, approval, status, transitions and signatures."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from investor_db import get_db
from investor_db.enums import LifecycleStage, RecordKind, UserRole
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..middleware.auth import CurrentUser, require_roles, require_transition_target
from ..schemas import Pagination
from ..schemas.application import (
    ApplicationCreate,
    ApplicationListResponse,
    ApplicationResponse,
    InvestmentResponse,
)
from ..schemas.signature import SignatureRequest, SignatureResult
from ..schemas.status import OnboardingStatusResponse
from ..schemas.transition import TransitionRequest, TransitionResult
from ..services import investment as investment_service
from ..services.status import get_onboarding_status
from ..services.transition import build_engine

router = APIRouter()


async def _require_visible(session: AsyncSession, user, application_id: uuid.UUID) -> None:
    """404 unless the caller may see the application."""
    app = await investment_service.get_application(session, user, application_id)
    if app is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found",
        )


@router.post(
    "/",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_application(
    body: ApplicationCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """Submit a new investment application for the current user."""
    app = await investment_service.create_application(
        session,
        user,
        body.investment_amount,
        body.annual_percentage,
        body.payment_frequency,
        body.term_months,
    )
    return ApplicationResponse.model_validate(app)


@router.get("/", response_model=ApplicationListResponse)
async def list_applications(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    filter_status: LifecycleStage | None = None,
) -> ApplicationListResponse:
    """List applications visible to the caller."""
    applications, total = await investment_service.list_applications(
        session, user, offset=offset, limit=limit, status=filter_status
    )
    return ApplicationListResponse(
        data=[ApplicationResponse.model_validate(a) for a in applications],
        pagination=Pagination(
            total=total,
            offset=offset,
            limit=limit,
            has_more=(offset + limit < total),
        ),
    )


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: uuid.UUID,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    app = await investment_service.get_application(session, user, application_id)
    if app is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found",
        )
    return ApplicationResponse.model_validate(app)


@router.get("/{application_id}/status", response_model=OnboardingStatusResponse)
async def get_status(
    application_id: uuid.UUID,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> OnboardingStatusResponse:
    """Onboarding stage, next step, progress and who acts next."""
    result = await get_onboarding_status(session, user, application_id)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found",
        )
    return result


@router.post(
    "/{application_id}/approve",
    response_model=InvestmentResponse,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def approve_application(
    application_id: uuid.UUID,
    session: AsyncSession = Depends(get_db),
) -> InvestmentResponse:
    """Create the investment for an application. Repeat calls return the same investment."""
    investment = await investment_service.approve_application(session, application_id)
    return InvestmentResponse.model_validate(investment)


@router.post("/{application_id}/transitions", response_model=TransitionResult)
async def transition_application(
    application_id: uuid.UUID,
    body: TransitionRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> TransitionResult:
    """Move an application (and its investment) to a new stage."""
    require_transition_target(user, body.target_status)
    await _require_visible(session, user, application_id)
    engine = build_engine(session)
    return await engine.apply_transition(
        application_id,
        body.target_status,
        kind=RecordKind.APPLICATION,
        metadata=body.metadata,
    )


@router.post("/{application_id}/signatures", response_model=SignatureResult)
async def record_signature(
    application_id: uuid.UUID,
    body: SignatureRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> SignatureResult:
    """Record a document signature; an investor signature advances the application."""
    await _require_visible(session, user, application_id)
    engine = build_engine(session)
    return await engine.record_signature(
        application_id,
        body.document_type,
        body.status,
        auto_complete=(
            settings.SIGNATURE_AUTO_COMPLETE if body.auto_complete is None else body.auto_complete
        ),
        notify_admin=(
            settings.SIGNATURE_NOTIFY_ADMIN if body.notify_admin is None else body.notify_admin
        ),
    )
