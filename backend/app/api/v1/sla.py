"""SLA engine API: sweep trigger, per-case delay/timeline, shop summary, alerts."""
import logging
import uuid
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import SystemicFailure
from app.core.limiter import limiter
from app.db.session import get_session, get_sync_session_factory
from app.models.notification import SLA_ALERT_TYPE, Notification
from app.models.repair_case import RepairCase
from app.models.shop import Shop
from app.rules.delay_calculator import CaseRef, assess, should_alert
from app.schemas.sla import (
    DelayAssessmentOut,
    ShopSlaSummary,
    SlaAlertListResponse,
    SlaAlertOut,
    SlaCheckResponse,
    TerminalMarkerOut,
    TimelineMarkerOut,
    TimelineOut,
)
from app.services import sla_store
from app.services.sla_scheduler import run_sla_check
from app.services.sla_store import ShopRef
from app.services.timeline import render_timeline

logger = logging.getLogger(__name__)

router = APIRouter()


# ─── Helpers ───

async def _get_case_or_404(db: AsyncSession, case_id: uuid.UUID) -> RepairCase:
    result = await db.execute(select(RepairCase).where(RepairCase.id == case_id))
    case = result.scalar_one_or_none()
    if case is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Case not found.")
    return case


async def _get_shop_or_404(db: AsyncSession, shop_id: uuid.UUID) -> Shop:
    result = await db.execute(select(Shop).where(Shop.id == shop_id))
    shop = result.scalar_one_or_none()
    if shop is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shop not found.")
    return shop


# ─── POST /sla/check ───

@router.post(
    "/check",
    response_model=SlaCheckResponse,
    summary="Run the SLA alert sweep over all alerting shops",
)
@limiter.limit(settings.SLA_CHECK_RATE_LIMIT)
async def trigger_sla_check(request: Request):
    try:
        result = await run_in_threadpool(run_sla_check, get_sync_session_factory())
    except SystemicFailure as exc:
        logger.error("trigger_sla_check: sweep aborted: %s", exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    return SlaCheckResponse(
        success=True,
        shops_checked=result.shops_checked,
        alerts_created=result.alerts_created,
    )


# ─── GET /sla/cases/{case_id}/delay ───

@router.get(
    "/cases/{case_id}/delay",
    response_model=DelayAssessmentOut,
    summary="Point-in-time delay assessment for one case",
)
async def get_case_delay(
    case_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
):
    row = await _get_case_or_404(db, case_id)
    case = CaseRef.from_row(row)
    snapshot = await sla_store.load_shop_snapshot_async(db, ShopRef(id=case.shop_id, name=""))
    policy = snapshot.policy_for(case.type_key)
    assessment = assess(case, policy, snapshot.status_for(case.status_key), datetime.now(timezone.utc))

    return DelayAssessmentOut(
        case_id=case.id,
        case_number=case.case_number,
        type_key=case.type_key,
        status_key=case.status_key,
        created_at=case.created_at,
        max_processing_days=policy.max_processing_days,
        alert_days=policy.alert_days,
        elapsed_days=round(assessment.elapsed_days, 4),
        remaining_days=round(assessment.remaining_days, 4),
        whole_days_remaining=assessment.whole_days_remaining,
        current_day_index=assessment.current_day_index,
        progress_percent=round(assessment.progress_percent, 2),
        status_class=assessment.status_class.value,
        is_paused=assessment.is_paused,
        is_overdue=assessment.is_overdue,
        should_alert=should_alert(assessment, policy.alert_days),
    )


# ─── GET /sla/cases/{case_id}/timeline ───

@router.get(
    "/cases/{case_id}/timeline",
    response_model=TimelineOut,
    summary="Processing-day markers for one case",
)
async def get_case_timeline(
    case_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
):
    row = await _get_case_or_404(db, case_id)
    case = CaseRef.from_row(row)
    snapshot = await sla_store.load_shop_snapshot_async(db, ShopRef(id=case.shop_id, name=""))
    timeline = render_timeline(
        case,
        snapshot.policy_for(case.type_key),
        snapshot.status_for(case.status_key),
        datetime.now(timezone.utc),
    )

    assessment = timeline.assessment
    return TimelineOut(
        case_id=case.id,
        max_processing_days=assessment.max_processing_days,
        current_day=timeline.current_day,
        whole_days_remaining=assessment.whole_days_remaining,
        progress_percent=round(assessment.progress_percent, 2),
        is_overdue=assessment.is_overdue,
        is_paused=assessment.is_paused,
        markers=[TimelineMarkerOut.model_validate(m) for m in timeline.markers],
        terminal=TerminalMarkerOut.model_validate(timeline.terminal) if timeline.terminal else None,
    )


# ─── GET /sla/shops/{shop_id}/summary ───

@router.get(
    "/shops/{shop_id}/summary",
    response_model=ShopSlaSummary,
    summary="Overdue, approaching and paused case counts for a shop",
)
async def get_shop_sla_summary(
    shop_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
):
    """Case types flagged ``exclude_from_stats`` are left out of every count."""
    now = datetime.now(timezone.utc)
    shop = await _get_shop_or_404(db, shop_id)
    snapshot = await sla_store.load_shop_snapshot_async(db, ShopRef(id=shop.id, name=shop.name))
    stats_excluded = set((await db.execute(sla_store.stats_excluded_types_query(shop_id))).scalars().all())
    rows = (
        await db.execute(sla_store.active_cases_query(shop_id, snapshot.excluded_status_keys()))
    ).scalars().all()

    running = paused = approaching = overdue = 0
    for row in rows:
        case = CaseRef.from_row(row)
        if case.type_key in stats_excluded:
            continue
        policy = snapshot.policy_for(case.type_key)
        assessment = assess(case, policy, snapshot.status_for(case.status_key), now)
        if assessment.is_paused:
            paused += 1
            continue
        running += 1
        if assessment.is_overdue:
            overdue += 1
        elif should_alert(assessment, policy.alert_days):
            approaching += 1

    return ShopSlaSummary(
        shop_id=shop_id,
        active_count=running,
        paused_count=paused,
        approaching_count=approaching,
        overdue_count=overdue,
        late_rate=round(overdue / running, 4) if running > 0 else 0.0,
    )


# ─── GET /sla/shops/{shop_id}/alerts ───

@router.get(
    "/shops/{shop_id}/alerts",
    response_model=SlaAlertListResponse,
    summary="List SLA alert notifications for a shop",
)
async def list_shop_alerts(
    shop_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
    unread_only: bool = Query(default=True, description="Only return unread alerts"),
    skip: int = Query(default=0, ge=0, description="Number of records to skip"),
    limit: int = Query(default=50, ge=1, le=500, description="Number of records to return"),
):
    filters = [Notification.shop_id == shop_id, Notification.type == SLA_ALERT_TYPE]
    if unread_only:
        filters.append(Notification.read.is_(False))

    total = (await db.execute(select(func.count(Notification.id)).where(*filters))).scalar_one()
    items = (
        await db.execute(
            select(Notification)
            .where(*filters)
            .order_by(Notification.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
    ).scalars().all()

    return SlaAlertListResponse(
        items=[SlaAlertOut.model_validate(n) for n in items],
        total=total,
    )
