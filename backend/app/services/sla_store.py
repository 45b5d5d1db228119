"""Store access for the SLA engine: shops, policy/status registries, cases, alerts.

Every sync accessor wraps SQLAlchemy failures in ``TransientStoreError`` so the
sweep can contain them per case or per shop. The select builders are shared
with the async API handlers, which execute them on an ``AsyncSession``.

Registries are returned as a ``ShopSnapshot``: loaded once per shop per run
and passed down explicitly. Nothing here caches across calls.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import TransientStoreError
from app.models.case_catalog import ShopCaseStatus, ShopCaseType
from app.models.notification import SLA_ALERT_TYPE, Notification
from app.models.repair_case import RepairCase
from app.models.shop import Shop
from app.rules.delay_calculator import (
    DEFAULT_ALERT_DAYS,
    CaseRef,
    SlaPolicy,
    StatusClass,
    StatusDefinition,
    default_policy,
)

logger = logging.getLogger(__name__)


# ─── Snapshot ───

@dataclass(frozen=True)
class ShopRef:
    id: uuid.UUID
    name: str


@dataclass(frozen=True)
class ShopSnapshot:
    """Policy and status registries of one shop, frozen for one run."""

    shop_id: uuid.UUID
    shop_name: str
    policies: dict[str, SlaPolicy] = field(default_factory=dict)
    statuses: dict[str, StatusDefinition] = field(default_factory=dict)
    default_alert_days: int = DEFAULT_ALERT_DAYS

    def policy_for(self, type_key: str) -> SlaPolicy:
        policy = self.policies.get(type_key)
        if policy is None:
            return default_policy(type_key, alert_days=self.default_alert_days)
        return policy

    def status_for(self, status_key: str) -> StatusDefinition | None:
        return self.statuses.get(status_key)

    def excluded_status_keys(self) -> frozenset[str]:
        """Status keys whose cases are closed and never swept."""
        return frozenset(
            key for key, status in self.statuses.items()
            if status.status_class is StatusClass.TERMINAL
        )


def policy_from_row(row: ShopCaseType, default_alert_days: int | None = None) -> SlaPolicy:
    if default_alert_days is None:
        default_alert_days = settings.SLA_DEFAULT_ALERT_DAYS
    alert_days = row.alert_days if row.alert_days is not None else default_alert_days
    return SlaPolicy(
        type_key=row.type_key,
        max_processing_days=row.max_processing_days,
        alert_days=alert_days,
    )


def status_from_row(row: ShopCaseStatus) -> StatusDefinition:
    return StatusDefinition.from_flags(
        status_key=row.status_key,
        label=row.label,
        pause_timer=bool(row.pause_timer),
        is_final_status=bool(row.is_final_status),
    )


def policies_from_rows(rows, default_alert_days: int | None = None) -> dict[str, SlaPolicy]:
    return {row.type_key: policy_from_row(row, default_alert_days) for row in rows}


def statuses_from_rows(rows) -> dict[str, StatusDefinition]:
    return {row.status_key: status_from_row(row) for row in rows}


def build_snapshot(
    shop: ShopRef,
    policies: dict[str, SlaPolicy],
    statuses: dict[str, StatusDefinition],
    legacy_final_statuses: frozenset[str] | None = None,
    default_alert_days: int | None = None,
) -> ShopSnapshot:
    """Assemble a snapshot from the two registries.

    Legacy final statuses (shops whose catalog predates ``is_final_status``)
    are classified TERMINAL whether or not they appear in the catalog, so the
    sweep's exclusion set and the timeline's terminal marker agree.
    """
    if legacy_final_statuses is None:
        legacy_final_statuses = settings.legacy_final_statuses
    if default_alert_days is None:
        default_alert_days = settings.SLA_DEFAULT_ALERT_DAYS

    statuses = dict(statuses)
    for key in legacy_final_statuses:
        existing = statuses.get(key)
        if existing is None:
            statuses[key] = StatusDefinition(key, key, StatusClass.TERMINAL)
        elif existing.status_class is not StatusClass.TERMINAL:
            logger.debug("shop %s: legacy status %r forced terminal", shop.id, key)
            statuses[key] = StatusDefinition(key, existing.label, StatusClass.TERMINAL)

    return ShopSnapshot(
        shop_id=shop.id,
        shop_name=shop.name,
        policies=policies,
        statuses=statuses,
        default_alert_days=default_alert_days,
    )


# ─── Select builders (shared by sync sweep and async API) ───

def alerting_shops_query() -> Select:
    return select(Shop.id, Shop.name).where(Shop.sla_alerts_enabled.is_(True)).order_by(Shop.name)


def policies_query(shop_id: uuid.UUID) -> Select:
    return select(ShopCaseType).where(
        ShopCaseType.shop_id == shop_id,
        ShopCaseType.is_active.is_(True),
    )


def stats_excluded_types_query(shop_id: uuid.UUID) -> Select:
    return select(ShopCaseType.type_key).where(
        ShopCaseType.shop_id == shop_id,
        ShopCaseType.is_active.is_(True),
        ShopCaseType.exclude_from_stats.is_(True),
    )


def statuses_query(shop_id: uuid.UUID) -> Select:
    return select(ShopCaseStatus).where(
        ShopCaseStatus.shop_id == shop_id,
        ShopCaseStatus.is_active.is_(True),
    )


def active_cases_query(shop_id: uuid.UUID, excluded_status_keys: frozenset[str]) -> Select:
    stmt = select(RepairCase).where(RepairCase.shop_id == shop_id)
    if excluded_status_keys:
        stmt = stmt.where(RepairCase.status_key.not_in(sorted(excluded_status_keys)))
    return stmt.order_by(RepairCase.created_at)


def utc_day_bounds(now: datetime) -> tuple[datetime, datetime]:
    """[00:00 UTC, next 00:00 UTC) of the calendar day containing ``now``."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    start = now.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def unread_alert_today_query(case_id: uuid.UUID, now: datetime) -> Select:
    day_start, day_end = utc_day_bounds(now)
    return select(func.count(Notification.id)).where(
        Notification.case_id == case_id,
        Notification.type == SLA_ALERT_TYPE,
        Notification.read.is_(False),
        Notification.created_at >= day_start,
        Notification.created_at < day_end,
    )


# ─── Sync accessors ───

def list_alerting_shops(db: Session) -> list[ShopRef]:
    try:
        rows = db.execute(alerting_shops_query()).all()
    except SQLAlchemyError as exc:
        raise TransientStoreError("list_alerting_shops", str(exc)) from exc
    return [ShopRef(id=row.id, name=row.name) for row in rows]


def load_policies(db: Session, shop_id: uuid.UUID) -> dict[str, SlaPolicy]:
    try:
        rows = db.execute(policies_query(shop_id)).scalars().all()
    except SQLAlchemyError as exc:
        raise TransientStoreError("load_policies", str(exc)) from exc
    return policies_from_rows(rows)


def load_statuses(db: Session, shop_id: uuid.UUID) -> dict[str, StatusDefinition]:
    try:
        rows = db.execute(statuses_query(shop_id)).scalars().all()
    except SQLAlchemyError as exc:
        raise TransientStoreError("load_statuses", str(exc)) from exc
    return statuses_from_rows(rows)


def load_shop_snapshot(db: Session, shop: ShopRef) -> ShopSnapshot:
    """One batch fetch for policies, one for statuses."""
    return build_snapshot(shop, load_policies(db, shop.id), load_statuses(db, shop.id))


async def load_shop_snapshot_async(db: AsyncSession, shop: ShopRef) -> ShopSnapshot:
    """Same snapshot as ``load_shop_snapshot``, for request handlers."""
    type_rows = (await db.execute(policies_query(shop.id))).scalars().all()
    status_rows = (await db.execute(statuses_query(shop.id))).scalars().all()
    return build_snapshot(shop, policies_from_rows(type_rows), statuses_from_rows(status_rows))


def list_active_cases(
    db: Session, shop_id: uuid.UUID, excluded_status_keys: frozenset[str]
) -> list[CaseRef]:
    try:
        rows = db.execute(active_cases_query(shop_id, excluded_status_keys)).scalars().all()
    except SQLAlchemyError as exc:
        raise TransientStoreError("list_active_cases", str(exc)) from exc
    return [CaseRef.from_row(row) for row in rows]


def has_unread_alert_today(db: Session, case_id: uuid.UUID, now: datetime) -> bool:
    try:
        count = db.execute(unread_alert_today_query(case_id, now)).scalar()
    except SQLAlchemyError as exc:
        raise TransientStoreError("has_unread_alert_today", str(exc)) from exc
    return bool(count)


def insert_alert(
    db: Session,
    shop_id: uuid.UUID,
    case_id: uuid.UUID,
    title: str,
    message: str,
    now: datetime,
) -> Notification:
    """Insert and commit one unread sla_alert. Each insert is its own transaction."""
    notification = Notification(
        shop_id=shop_id,
        case_id=case_id,
        type=SLA_ALERT_TYPE,
        title=title,
        message=message,
        read=False,
        created_at=now,
    )
    try:
        db.add(notification)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise TransientStoreError("insert_alert", str(exc)) from exc
    return notification
