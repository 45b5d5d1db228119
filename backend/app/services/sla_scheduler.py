"""SLA alert sweep over every shop with delay alerts enabled.

For each shop: snapshot the policy/status registries, load the cases whose
status is not terminal, assess each one and raise a deduplicated alert when
it is overdue or inside its warning window.

Shops run in a bounded thread pool, each worker on its own session. Failures
are contained per case, then per shop; only an unreadable shop list aborts
the run.
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import SystemicFailure, TransientStoreError
from app.rules.delay_calculator import BUILTIN_MAX_PROCESSING_DAYS, CaseRef, assess, should_alert
from app.services import sla_notifications, sla_store
from app.services.sla_store import ShopRef, ShopSnapshot

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]

# Per-case outcomes
CREATED = "created"
DUPLICATE = "duplicate"
PAUSED = "paused"
NOT_DUE = "not_due"


@dataclass
class ShopRunStats:
    shop_id: str
    shop_name: str
    cases_checked: int = 0
    alerts_created: int = 0
    skipped_paused: int = 0
    skipped_duplicates: int = 0
    cases_failed: int = 0
    timed_out: bool = False
    error: str | None = None


@dataclass
class SlaRunResult:
    shops_checked: int = 0
    alerts_created: int = 0
    shops_failed: int = 0
    cases_failed: int = 0
    skipped_duplicates: int = 0
    skipped_paused: int = 0
    shops_timed_out: int = 0
    per_shop: list[ShopRunStats] = field(default_factory=list)

    def add(self, stats: ShopRunStats) -> None:
        self.per_shop.append(stats)
        self.alerts_created += stats.alerts_created
        self.cases_failed += stats.cases_failed
        self.skipped_duplicates += stats.skipped_duplicates
        self.skipped_paused += stats.skipped_paused
        if stats.error is not None:
            self.shops_failed += 1
        if stats.timed_out:
            self.shops_timed_out += 1

    def as_dict(self) -> dict:
        return asdict(self)


def check_case(db: Session, snapshot: ShopSnapshot, case: CaseRef, now: datetime) -> str:
    """Assess one case and raise its alert if due. Returns the outcome tag."""
    policy = snapshot.policy_for(case.type_key)
    if policy.is_default:
        if case.type_key in BUILTIN_MAX_PROCESSING_DAYS:
            logger.debug(
                "shop %s has no policy for type %r; using %d-day default",
                snapshot.shop_id, case.type_key, policy.max_processing_days,
            )
        else:
            logger.warning(
                "case %s references unknown type %r; using %d-day default",
                case.id, case.type_key, policy.max_processing_days,
            )

    status = snapshot.status_for(case.status_key)
    if status is None:
        logger.warning(
            "case %s references unknown status %r; treating it as active",
            case.id, case.status_key,
        )

    assessment = assess(case, policy, status, now)
    if assessment.is_paused:
        return PAUSED
    if not should_alert(assessment, policy.alert_days):
        return NOT_DUE

    notification = sla_notifications.ensure_alert(db, case, assessment, now)
    return DUPLICATE if notification is None else CREATED


def check_shop(
    session_factory: SessionFactory,
    shop: ShopRef,
    now: datetime,
    deadline: float | None = None,
) -> ShopRunStats:
    """Sweep one shop. Never raises for store failures; they land in the stats."""
    stats = ShopRunStats(shop_id=str(shop.id), shop_name=shop.name)
    if deadline is not None and time.monotonic() > deadline:
        stats.timed_out = True
        logger.warning("check_shop: soft timeout reached before shop %s started", shop.name)
        return stats

    with session_factory() as db:
        try:
            snapshot = sla_store.load_shop_snapshot(db, shop)
            excluded = snapshot.excluded_status_keys()
            cases = sla_store.list_active_cases(db, shop.id, excluded)
        except TransientStoreError as exc:
            logger.error("check_shop: skipping shop %s (%s): %s", shop.name, shop.id, exc)
            stats.error = str(exc)
            return stats

        logger.info(
            "check_shop: shop %s has %d active case(s); excluded statuses: %s",
            shop.name, len(cases), ", ".join(sorted(excluded)) or "none",
        )

        for case in cases:
            if deadline is not None and time.monotonic() > deadline:
                stats.timed_out = True
                logger.warning(
                    "check_shop: soft timeout reached for shop %s after %d case(s)",
                    shop.name, stats.cases_checked,
                )
                break

            stats.cases_checked += 1
            try:
                outcome = check_case(db, snapshot, case, now)
            except TransientStoreError as exc:
                db.rollback()
                stats.cases_failed += 1
                logger.error("check_shop: case %s skipped: %s", case.id, exc)
                continue
            except Exception:
                db.rollback()
                stats.cases_failed += 1
                logger.exception("check_shop: unexpected error on case %s", case.id)
                continue

            if outcome == CREATED:
                stats.alerts_created += 1
            elif outcome == DUPLICATE:
                stats.skipped_duplicates += 1
            elif outcome == PAUSED:
                stats.skipped_paused += 1

    return stats


def run_sla_check(
    session_factory: SessionFactory,
    now: datetime | None = None,
    max_workers: int | None = None,
    timeout_seconds: float | None = None,
) -> SlaRunResult:
    """Run one full SLA sweep.

    Args:
        session_factory: Zero-arg callable returning a sync Session usable as a
            context manager. Called once for the shop list and once per shop.
        now: Evaluation instant shared by every case in the run (default: now, UTC).
        max_workers: Shop-level parallelism (default SLA_SCHEDULER_MAX_WORKERS).
        timeout_seconds: Soft limit after which remaining cases are skipped
            (default SLA_RUN_SOFT_TIMEOUT_SECONDS; 0 disables).

    Raises:
        SystemicFailure: the list of alerting shops could not be loaded.
    """
    now = now or datetime.now(timezone.utc)
    if max_workers is None:
        max_workers = settings.SLA_SCHEDULER_MAX_WORKERS
    if timeout_seconds is None:
        timeout_seconds = settings.SLA_RUN_SOFT_TIMEOUT_SECONDS

    started = time.monotonic()
    deadline = started + timeout_seconds if timeout_seconds else None
    logger.info("run_sla_check: starting SLA sweep at %s", now.isoformat())

    try:
        with session_factory() as db:
            shops = sla_store.list_alerting_shops(db)
    except Exception as exc:
        logger.exception("run_sla_check: could not load alerting shops")
        raise SystemicFailure(f"could not load alerting shops: {exc}") from exc

    result = SlaRunResult(shops_checked=len(shops))
    if not shops:
        logger.info("run_sla_check: no shops with delay alerts enabled")
        return result

    workers = max(1, min(max_workers, len(shops)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sla-shop") as pool:
        futures = {
            pool.submit(check_shop, session_factory, shop, now, deadline): shop
            for shop in shops
        }
        for future in as_completed(futures):
            shop = futures[future]
            try:
                stats = future.result()
            except Exception as exc:
                logger.exception("run_sla_check: shop %s (%s) failed", shop.name, shop.id)
                stats = ShopRunStats(shop_id=str(shop.id), shop_name=shop.name, error=str(exc))
            result.add(stats)

    # Deterministic order for callers and logs
    result.per_shop.sort(key=lambda s: (s.shop_name, s.shop_id))

    logger.info(
        "run_sla_check: complete in %.2fs — shops=%d, alerts=%d, dedup_skipped=%d, "
        "paused_skipped=%d, shops_failed=%d, cases_failed=%d, shops_timed_out=%d",
        time.monotonic() - started,
        result.shops_checked, result.alerts_created, result.skipped_duplicates,
        result.skipped_paused, result.shops_failed, result.cases_failed,
        result.shops_timed_out,
    )
    return result
