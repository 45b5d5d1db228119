"""Seed the built-in case types and statuses into every shop's catalog."""
import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import AsyncSessionLocal
from app.models.case_catalog import ShopCaseStatus, ShopCaseType
from app.models.shop import Shop
from app.rules.delay_calculator import BUILTIN_MAX_PROCESSING_DAYS

logger = logging.getLogger(__name__)

# Built-in case types: (type_key, label)
DEFAULT_CASE_TYPES = [
    ("client", "Customer repair"),
    ("external", "External repair"),
    ("internal", "Internal repair"),
]

# Default statuses: (status_key, label, pause_timer, is_final_status)
DEFAULT_CASE_STATUSES = [
    ("pending", "Pending", False, False),
    ("in_progress", "In progress", False, False),
    ("testing", "Testing", False, False),
    ("parts_ordered", "Parts ordered", True, False),
    ("parts_received", "Parts received", False, False),
    ("ready", "Ready for pickup", False, True),
    ("delivered", "Delivered", False, True),
    ("cancelled", "Cancelled", False, True),
]


async def seed_shop_catalog(db: AsyncSession, shop_id) -> None:
    """Insert missing built-in types and statuses for one shop; never overwrites."""
    existing_types = set(
        (await db.execute(select(ShopCaseType.type_key).where(ShopCaseType.shop_id == shop_id))).scalars().all()
    )
    for type_key, label in DEFAULT_CASE_TYPES:
        if type_key in existing_types:
            logger.info("Case type already exists for shop %s: %s, skipping", shop_id, type_key)
            continue
        db.add(ShopCaseType(
            shop_id=shop_id,
            type_key=type_key,
            label=label,
            max_processing_days=BUILTIN_MAX_PROCESSING_DAYS[type_key],
            alert_days=None,  # follows SLA_DEFAULT_ALERT_DAYS
            is_active=True,
        ))
        logger.info("Seeded case type for shop %s: %s", shop_id, type_key)

    existing_statuses = set(
        (await db.execute(select(ShopCaseStatus.status_key).where(ShopCaseStatus.shop_id == shop_id))).scalars().all()
    )
    for status_key, label, pause_timer, is_final_status in DEFAULT_CASE_STATUSES:
        if status_key in existing_statuses:
            logger.info("Case status already exists for shop %s: %s, skipping", shop_id, status_key)
            continue
        db.add(ShopCaseStatus(
            shop_id=shop_id,
            status_key=status_key,
            label=label,
            pause_timer=pause_timer,
            is_final_status=is_final_status,
            is_active=True,
        ))
        logger.info("Seeded case status for shop %s: %s", shop_id, status_key)

    await db.commit()


async def run_seed() -> None:
    async with AsyncSessionLocal() as db:
        shop_ids = (await db.execute(select(Shop.id))).scalars().all()
        for shop_id in shop_ids:
            await seed_shop_catalog(db, shop_id)
    logger.info("Seeding complete.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(run_seed())
