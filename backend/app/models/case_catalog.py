"""Per-shop catalogs of case types (SLA policies) and case statuses."""
import uuid

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin, UUIDMixin


class ShopCaseType(Base, UUIDMixin, TimestampMixin):
    """A case type and its processing deadline for one shop."""

    __tablename__ = "shop_case_types"
    __table_args__ = (UniqueConstraint("shop_id", "type_key", name="uq_shop_case_types_shop_type"),)

    shop_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("shops.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type_key: Mapped[str] = mapped_column(String(50), nullable=False)
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    max_processing_days: Mapped[int] = mapped_column(Integer, nullable=False, default=7)
    alert_days: Mapped[int | None] = mapped_column(Integer, nullable=True)  # null → SLA_DEFAULT_ALERT_DAYS
    exclude_from_stats: Mapped[bool] = mapped_column(nullable=False, default=False, server_default="false")
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True, server_default="true")


class ShopCaseStatus(Base, UUIDMixin, TimestampMixin):
    """A case status for one shop, flagged pause-the-clock and/or final."""

    __tablename__ = "shop_case_statuses"
    __table_args__ = (UniqueConstraint("shop_id", "status_key", name="uq_shop_case_statuses_shop_status"),)

    shop_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("shops.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status_key: Mapped[str] = mapped_column(String(50), nullable=False)
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    pause_timer: Mapped[bool] = mapped_column(nullable=False, default=False, server_default="false")
    is_final_status: Mapped[bool] = mapped_column(nullable=False, default=False, server_default="false")
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True, server_default="true")
