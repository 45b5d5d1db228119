"""Repair case (SAV ticket) as read by the SLA engine.

Rows are written by the case-management workflows; the SLA engine only reads
id, shop, type, status and the creation instant.
"""
import uuid

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin, UUIDMixin


class RepairCase(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "repair_cases"
    __table_args__ = (
        Index("ix_repair_cases_shop_id_status_key", "shop_id", "status_key"),
    )

    shop_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("shops.id"), nullable=False, index=True
    )
    case_number: Mapped[str] = mapped_column(String(50), nullable=False)
    type_key: Mapped[str] = mapped_column(String(50), nullable=False)  # client, external, internal, or shop-defined
    status_key: Mapped[str] = mapped_column(String(50), nullable=False)
