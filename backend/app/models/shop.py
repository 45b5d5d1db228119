from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin, UUIDMixin


class Shop(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "shops"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sla_alerts_enabled: Mapped[bool] = mapped_column(
        nullable=False, default=True, server_default="true", index=True
    )
