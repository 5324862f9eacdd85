# app/db/models/appointment.py

from __future__ import annotations
from datetime import datetime, timezone
import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        sa.Index("ix_appointments_start_at", "start_at"),
        sa.Index("ix_appointments_service_id", "service_id"),
    )

    id: Mapped[str] = mapped_column(sa.String(36), primary_key=True)
    service_id: Mapped[int] = mapped_column(sa.Integer, nullable=False)

    # Canonical UTC minute strings ("2025-09-20T18:00:00Z"); they sort chronologically
    start_at: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    end_at: Mapped[str] = mapped_column(sa.String(20), nullable=False)

    client_name: Mapped[str] = mapped_column(sa.String(120), nullable=False)
    client_email: Mapped[str | None] = mapped_column(sa.String(255))
    client_phone: Mapped[str | None] = mapped_column(sa.String(40))

    status: Mapped[str] = mapped_column(sa.String(32), nullable=False, server_default="pending")
    confirm_token: Mapped[str] = mapped_column(sa.String(36), nullable=False, unique=True)
    cancel_token: Mapped[str] = mapped_column(sa.String(36), nullable=False, unique=True)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)  # Python-side timezone-aware default
    )
