# app/crud/appointment.py

from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from app.db.models.appointment import Appointment
from app.schemas.appointment import AppointmentRecord


async def insert_appointment(db: AsyncSession, record: AppointmentRecord) -> None:
    """Store one accepted booking as a single parameterized INSERT."""
    stmt = sa.insert(Appointment).values(
        id=record.id,
        service_id=record.service_id,
        start_at=record.start_at,
        end_at=record.end_at,
        client_name=record.client_name,
        client_email=record.client_email,
        client_phone=record.client_phone,
        status=record.status,
        confirm_token=record.confirm_token,
        cancel_token=record.cancel_token,
        created_at=datetime.now(timezone.utc),
    )
    try:
        await db.execute(stmt)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise


async def get_appointment(db: AsyncSession, appointment_id: str) -> Optional[Appointment]:
    res = await db.execute(sa.select(Appointment).where(Appointment.id == appointment_id))
    return res.scalar_one_or_none()
