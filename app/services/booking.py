# app/services/booking.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.business import IntakePolicy, compute_end_at, enforce_future, enforce_slot_grid
from app.core.errors import IntakeValidationError, SchedulePolicyError
from app.core.logging import get_logger
from app.crud.appointment import insert_appointment
from app.schemas.appointment import AppointmentRecord
from app.services.validation import normalize_appointment, validate_appointment

logger = get_logger(__name__)

INITIAL_STATUS = "pending"
MSG_TOO_FAR = "startAt is too far in the future"


def new_identifier() -> str:
    """Random UUID4 drawn from the OS CSPRNG; no shared counter involved."""
    return str(uuid.uuid4())


# ---------- Core orchestration ----------

def prepare_appointment(
    payload: Any,
    *,
    policy: IntakePolicy,
    now: datetime,
) -> AppointmentRecord:
    """
    Turn a raw booking payload into a storable record:
    1) Validate every field (all problems reported together)
    2) Normalize to canonical form
    3) Slot grid check (when enabled) and future-time check, stopping at the first failure
    4) Compute the end time and mint id + confirm/cancel tokens
    """
    # 1) Field validation
    errors = validate_appointment(payload)
    if errors:
        raise IntakeValidationError(errors)

    # 2) Normalize
    appt = normalize_appointment(payload)

    # 3) Schedule rules
    if policy.enforce_grid:
        grid_err = enforce_slot_grid(appt.start_at, policy.grid_minutes)
        if grid_err:
            raise SchedulePolicyError(grid_err)

    future_err = enforce_future(appt.start_at, now)
    if future_err:
        raise SchedulePolicyError(future_err)

    # 4) End time + identifiers
    try:
        end_at = compute_end_at(appt.start_at, policy.duration_min)
    except OverflowError:
        raise SchedulePolicyError(MSG_TOO_FAR)

    return AppointmentRecord(
        **appt.model_dump(),
        id=new_identifier(),
        end_at=end_at,
        status=INITIAL_STATUS,
        confirm_token=new_identifier(),
        cancel_token=new_identifier(),
    )


async def book_appointment(
    db: AsyncSession,
    payload: Any,
    *,
    policy: IntakePolicy,
    now: Optional[datetime] = None,
) -> AppointmentRecord:
    """
    Validate, normalize and store one booking request.
    Raises IntakeError subclasses for caller mistakes; database faults propagate as-is.
    """
    record = prepare_appointment(
        payload,
        policy=policy,
        now=now or datetime.now(timezone.utc),
    )

    await insert_appointment(db, record)

    logger.info(
        "appointment_accepted",
        appointment_id=record.id,
        service_id=record.service_id,
        start_at=record.start_at,
    )
    return record
