# app/api/routes/appointments.py

from __future__ import annotations
import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import Clock, get_clock, get_intake_policy, get_session, get_settings_dep
from app.core.business import IntakePolicy
from app.core.config import Settings
from app.core.errors import IntakeError
from app.core.logging import get_logger
from app.schemas.appointment import AppointmentAccepted, AppointmentRejected, DebugTokens
from app.services.booking import book_appointment

router = APIRouter(prefix="/appointments", tags=["appointments"])
logger = get_logger(__name__)

ACCEPTED_MESSAGE = "Appointment request received and pending confirmation"
MSG_BAD_JSON = "Request body must be valid JSON"


def _reject(errors: list[str]) -> JSONResponse:
    return JSONResponse(AppointmentRejected(errors=errors).model_dump(), status_code=400)


@router.post(
    "",
    status_code=201,
    response_model=AppointmentAccepted,
    response_model_exclude_none=True,
    response_model_by_alias=True,
    responses={400: {"model": AppointmentRejected}},
)
async def create_appointment(
    request: Request,
    db: AsyncSession = Depends(get_session),
    policy: IntakePolicy = Depends(get_intake_policy),
    settings: Settings = Depends(get_settings_dep),
    clock: Clock = Depends(get_clock),
):
    # The raw body is validated by hand so every field problem is reported at once
    body = await request.body()
    if len(body) > settings.MAX_BODY_BYTES:
        return JSONResponse({"error": "Payload Too Large"}, status_code=413)
    try:
        payload = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        logger.info("appointment_rejected", reason="bad_json")
        return _reject([MSG_BAD_JSON])

    try:
        record = await book_appointment(db, payload, policy=policy, now=clock())
    except IntakeError as e:
        logger.info("appointment_rejected", reason=type(e).__name__, error_count=len(e.errors))
        return _reject(e.errors)

    debug = None
    if settings.debug_tokens_enabled:
        debug = DebugTokens(
            id=record.id,
            confirm_token=record.confirm_token,
            cancel_token=record.cancel_token,
        )
    return AppointmentAccepted(message=ACCEPTED_MESSAGE, debug=debug)
