# app/services/validation.py
"""
Booking input checks and normalization, kept in one place so routes stay thin.

``validate_appointment`` works on the raw decoded JSON body and reports every
problem at once. ``normalize_appointment`` assumes the body already passed
validation and produces the canonical form that is stored.
"""
from __future__ import annotations

import re
from typing import Any, Mapping

from app.core.business import format_iso_minute_z, parse_iso_utc
from app.schemas.appointment import NormalizedAppointment

NAME_MAX = 120
EMAIL_MAX = 255
PHONE_MIN = 7
PHONE_MAX = 40
SERVICE_ID_MAX = 2**31 - 1  # service_id is a 32-bit INTEGER column

# Minute precision only:
#   2025-09-20T18:00Z, 2025-09-20T18:00+01:00     accepted
#   2025-09-20T18:00:00Z, 2025-09-20T18:00.123Z   rejected
ISO_MINUTE_NO_SECONDS = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(?:Z|[+-]\d{2}:\d{2})", re.ASCII)
EMAIL_SHAPE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

MSG_SERVICE_ID = "serviceId must be a positive integer"
MSG_START_TYPE = "startAt must be a string"
MSG_START_FORMAT = "startAt must be ISO 8601 without seconds/milliseconds (e.g., 2025-09-20T18:00Z)"
MSG_START_INVALID = "startAt is not a valid datetime"
MSG_NAME_REQUIRED = "clientName is required"
MSG_CONTACT_REQUIRED = "Either clientEmail or clientPhone must be provided"
MSG_EMAIL_FORMAT = "clientEmail must be a valid email address"
MSG_EMAIL_LONG = "clientEmail is too long"
MSG_PHONE_TYPE = "clientPhone must be a string"
MSG_PHONE_SHORT = "clientPhone must be at least 7 digits long"
MSG_PHONE_LONG = "clientPhone is too long"
MSG_NAME_LONG = "clientName is too long"


def _is_positive_integer(value: Any) -> bool:
    # JSON numbers only; bool is an int subclass but never a valid id
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if isinstance(value, float) and not value.is_integer():
        return False
    return 0 < value <= SERVICE_ID_MAX


def _check_start_at(value: Any) -> str | None:
    if not isinstance(value, str):
        return MSG_START_TYPE
    if not ISO_MINUTE_NO_SECONDS.fullmatch(value):
        return MSG_START_FORMAT
    try:
        parse_iso_utc(value)
    except (ValueError, OverflowError):
        return MSG_START_INVALID
    return None


def validate_appointment(data: Any) -> list[str]:
    """Collect every problem with a raw booking payload; an empty list means valid."""
    if not isinstance(data, Mapping):
        data = {}
    errors: list[str] = []

    if not _is_positive_integer(data.get("serviceId")):
        errors.append(MSG_SERVICE_ID)

    start_err = _check_start_at(data.get("startAt"))
    if start_err:
        errors.append(start_err)

    name = data.get("clientName")
    if not isinstance(name, str) or not name.strip():
        errors.append(MSG_NAME_REQUIRED)

    email = data.get("clientEmail")
    phone = data.get("clientPhone")
    if not email and not phone:
        errors.append(MSG_CONTACT_REQUIRED)

    if email:
        if not isinstance(email, str) or not EMAIL_SHAPE.fullmatch(email):
            errors.append(MSG_EMAIL_FORMAT)
        if isinstance(email, str) and len(email) > EMAIL_MAX:
            errors.append(MSG_EMAIL_LONG)

    if phone:
        if not isinstance(phone, str):
            errors.append(MSG_PHONE_TYPE)
        else:
            # Length is judged on what will actually be stored
            phone_len = len(phone.strip())
            if phone_len < PHONE_MIN:
                errors.append(MSG_PHONE_SHORT)
            if phone_len > PHONE_MAX:
                errors.append(MSG_PHONE_LONG)

    if isinstance(name, str) and len(name.strip()) > NAME_MAX:
        errors.append(MSG_NAME_LONG)

    return errors


def normalize_to_iso_minute_z(s: str) -> str:
    """
    Canonical UTC form "YYYY-MM-DDTHH:MM:00Z" for any parseable timestamp.
    Offsets are applied and anything below the minute is dropped, so
    normalizing an already normalized value returns it unchanged.
    """
    return format_iso_minute_z(parse_iso_utc(s))


def normalize_appointment(data: Mapping[str, Any]) -> NormalizedAppointment:
    """Trim, bound and canonicalize a validated payload. ``data`` is left untouched."""
    d = dict(data)

    email = d.get("clientEmail")
    phone = d.get("clientPhone")

    return NormalizedAppointment(
        service_id=int(d["serviceId"]),
        start_at=normalize_to_iso_minute_z(str(d["startAt"])),
        client_name=str(d["clientName"]).strip()[:NAME_MAX],
        client_email=str(email).strip().lower()[:EMAIL_MAX] if email else None,
        client_phone=str(phone).strip()[:PHONE_MAX] if phone else None,
    )
