# app/schemas/appointment.py

from typing import Literal, Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict

ISO_MINUTE_Z_PATTERN = r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:00Z$"


class NormalizedAppointment(BaseModel):
    """Canonical booking fields, ready for storage."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    service_id: int = Field(..., gt=0, le=2**31 - 1)
    start_at: str = Field(..., pattern=ISO_MINUTE_Z_PATTERN, examples=["2025-09-20T18:00:00Z"])
    client_name: str = Field(..., min_length=1, max_length=120, examples=["Jane Doe"])
    client_email: Optional[str] = Field(None, max_length=255, examples=["jane@example.com"])
    client_phone: Optional[str] = Field(None, min_length=7, max_length=40)


class AppointmentRecord(NormalizedAppointment):
    """One accepted booking, exactly as handed to the database."""
    id: str
    end_at: str = Field(..., pattern=ISO_MINUTE_Z_PATTERN)
    status: Literal["pending"] = "pending"
    confirm_token: str
    cancel_token: str


class DebugTokens(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    confirm_token: str
    cancel_token: str


class AppointmentAccepted(BaseModel):
    message: str
    debug: Optional[DebugTokens] = None


class AppointmentRejected(BaseModel):
    errors: list[str]
