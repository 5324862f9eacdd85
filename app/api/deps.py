# app/api/deps.py

from datetime import datetime, timezone
from typing import AsyncIterator, Callable

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.business import IntakePolicy
from app.core.config import Settings

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_intake_policy(request: Request) -> IntakePolicy:
    return request.app.state.intake_policy


def get_clock() -> Clock:
    return _utcnow


# FastAPI dependency: yields a session and closes it safely
async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.session_factory() as session:
        yield session
