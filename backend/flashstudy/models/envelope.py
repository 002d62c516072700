from __future__ import annotations

from datetime import datetime, timezone
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: T
    timestamp: datetime = Field(default_factory=_utcnow)


class ErrorEnvelope(BaseModel):
    success: bool = False
    error: str
    timestamp: datetime = Field(default_factory=_utcnow)
