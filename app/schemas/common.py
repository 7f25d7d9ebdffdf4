"""Uniform response envelope shared by every endpoint."""

from datetime import UTC, datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class ErrorItem(BaseModel):
    """One entry of the errors[] list."""

    field: str | None = None
    message: str
    code: str


class ApiResponse(BaseModel, Generic[T]):
    """Envelope: {success, message, data?, errors?, timestamp}."""

    success: bool = True
    message: str
    data: T | None = None
    errors: list[ErrorItem] | None = None
    timestamp: str = Field(default_factory=_now_iso)
