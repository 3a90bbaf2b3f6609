from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class BadgeParams(BaseModel):
    """Non-numeric badge parameters; the message is always the view count."""

    model_config = ConfigDict(frozen=True)

    label: str = Field(min_length=1)
    color: str = Field(min_length=1)
    style: str = Field(min_length=1)


class CounterSnapshot(BaseModel):
    count: int
    persisted_mark: int


class HealthResponse(BaseModel):
    status: str = "ok"
