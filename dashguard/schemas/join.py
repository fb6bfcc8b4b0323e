"""Pydantic schemas for join code verification."""

from __future__ import annotations

from pydantic import BaseModel, Field


class JoinVerifyRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=128, description="Join code to verify.")


class JoinVerifyResponse(BaseModel):
    valid: bool = Field(..., description="Whether the submitted code matched.")
    remaining: int = Field(
        ..., description="Attempts left in the current window (0 when blocked)."
    )
    message: str | None = Field(default=None, description="Hint for the caller.")
