"""
Pydantic models for request/response validation.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NonceRequest(BaseModel):
    wallet: str


class Challenge(BaseModel):
    """Server-issued, single-use authentication nonce."""

    message: str
    nonce: str
    expires_at: datetime

    @field_validator("expires_at", mode="before")
    @classmethod
    def parse_epoch_millis(cls, value: Any) -> Any:
        # ISO-8601 strings are handled by pydantic; bare numbers are epoch ms
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        return value

    def seconds_remaining(self, now: datetime | None = None) -> float:
        """Seconds until expiry, for display. Negative once expired."""
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        now = now or datetime.now(timezone.utc)
        return (expires_at - now).total_seconds()

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.seconds_remaining(now) <= 0


class NonceResponse(BaseModel):
    data: Challenge


class VerifyRequest(BaseModel):
    wallet: str
    signature: str
    nonce: str


class UserProfile(BaseModel):
    model_config = ConfigDict(extra="allow")

    username: str | None = None
    email: str | None = None
    current_tier: str | None = None
    referral_code: str | None = None


class Credentials(BaseModel):
    """Session state issued after a successful verify step."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str
    refresh_token: str
    api_key: str | None = Field(default=None, alias="apiKey")
    user: UserProfile | None = None


class VerifyResponse(BaseModel):
    data: Credentials


class BalanceResult(BaseModel):
    value: int


class SignatureInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    signature: str
    block_time: int | None = Field(default=None, alias="blockTime")
    slot: int
    err: Any = None
