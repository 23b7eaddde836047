"""Wallet PIN Schemas — Pydantic models for the PIN endpoints.

Invariants:
    - Request PINs are bounded strings; digit/length policy is enforced by the manager
      so a policy failure keeps the boolean {"success": false} contract
    - Responses never carry a digest or salt

Design Decisions:
    - Verify accepts any short string: a malformed candidate is simply a mismatch
"""

from datetime import datetime

from pydantic import BaseModel, Field


class PinBody(BaseModel):
    """Body for set and verify."""
    pin: str = Field(min_length=1, max_length=64)


class PinChangeBody(BaseModel):
    """Body for change: proves the current PIN before storing the new one."""
    current_pin: str = Field(min_length=1, max_length=64)
    new_pin: str = Field(min_length=1, max_length=64)


class SuccessResponse(BaseModel):
    success: bool


class VerifyResponse(BaseModel):
    matched: bool


class ProtectionStatusResponse(BaseModel):
    protected: bool


class ReconcileResponse(BaseModel):
    """Authoritative state after local entries were aligned with the remote record."""
    protected: bool
    scheme: str | None = None
    updated_at: datetime | None = None
