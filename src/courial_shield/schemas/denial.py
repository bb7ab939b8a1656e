"""Pydantic model for catalog denial codes."""

from pydantic import BaseModel, ConfigDict, Field


class DenialCode(BaseModel):
    """A standardized reason for rejecting a claim."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(..., description="Symbolic code, e.g. WAITING_PERIOD")
    legacy_code: str = Field(..., description="Historical D0xx identifier")
    reason: str = Field(..., description="Short internal reason")
    user_explanation: str = Field(..., description="Member-facing explanation")
    appealable: bool = Field(default=False, description="Whether the member may appeal")
