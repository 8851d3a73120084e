from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    USER = "user"
    MODEL = "model"


class Turn(BaseModel):
    """One message of the conversation. Immutable once appended."""

    model_config = ConfigDict(frozen=True)

    role: Role
    text: str


class Attachment(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: str = Field(..., description="Base64-encoded raw bytes")
    mime_type: str


class PendingTurn(BaseModel):
    """Normalized user input, not yet sent. Consumed exactly once."""

    model_config = ConfigDict(frozen=True)

    text: str
    attachment: Optional[Attachment] = None


class SpeechResult(BaseModel):
    transcript: str
    is_final: bool = True


class SessionState(BaseModel):
    loading: bool = False
    error_message: str = ""
    listening: bool = False
    draft: str = ""
