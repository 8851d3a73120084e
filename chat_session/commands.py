from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Signal(str, Enum):
    NEW_CONVERSATION = "new-conversation"
    RESTORE_PROMPT = "restore-prompt"
    HELP_REQUEST = "help-request"
    OPEN_ACTIVITY = "open-activity"
    OPEN_SETTINGS = "open-settings"


class Command(BaseModel):
    signal: Signal
    prompt: Optional[str] = Field(None, description="Payload of restore-prompt")


NOT_IMPLEMENTED_NOTICES = {
    Signal.OPEN_ACTIVITY: "Activity is not yet implemented. Coming soon!",
    Signal.OPEN_SETTINGS: "Settings is not yet implemented. Coming soon!",
}
