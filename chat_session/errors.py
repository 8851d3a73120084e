from __future__ import annotations

from typing import Optional


class ChatSessionError(Exception):
    """Base class for every error raised by the chat session core."""


class ConfigurationError(ChatSessionError):
    """Raised when the model credential is missing or unusable."""


class TransportError(ChatSessionError):
    """Raised when the remote model could not be reached (network, timeout)."""


class ApiError(ChatSessionError):
    """Raised when the remote model rejected the request (quota, invalid key, ...)."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class UnsupportedCapabilityError(ChatSessionError):
    """Raised when voice input is requested but no speech recognizer exists."""


class SpeechRecognitionError(ChatSessionError):
    """Raised by a speech recognizer that failed mid-session."""
