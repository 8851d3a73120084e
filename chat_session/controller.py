"""Session controller: the only writer of the transcript and the session state."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from chat_session import inputs
from chat_session.commands import NOT_IMPLEMENTED_NOTICES, Command, Signal
from chat_session.errors import (
    ChatSessionError,
    SpeechRecognitionError,
    UnsupportedCapabilityError,
)
from chat_session.gateway import ModelGateway
from chat_session.models import PendingTurn, Role, SessionState, Turn
from chat_session.speech import SpeechRecognizer
from chat_session.transcript import TranscriptStore
from config.settings import get_settings


logger = logging.getLogger(__name__)

FAILURE_PREFIX = "Something went wrong: "
UNSUPPORTED_SPEECH_MESSAGE = "Speech recognition not supported in this browser"


class SessionController:
    def __init__(
        self,
        gateway: ModelGateway,
        transcript: Optional[TranscriptStore] = None,
        state: Optional[SessionState] = None,
        notice_seconds: Optional[float] = None,
    ) -> None:
        self.gateway = gateway
        self.transcript = transcript if transcript is not None else TranscriptStore()
        self.state = state if state is not None else SessionState()
        if notice_seconds is None:
            notice_seconds = get_settings().notice_seconds
        self.notice_seconds = notice_seconds
        self._generation = 0
        self._notice_handle: Optional[asyncio.TimerHandle] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def can_send(self) -> bool:
        return bool(self.state.draft.strip()) and not self.state.loading

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def submit(self, pending: Optional[PendingTurn]) -> bool:
        """Send one turn to the model. Returns False when nothing was sent."""
        if pending is None or not pending.text.strip():
            return False
        if self.state.loading:
            logger.info("Submit ignored: a request is already in flight")
            return False

        generation = self._generation
        self.state.error_message = ""
        self.state.draft = ""
        self.transcript.append(Turn(role=Role.USER, text=pending.text))
        self.state.loading = True
        logger.info(
            "Submitting turn: text_len=%s attachment=%s history_turns=%s",
            len(pending.text),
            pending.attachment is not None,
            len(self.transcript),
        )

        try:
            reply = await self.gateway.send(self.transcript.snapshot_for_context(), pending)
        except ChatSessionError as exc:
            logger.warning("Gateway request failed: %s", exc)
            self._record_failure(generation, str(exc))
        except Exception as exc:
            logger.exception("Unexpected failure during gateway request: %s", exc)
            self._record_failure(generation, str(exc))
        else:
            if self._is_stale(generation):
                logger.warning("Dropping reply from a conversation that was reset")
            else:
                self.transcript.append(Turn(role=Role.MODEL, text=reply))
                self.state.error_message = ""
                logger.info("Model responded: %s chars", len(reply))
        finally:
            if not self._is_stale(generation):
                self.state.loading = False
        return True

    async def submit_text(self, text: Optional[str] = None) -> bool:
        """Typed submit; falls back to the current draft when no text is given."""
        return await self.submit(inputs.from_text(self.state.draft if text is None else text))

    async def submit_image(
        self,
        filename: Optional[str],
        data: Optional[bytes],
        mime_type: Optional[str] = None,
    ) -> bool:
        return await self.submit(inputs.from_image(filename, data, mime_type))

    async def submit_suggestion(self, index: int) -> bool:
        return await self._submit_as_draft(inputs.from_suggestion(index))

    async def _submit_as_draft(self, pending: Optional[PendingTurn]) -> bool:
        """Show a programmatic prompt in the draft box, then send it.

        The draft is left alone when the turn is rejected because a request
        is already in flight.
        """
        if pending is None:
            return False
        if self.state.loading:
            logger.info("Submit ignored: a request is already in flight")
            return False
        self.state.draft = pending.text
        return await self.submit(pending)

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation

    def _record_failure(self, generation: int, message: str) -> None:
        if self._is_stale(generation):
            logger.warning("Dropping failure from a conversation that was reset: %s", message)
            return
        message = message or "Unknown error"
        self.state.error_message = message
        self.transcript.append(Turn(role=Role.MODEL, text=FAILURE_PREFIX + message))

    # ------------------------------------------------------------------
    # Signals
    # ------------------------------------------------------------------

    async def dispatch(self, command: Command) -> bool:
        """Apply one signal from the rendering layer. Returns True if a request was sent."""
        signal = command.signal
        logger.info("Signal received: %s", signal.value)

        if signal is Signal.NEW_CONVERSATION:
            self.reset()
            return False
        if signal is Signal.RESTORE_PROMPT:
            return await self._replay(command.prompt or inputs.DEFAULT_RESTORE_PROMPT)
        if signal is Signal.HELP_REQUEST:
            return await self._replay(inputs.HELP_PROMPT)

        self.notice(NOT_IMPLEMENTED_NOTICES[signal])
        return False

    async def _replay(self, prompt: str) -> bool:
        return await self._submit_as_draft(inputs.from_text(prompt))

    def reset(self) -> None:
        """Start a new conversation. Valid in any state."""
        self._generation += 1
        self._cancel_notice()
        self.transcript.clear()
        self.state.loading = False
        self.state.error_message = ""
        self.state.draft = ""

    def notice(self, message: str) -> None:
        """Show a transient, non-fatal banner message."""
        self._cancel_notice()
        self.state.error_message = message
        loop = asyncio.get_running_loop()
        self._notice_handle = loop.call_later(self.notice_seconds, self._dismiss_notice, message)

    def _dismiss_notice(self, message: str) -> None:
        self._notice_handle = None
        if self.state.error_message == message:
            self.state.error_message = ""

    def _cancel_notice(self) -> None:
        if self._notice_handle is not None:
            self._notice_handle.cancel()
            self._notice_handle = None

    # ------------------------------------------------------------------
    # Voice
    # ------------------------------------------------------------------

    async def listen(self, recognizer: Optional[SpeechRecognizer]) -> bool:
        """Run one listening session and submit its final transcript."""
        try:
            recognizer = _require_recognizer(recognizer)
        except UnsupportedCapabilityError as exc:
            self.state.error_message = str(exc)
            return False

        if self.state.listening:
            logger.info("Listen ignored: speech input is already in use")
            return False

        self.state.listening = True
        try:
            results = await recognizer.listen()
        except SpeechRecognitionError as exc:
            logger.warning("Speech recognition failed: %s", exc)
            return False
        finally:
            self.state.listening = False

        return await self._submit_as_draft(inputs.from_voice(results))

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        show_suggestions = len(self.transcript) == 0 and not self.state.loading
        return {
            "turns": self.transcript.as_dicts(),
            "loading": self.state.loading,
            "error_message": self.state.error_message,
            "listening": self.state.listening,
            "draft": self.state.draft,
            "can_send": self.can_send,
            "suggestions": list(inputs.SUGGESTIONS) if show_suggestions else [],
        }


def _require_recognizer(recognizer: Optional[SpeechRecognizer]) -> SpeechRecognizer:
    if recognizer is None:
        raise UnsupportedCapabilityError(UNSUPPORTED_SPEECH_MESSAGE)
    return recognizer
