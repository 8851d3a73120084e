from __future__ import annotations

from typing import List, Optional, Protocol, Sequence

from chat_session.errors import SpeechRecognitionError
from chat_session.models import SpeechResult


class SpeechRecognizer(Protocol):
    async def listen(self) -> Sequence[SpeechResult]:
        ...


class PostedSpeechRecognizer:
    """Replays the outcome of a listening session posted by the browser."""

    def __init__(self, results: Sequence[SpeechResult], error: Optional[str] = None) -> None:
        self._results: List[SpeechResult] = list(results)
        self._error = error

    async def listen(self) -> Sequence[SpeechResult]:
        if self._error:
            raise SpeechRecognitionError(self._error)
        return self._results
