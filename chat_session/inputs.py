"""Turns every input channel into a PendingTurn, or None when there is nothing to send."""

from __future__ import annotations

import base64
from typing import Iterable, Optional

from chat_session.models import Attachment, PendingTurn, SpeechResult


DEFAULT_IMAGE_MIME_TYPE = "image/png"

SUGGESTIONS = (
    "Suggest some beautiful places for next trip",
    "Briefly summarize this concept: urban planning",
    "Brainstorm team bonding activities for our work retreat",
    "Improve the readability of the following code",
)

HELP_PROMPT = "Give me a quick tour of how to use this Gemini clone."
DEFAULT_RESTORE_PROMPT = "What is React?"


def from_text(text: Optional[str]) -> Optional[PendingTurn]:
    prompt = (text or "").strip()
    if not prompt:
        return None
    return PendingTurn(text=prompt)


def first_final_transcript(results: Iterable[SpeechResult]) -> Optional[str]:
    """Return the first final transcript; interim results are discarded."""
    for result in results:
        if result.is_final:
            return result.transcript
    return None


def from_voice(results: Iterable[SpeechResult]) -> Optional[PendingTurn]:
    return from_text(first_final_transcript(results))


def from_image(
    filename: Optional[str],
    data: Optional[bytes],
    mime_type: Optional[str] = None,
) -> Optional[PendingTurn]:
    """Package an uploaded image as a turn asking the model to describe it."""
    if data is None or not filename:
        return None
    encoded = base64.b64encode(data).decode("ascii")
    return PendingTurn(
        text=f"Describe this image: {filename}",
        attachment=Attachment(data=encoded, mime_type=mime_type or DEFAULT_IMAGE_MIME_TYPE),
    )


def from_suggestion(index: int) -> Optional[PendingTurn]:
    if index < 0 or index >= len(SUGGESTIONS):
        raise IndexError(f"Unknown suggestion: {index}")
    return from_text(SUGGESTIONS[index])
