from __future__ import annotations

from typing import Dict, Iterator, List, Tuple

from chat_session.models import Role, Turn


class TranscriptStore:
    def __init__(self) -> None:
        self._turns: List[Turn] = []

    def append(self, turn: Turn) -> None:
        if turn.role is Role.USER and not turn.text.strip():
            raise ValueError("User turns must carry non-empty text")
        self._turns.append(turn)

    def snapshot_for_context(self) -> Tuple[Turn, ...]:
        return tuple(self._turns)

    def clear(self) -> None:
        self._turns.clear()

    def as_dicts(self) -> List[Dict[str, str]]:
        return [turn.model_dump(mode="json") for turn in self._turns]

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(tuple(self._turns))
