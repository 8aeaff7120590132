"""In-memory stream bus for testing: connects publisher and consumer."""

from __future__ import annotations

import itertools
from collections import deque
from typing import Any

from ..envelope import Envelope


class InMemoryMessageBus:
    """Named streams of encoded entries plus a log of everything published."""

    def __init__(self) -> None:
        self._streams: dict[str, deque[tuple[str, dict[str, str]]]] = {}
        self._published: list[tuple[str, Envelope[Any]]] = []
        self._ids = itertools.count(1)

    def append(
        self, stream_key: str, fields: dict[str, str], envelope: Envelope[Any]
    ) -> str:
        """Append an encoded entry; return its id."""
        entry_id = f"{next(self._ids)}-0"
        self._streams.setdefault(stream_key, deque()).append((entry_id, fields))
        self._published.append((stream_key, envelope))
        return entry_id

    def pop(self, stream_key: str) -> tuple[str, dict[str, str]] | None:
        """Remove and return the oldest pending entry (the ack), or None."""
        pending = self._streams.get(stream_key)
        if not pending:
            return None
        return pending.popleft()

    def pending(self, stream_key: str) -> int:
        return len(self._streams.get(stream_key, ()))

    def get_published(self) -> list[tuple[str, Envelope[Any]]]:
        """Return all published (stream_key, envelope) in order."""
        return list(self._published)

    def clear(self) -> None:
        """Clear streams and the publish log (for test teardown)."""
        self._streams.clear()
        self._published.clear()
