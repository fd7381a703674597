"""In-memory message store — for tests, the CLI's --memory mode, and demos.

Ordering mirrors the SQL store: every row carries a sequence number taken
from a process-wide counter, stamped on insert and re-stamped when a
pending row is unqueued. History is ordered by (sequence, id).
"""

import itertools
from collections import defaultdict
from dataclasses import dataclass
from typing import Sequence

from chatqueue.messages import ChatMessage


@dataclass
class _Row:
    id: int
    seq: int
    queued: bool
    message: ChatMessage


class InMemoryMessageStore:
    """MessageStore kept in a dict of per-user row lists."""

    def __init__(self):
        self._rows: dict[str, list[_Row]] = defaultdict(list)
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)

    async def insert_messages(
        self, user_id: str, queued: bool, messages: Sequence[ChatMessage]
    ) -> list[ChatMessage]:
        rows = [
            _Row(id=next(self._ids), seq=next(self._clock), queued=queued, message=m)
            for m in messages
        ]
        self._rows[user_id].extend(rows)
        return [r.message for r in rows]

    async def unqueue_messages(self, user_id: str) -> list[ChatMessage]:
        stamp = next(self._clock)
        unqueued = []
        for row in self._rows.get(user_id, []):
            if row.queued:
                row.queued = False
                row.seq = stamp
                unqueued.append(row.message)
        return unqueued

    async def read_history(self, user_id: str) -> list[ChatMessage]:
        rows = [r for r in self._rows.get(user_id, []) if not r.queued]
        rows.sort(key=lambda r: (r.seq, r.id))
        return [r.message for r in rows]

    async def pending_messages(self, user_id: str) -> list[ChatMessage]:
        return [r.message for r in self._rows.get(user_id, []) if r.queued]

    def users(self) -> list[str]:
        return sorted(self._rows)
