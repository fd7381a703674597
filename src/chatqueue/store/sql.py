"""SQL message store — SQLAlchemy async adapter over the chat_messages table.

Learn: Each operation uses its own session and commits before returning,
which gives the dispatcher read-your-writes per user: a read issued after
an insert or unqueue completed always sees it.

Exclusivity across processes is NOT provided here. The unqueue row lock
only keeps two concurrent unqueues from returning the same rows; the
claim set that serializes drain sessions lives in one process. Run one
dispatcher process per store.
"""

import json
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chatqueue.db.models import StoredMessage, utcnow
from chatqueue.messages import ChatMessage


def _encode(message: ChatMessage) -> str:
    return json.dumps(message.to_openai())


def _decode(raw: str) -> ChatMessage:
    return ChatMessage.from_openai(json.loads(raw))


class SqlMessageStore:
    """MessageStore backed by any SQLAlchemy async engine."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def insert_messages(
        self, user_id: str, queued: bool, messages: Sequence[ChatMessage]
    ) -> list[ChatMessage]:
        if not messages:
            return []
        rows = [
            StoredMessage(user_id=user_id, queued=queued, message=_encode(m))
            for m in messages
        ]
        async with self.session_factory() as db:
            db.add_all(rows)
            await db.commit()
        return [_decode(r.message) for r in rows]

    async def unqueue_messages(self, user_id: str) -> list[ChatMessage]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(StoredMessage)
                .where(StoredMessage.user_id == user_id, StoredMessage.queued.is_(True))
                .order_by(StoredMessage.id)
                .with_for_update()
            )
            rows = list(result.scalars().all())
            now = utcnow()
            for row in rows:
                row.queued = False
                row.updated_at = now
            await db.commit()
        return [_decode(r.message) for r in rows]

    async def read_history(self, user_id: str) -> list[ChatMessage]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(StoredMessage.message)
                .where(StoredMessage.user_id == user_id, StoredMessage.queued.is_(False))
                .order_by(StoredMessage.updated_at, StoredMessage.id)
            )
            return [_decode(raw) for raw in result.scalars().all()]

    async def pending_messages(self, user_id: str) -> list[ChatMessage]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(StoredMessage.message)
                .where(StoredMessage.user_id == user_id, StoredMessage.queued.is_(True))
                .order_by(StoredMessage.id)
            )
            return [_decode(raw) for raw in result.scalars().all()]
