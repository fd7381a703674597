"""Test fixtures — in-memory fakes for the backend and the store.

Learn: The core depends on capabilities (an object with `complete`, an
object with the four store methods), so tests pass plain fakes instead of
patching anything:

- ScriptedBackend replays a fixed list of assistant turns and records every
  request it receives. A reply may also be None (malformed response) or an
  exception instance (raised from the call).
- GatedBackend blocks inside `complete` until the test releases it, which
  lets a test hold a drain session open while it submits more messages.
- open_store() yields either store implementation so the same contract
  tests run against both; the SQL one uses a throwaway SQLite file via
  aiosqlite.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Optional, Sequence

import pytest

from chatqueue.db.engine import create_schema, make_engine, make_session_factory
from chatqueue.messages import ChatMessage, ToolCall
from chatqueue.store.memory import InMemoryMessageStore
from chatqueue.store.sql import SqlMessageStore


class ScriptedBackend:
    """CompletionBackend that returns pre-scripted replies in order."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.requests: list[list[ChatMessage]] = []
        self.catalogs: list[list[dict]] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def complete(
        self, conversation: Sequence[ChatMessage], tool_catalog: Sequence[dict]
    ) -> Optional[ChatMessage]:
        self.requests.append(list(conversation))
        self.catalogs.append(list(tool_catalog))
        if not self.replies:
            raise AssertionError("ScriptedBackend ran out of replies")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


class EchoBackend:
    """Answers every request with the content of the last user message."""

    def __init__(self):
        self.requests: list[list[ChatMessage]] = []

    async def complete(self, conversation, tool_catalog):
        self.requests.append(list(conversation))
        await asyncio.sleep(0)
        last_user = [m for m in conversation if m.role == "user"][-1]
        return ChatMessage.assistant(f"echo: {last_user.content}")


class GatedBackend(EchoBackend):
    """EchoBackend that waits for `release()` before answering each call."""

    def __init__(self):
        super().__init__()
        self.entered = asyncio.Event()
        self._gate = asyncio.Event()

    def release(self):
        self._gate.set()

    async def complete(self, conversation, tool_catalog):
        self.entered.set()
        await self._gate.wait()
        return await super().complete(conversation, tool_catalog)


def tool_call(call_id: str, name: str, arguments: str = "{}") -> ToolCall:
    return ToolCall(id=call_id, name=name, arguments=arguments)


@pytest.fixture()
def memory_store():
    return InMemoryMessageStore()


@asynccontextmanager
async def open_store(kind: str, tmp_path):
    """Yield a fresh store of the given kind ("memory" or "sql")."""
    if kind == "memory":
        yield InMemoryMessageStore()
        return

    # SqlMessageStore on a throwaway SQLite file, schema created
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'chatqueue.db'}")
    await create_schema(engine)
    try:
        yield SqlMessageStore(make_session_factory(engine))
    finally:
        await engine.dispose()
