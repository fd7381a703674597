"""Runtime wiring — settings → store → backend → orchestrator → dispatcher.

Learn: The transport (CLI, a chat platform bot, an HTTP endpoint) builds
one Runtime per process and routes every inbound message through
`runtime.dispatcher.process_message`. One dispatcher per process: the
claim set is in-process state.
"""

from dataclasses import dataclass
from typing import Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from chatqueue.agent.orchestrator import ConversationOrchestrator, InstructionFunction
from chatqueue.agent.tools import ToolFunction
from chatqueue.backends.base import CompletionBackend
from chatqueue.backends.openai_compat import OpenAIBackend
from chatqueue.config import Settings
from chatqueue.db.engine import create_schema, make_engine, make_session_factory
from chatqueue.dispatcher.user_dispatcher import UserDispatcher
from chatqueue.store.base import MessageStore
from chatqueue.store.memory import InMemoryMessageStore
from chatqueue.store.sql import SqlMessageStore


@dataclass
class Runtime:
    dispatcher: UserDispatcher
    store: MessageStore
    engine: Optional[AsyncEngine] = None

    async def init_schema(self) -> None:
        if self.engine is None:
            raise RuntimeError("No database engine configured (in-memory store)")
        await create_schema(self.engine)

    async def aclose(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()


def build_runtime(
    settings: Settings,
    *,
    tools: Optional[Mapping[str, ToolFunction]] = None,
    tool_catalog: Optional[list[dict]] = None,
    additional_instructions: Optional[InstructionFunction] = None,
    store: Optional[MessageStore] = None,
    backend: Optional[CompletionBackend] = None,
    memory: bool = False,
) -> Runtime:
    """Build a dispatcher from settings, with optional overrides."""
    engine = None
    if store is None:
        if memory:
            store = InMemoryMessageStore()
        else:
            engine = make_engine(settings.database_url, echo=settings.debug)
            store = SqlMessageStore(make_session_factory(engine))

    if backend is None:
        backend = OpenAIBackend(
            settings.model,
            base_url=settings.openai_base_url,
            api_key=settings.openai_api_key or None,
        )

    orchestrator = ConversationOrchestrator(
        backend,
        settings.system_instructions,
        tools=tools,
        tool_catalog=tool_catalog,
        additional_instructions=additional_instructions,
        max_tool_rounds=settings.tool_round_limit,
    )
    dispatcher = UserDispatcher(
        store,
        orchestrator,
        drain_timeout=settings.drain_timeout_seconds,
    )
    return Runtime(dispatcher=dispatcher, store=store, engine=engine)
