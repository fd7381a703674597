"""User dispatcher — serializes all processing for a given user.

Learn: Inbound messages are always persisted as pending first. Whoever
then finds the user unclaimed becomes the drain session for that user:

1. Claim the user (in-process ClaimSet)
2. Loop while the user has pending messages:
   a. Unqueue them (they join the history now, behind anything already
      answered)
   b. Read the full history
   c. Run the orchestrator on it
   d. Persist the produced turns as non-pending
3. Release the claim, always, including on error and timeout

A message submitted while a session is running stays pending; the running
session sees it on its next pending check and answers it in a later
iteration. The second caller returns an empty result immediately instead
of starting a competing session.

Key design decisions:
- Claiming is in memory: no store round trip between the check and the set
- No retries, no rollback: turns persisted before a failure stay persisted,
  and the next submission for that user continues from there
- Different users never wait on each other
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

import structlog

from chatqueue.agent.orchestrator import ConversationOrchestrator
from chatqueue.dispatcher.claims import ClaimSet
from chatqueue.errors import DrainTimeoutError
from chatqueue.messages import ChatMessage
from chatqueue.store.base import MessageStore

logger = structlog.get_logger()


@dataclass
class DispatcherStats:
    """Runtime statistics for monitoring."""
    drains: int = 0
    skipped: int = 0
    iterations: int = 0
    errors: int = 0
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class UserDispatcher:
    """Per-user sequential dispatcher in front of the orchestrator."""

    def __init__(
        self,
        store: MessageStore,
        orchestrator: ConversationOrchestrator,
        claims: Optional[ClaimSet] = None,
        drain_timeout: Optional[float] = None,
    ):
        self.store = store
        self.orchestrator = orchestrator
        self.claims = claims if claims is not None else ClaimSet()
        self.drain_timeout = drain_timeout
        self.stats = DispatcherStats()

    # ─── Public API ──────────────────────────────────────

    async def submit(self, user_id: str, text: str) -> None:
        """Persist an inbound user message as pending."""
        await self.store.insert_messages(user_id, True, [ChatMessage.user(text)])
        logger.debug("dispatcher.submitted", user_id=user_id)

    def is_claimed(self, user_id: str) -> bool:
        return self.claims.is_claimed(user_id)

    async def drain_if_free(
        self,
        user_id: str,
        tool_args: Any = None,
        instruction_args: Any = None,
    ) -> list[ChatMessage]:
        """Drain the user's backlog unless another session already is.

        Returns every turn produced by this session, or [] if the user was
        already claimed.
        """
        if not self.claims.try_claim(user_id):
            logger.debug("dispatcher.already_claimed", user_id=user_id)
            self.stats.skipped += 1
            return []

        self.stats.drains += 1
        output: list[ChatMessage] = []
        try:
            with structlog.contextvars.bound_contextvars(user_id=user_id):
                logger.info("dispatcher.drain_started")
                await self._drain_with_timeout(user_id, output, tool_args, instruction_args)
                logger.info("dispatcher.drain_finished", produced=len(output))
        except Exception as e:
            self.stats.errors += 1
            logger.error(
                "dispatcher.drain_failed",
                user_id=user_id,
                error=str(e),
                error_type=type(e).__name__,
                produced=len(output),
            )
            raise
        finally:
            self.claims.release(user_id)
        return output

    async def process_message(
        self,
        user_id: str,
        text: str,
        tool_args: Any = None,
        instruction_args: Any = None,
    ) -> list[ChatMessage]:
        """Submit `text` and drain the user's backlog if nobody else is."""
        await self.submit(user_id, text)
        return await self.drain_if_free(user_id, tool_args, instruction_args)

    def get_stats(self) -> dict:
        """Return dispatcher statistics for monitoring."""
        return {
            "drains": self.stats.drains,
            "skipped": self.stats.skipped,
            "iterations": self.stats.iterations,
            "errors": self.stats.errors,
            "claimed": len(self.claims),
            "started_at": self.stats.started_at.isoformat(),
        }

    # ─── Drain loop ──────────────────────────────────────

    async def _drain_with_timeout(
        self,
        user_id: str,
        output: list[ChatMessage],
        tool_args: Any,
        instruction_args: Any,
    ) -> None:
        if self.drain_timeout is None:
            await self._drain(user_id, output, tool_args, instruction_args)
            return

        deadline = asyncio.timeout(self.drain_timeout)
        try:
            async with deadline:
                await self._drain(user_id, output, tool_args, instruction_args)
        except TimeoutError as e:
            # Only our own deadline becomes a DrainTimeoutError
            if deadline.expired():
                raise DrainTimeoutError(user_id, self.drain_timeout) from e
            raise

    async def _drain(
        self,
        user_id: str,
        output: list[ChatMessage],
        tool_args: Any,
        instruction_args: Any,
    ) -> None:
        while True:
            pending = await self.store.pending_messages(user_id)
            if not pending:
                break

            unqueued = await self.store.unqueue_messages(user_id)
            history = await self.store.read_history(user_id)
            logger.info(
                "dispatcher.iteration",
                unqueued=len(unqueued),
                history=len(history),
            )

            produced = await self.orchestrator.run(history, tool_args, instruction_args)
            await self.store.insert_messages(user_id, False, produced)
            output.extend(produced)
            self.stats.iterations += 1
