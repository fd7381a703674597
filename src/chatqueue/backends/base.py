"""Completion backend interface.

Learn: The orchestrator depends on this capability, not on a concrete SDK.
Anything with a matching async `complete` works, which is how the tests
substitute a scripted in-memory backend without a mocking framework.
"""

from typing import Optional, Protocol, Sequence

from chatqueue.messages import ChatMessage


class CompletionBackend(Protocol):
    """Produces exactly one assistant turn for a conversation."""

    async def complete(
        self,
        conversation: Sequence[ChatMessage],
        tool_catalog: Sequence[dict],
    ) -> Optional[ChatMessage]:
        """Return the next assistant turn, or None on a malformed response."""
        ...
