"""Message store interface.

Learn: The store is the durable record of each user's conversation plus a
per-message pending ("queued") flag. The dispatcher relies on two things:

- read_history reflects every insert/unqueue that completed before it for
  that user (read-your-writes per user)
- unqueue_messages moves a message into the history at the moment it is
  folded into a drain pass, so a message submitted while the model was
  answering lands after that answer, not before it
"""

from typing import Protocol, Sequence

from chatqueue.messages import ChatMessage


class MessageStore(Protocol):
    async def insert_messages(
        self, user_id: str, queued: bool, messages: Sequence[ChatMessage]
    ) -> list[ChatMessage]:
        """Persist `messages` for `user_id`, pending if `queued`."""
        ...

    async def unqueue_messages(self, user_id: str) -> list[ChatMessage]:
        """Mark the user's pending messages as no longer pending; return them."""
        ...

    async def read_history(self, user_id: str) -> list[ChatMessage]:
        """Return the user's non-pending conversation in store order."""
        ...

    async def pending_messages(self, user_id: str) -> list[ChatMessage]:
        """Return the user's currently pending messages, oldest first."""
        ...
