"""Message stores — durable per-user history with a pending flag.

Learn: The dispatcher talks to the MessageStore protocol only.
SqlMessageStore is the production adapter, InMemoryMessageStore backs
tests and the CLI's --memory mode.
"""

from chatqueue.store.base import MessageStore
from chatqueue.store.memory import InMemoryMessageStore
from chatqueue.store.sql import SqlMessageStore

__all__ = ["InMemoryMessageStore", "MessageStore", "SqlMessageStore"]
