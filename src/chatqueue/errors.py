"""Error types shared by the dispatcher, orchestrator and adapters.

Learn: Nothing in the core recovers locally. Every error below surfaces to
the immediate caller; the transport decides what the user sees and whether
a failed send gets resubmitted.
"""

from typing import Optional


class ChatQueueError(Exception):
    """Base class for all chatqueue errors."""


# ─── Completion backend ───────────────────────────────────


class CompletionError(ChatQueueError):
    """The completion backend failed to produce a turn."""


class EmptyCompletionError(CompletionError):
    """The backend answered without a message (empty choice list)."""

    def __init__(self, message: str = "Completion backend returned no message"):
        super().__init__(message)


# ─── Tools ────────────────────────────────────────────────


class ToolError(ChatQueueError):
    """A tool invocation could not be resolved."""

    def __init__(self, message: str, name: Optional[str] = None):
        super().__init__(message)
        self.name = name


class UnknownToolError(ToolError):
    """The backend named a tool that is not registered."""

    def __init__(self, name: Optional[str]):
        super().__init__(f"Unknown tool function: {name}", name=name)


class ToolArgumentsError(ToolError):
    """The raw argument payload of a tool call is not a JSON object."""

    def __init__(self, name: str, arguments: Optional[str], reason: str):
        super().__init__(
            f"Malformed arguments for tool {name!r}: {reason}", name=name
        )
        self.arguments = arguments


class MaxToolRoundsExceededError(ChatQueueError):
    """The backend kept requesting tools past the configured bound."""

    def __init__(self, max_rounds: int):
        super().__init__(
            f"Completion backend still requested tools after {max_rounds} rounds"
        )
        self.max_rounds = max_rounds


# ─── Dispatcher / store ───────────────────────────────────


class StoreError(ChatQueueError):
    """A message store was used in a way its contract does not allow."""


class DrainTimeoutError(ChatQueueError):
    """A drain session ran past the configured timeout."""

    def __init__(self, user_id: str, timeout: float):
        super().__init__(f"Drain session for user {user_id} exceeded {timeout}s")
        self.user_id = user_id
        self.timeout = timeout
