"""chatqueue — per-user serialized chat dispatcher.

The dispatch layer a chat transport sits on: inbound user messages are
persisted as pending, each user's backlog is drained by exactly one session
at a time, and every drain step runs a multi-turn exchange with a completion
backend that may call tools until it produces a final answer.
"""

__version__ = "0.1.0"
