"""Completion backends — where assistant turns come from.

Learn: The orchestrator only needs `await backend.complete(conversation,
tool_catalog)`. OpenAIBackend covers every OpenAI-compatible endpoint;
tests plug in scripted fakes.
"""

from chatqueue.backends.base import CompletionBackend
from chatqueue.backends.openai_compat import OpenAIBackend, message_from_sdk

__all__ = ["CompletionBackend", "OpenAIBackend", "message_from_sdk"]
