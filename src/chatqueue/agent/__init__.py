"""Agent layer — the completion loop and the tools it can call.

Learn: The orchestrator is stateless between runs. The dispatcher hands it
a conversation, it hands back the produced turns.
"""

from chatqueue.agent.orchestrator import (
    ConversationOrchestrator,
    insert_before_last_non_tool,
    parse_tool_arguments,
)
from chatqueue.agent.tools import ToolFunction, ToolRegistry

__all__ = [
    "ConversationOrchestrator",
    "ToolFunction",
    "ToolRegistry",
    "insert_before_last_non_tool",
    "parse_tool_arguments",
]
