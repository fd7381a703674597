"""Conversation orchestrator — the multi-turn loop against the completion backend.

Learn: One run continues a stored conversation until the model answers
without asking for tools:

1. Prepend the fixed system instructions to a working copy of the history
2. Build the request: working copy + this pass's additional instructions,
   inserted right before the most recent non-tool message
3. Ask the backend for exactly one assistant turn
4. No tool calls → done. Otherwise run each tool in the order listed,
   append a tool turn per result, and go back to step 2

The loop is iterative (working conversation and output are loop-local),
so a chatty backend cannot grow the call stack. max_tool_rounds bounds how
many backend calls may still request tools; None means unbounded.

Everything produced (assistant turns and tool turns) is returned in order.
Nothing is persisted here; the dispatcher writes the output to the store.
"""

import json
from typing import Any, Callable, Mapping, Optional, Sequence

import structlog

from chatqueue.agent.tools import ToolFunction, ToolRegistry
from chatqueue.backends.base import CompletionBackend
from chatqueue.errors import (
    CompletionError,
    EmptyCompletionError,
    MaxToolRoundsExceededError,
    ToolArgumentsError,
    ToolError,
    UnknownToolError,
)
from chatqueue.messages import ChatMessage, ToolCall

logger = structlog.get_logger()

InstructionFunction = Callable[[Any], str]


def no_additional_instructions(instruction_args: Any) -> str:
    return ""


def insert_before_last_non_tool(
    conversation: Sequence[ChatMessage], message: ChatMessage
) -> list[ChatMessage]:
    """Return a copy of `conversation` with `message` inserted right before
    the most recent non-tool message.

    Scanning backward skips over trailing tool results, so after a tool
    exchange the instruction lands before the assistant turn that asked
    for those tools.
    """
    result = list(conversation)
    index = 0
    for i in range(len(result) - 1, -1, -1):
        if result[i].role != "tool":
            index = i
            break
    result.insert(index, message)
    return result


def parse_tool_arguments(call: ToolCall) -> dict:
    """Parse the raw argument payload of a tool call into a dict.

    An empty payload means a call without arguments. Anything else must be
    a JSON object.
    """
    raw = call.arguments
    if raw is None or not raw.strip():
        return {}
    try:
        args = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ToolArgumentsError(call.name, raw, f"invalid JSON ({e})") from e
    if not isinstance(args, dict):
        raise ToolArgumentsError(
            call.name, raw, f"expected a JSON object, got {type(args).__name__}"
        )
    return args


class ConversationOrchestrator:
    """Drives a completion backend until it produces a tool-free turn."""

    def __init__(
        self,
        backend: CompletionBackend,
        instructions: str,
        tools: Optional[Mapping[str, ToolFunction]] = None,
        tool_catalog: Optional[Sequence[dict]] = None,
        additional_instructions: Optional[InstructionFunction] = None,
        max_tool_rounds: Optional[int] = None,
    ):
        if tool_catalog is None and isinstance(tools, ToolRegistry):
            tool_catalog = tools.catalog
        if max_tool_rounds is not None and max_tool_rounds < 1:
            raise ValueError("max_tool_rounds must be >= 1 (or None for unbounded)")

        self.backend = backend
        self.instructions = instructions
        self.tools: dict[str, ToolFunction] = dict(tools or {})
        self.tool_catalog: list[dict] = list(tool_catalog or [])
        self.additional_instructions = additional_instructions or no_additional_instructions
        self.max_tool_rounds = max_tool_rounds

    async def run(
        self,
        conversation: Sequence[ChatMessage],
        tool_args: Any = None,
        instruction_args: Any = None,
    ) -> list[ChatMessage]:
        """Continue `conversation` and return every turn produced, in order."""
        if tool_args is None:
            tool_args = {}
        if instruction_args is None:
            instruction_args = {}

        working: list[ChatMessage] = [ChatMessage.system(self.instructions), *conversation]
        output: list[ChatMessage] = []
        rounds = 0

        while True:
            rounds += 1
            request = self._build_request(working, instruction_args)
            logger.info(
                "orchestrator.round",
                round=rounds,
                messages=len(request),
                tools=len(self.tool_catalog),
            )

            reply = await self.backend.complete(request, self.tool_catalog)
            if reply is None:
                raise EmptyCompletionError()
            if reply.role != "assistant":
                raise CompletionError(
                    f"Completion backend returned a {reply.role!r} turn, expected 'assistant'"
                )

            working.append(reply)
            output.append(reply)

            if not reply.tool_calls:
                logger.info("orchestrator.done", rounds=rounds, produced=len(output))
                return output

            if self.max_tool_rounds is not None and rounds >= self.max_tool_rounds:
                raise MaxToolRoundsExceededError(self.max_tool_rounds)

            for call in reply.tool_calls:
                result = await self._call_tool(call, tool_args)
                turn = ChatMessage.tool(tool_call_id=call.id, content=result)
                working.append(turn)
                output.append(turn)

    # ─── Internals ───────────────────────────────────────

    def _build_request(
        self, working: list[ChatMessage], instruction_args: Any
    ) -> list[ChatMessage]:
        # Recomputed every pass; never stored in the working conversation
        extra = self.additional_instructions(instruction_args)
        if not extra:
            return list(working)
        return insert_before_last_non_tool(working, ChatMessage.system(extra))

    async def _call_tool(self, call: ToolCall, tool_args: Any) -> str:
        args = parse_tool_arguments(call)

        func = self.tools.get(call.name)
        if func is None:
            raise UnknownToolError(call.name)

        logger.info("orchestrator.tool_call", tool=call.name, tool_call_id=call.id)
        logger.debug("orchestrator.tool_args", tool=call.name, args=args)
        result = await func(args, tool_args)
        if not isinstance(result, str):
            raise ToolError(
                f"Tool {call.name!r} returned {type(result).__name__}, expected str",
                name=call.name,
            )
        return result
