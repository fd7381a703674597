"""Completion backend for OpenAI-compatible chat-completions endpoints.

Learn: One request per call, no retries and no streaming. SDK errors
(rate limits, auth, network) propagate unchanged to the orchestrator and
from there to the dispatcher's caller. An empty choice list is reported as
None so the orchestrator can raise its own EmptyCompletionError.

The base URL is configurable so the same adapter talks to OpenAI itself or
to any compatible gateway (DeepSeek, vLLM, a local proxy).
"""

from typing import Any, Optional, Sequence

import structlog
from openai import AsyncOpenAI

from chatqueue.messages import ChatMessage, ToolCall

logger = structlog.get_logger()


def message_from_sdk(message: Any) -> ChatMessage:
    """Convert an SDK `ChatCompletionMessage` into a ChatMessage."""
    calls = []
    for call in getattr(message, "tool_calls", None) or []:
        function = getattr(call, "function", None)
        if function is None:
            # Custom (non-function) tool calls are not part of the contract
            raise ValueError(f"Unsupported tool call type: {getattr(call, 'type', None)!r}")
        calls.append(
            ToolCall(id=call.id, name=function.name, arguments=function.arguments or "")
        )

    content = getattr(message, "content", None)
    if content is None and not calls:
        content = ""
    return ChatMessage.assistant(content=content, tool_calls=calls)


class OpenAIBackend:
    """CompletionBackend backed by `openai.AsyncOpenAI`."""

    def __init__(
        self,
        model: str,
        *,
        client: Optional[AsyncOpenAI] = None,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        **request_options: Any,
    ):
        self.model = model
        self.base_url = base_url
        self.api_key = api_key
        self.request_options = request_options
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        # Built lazily: constructing AsyncOpenAI without a key raises
        if self._client is None:
            self._client = AsyncOpenAI(base_url=self.base_url, api_key=self.api_key)
        return self._client

    async def complete(
        self,
        conversation: Sequence[ChatMessage],
        tool_catalog: Sequence[dict],
    ) -> Optional[ChatMessage]:
        request: dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_openai() for m in conversation],
            **self.request_options,
        }
        if tool_catalog:
            request["tools"] = list(tool_catalog)

        logger.debug(
            "backend.request",
            model=self.model,
            messages=len(request["messages"]),
            tools=len(tool_catalog),
        )
        completion = await self.client.chat.completions.create(**request)

        choices = getattr(completion, "choices", None) or []
        if not choices or choices[0].message is None:
            logger.warning("backend.empty_choices", model=self.model)
            return None
        return message_from_sdk(choices[0].message)
