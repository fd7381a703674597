"""Conversation turns — the data contract shared by every component.

Learn: A ChatMessage is immutable once built (frozen pydantic model). The
same shape is used for stored turns and for transient turns that only live
inside one orchestration run. On the wire (backend requests, store rows) a
message is the OpenAI chat-completions dict, so the store can keep the
exact payload the backend saw.
"""

from typing import Any, Iterable, Literal, Optional

from pydantic import BaseModel, model_validator

Role = Literal["system", "user", "assistant", "tool"]


class ToolCall(BaseModel):
    """One tool invocation requested by an assistant turn.

    `arguments` is the raw JSON text produced by the backend; the tool
    executor parses it, nothing else looks inside.
    """

    id: str
    name: str
    arguments: str = ""

    model_config = {"frozen": True}

    def to_openai(self) -> dict:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }

    @classmethod
    def from_openai(cls, data: dict) -> "ToolCall":
        function = data.get("function") or {}
        return cls(
            id=data["id"],
            name=function.get("name", ""),
            arguments=function.get("arguments") or "",
        )


class ChatMessage(BaseModel):
    """A single conversational turn."""

    role: Role
    content: Optional[str] = None
    tool_call_id: Optional[str] = None
    tool_calls: Optional[tuple[ToolCall, ...]] = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_role_fields(self):
        if self.role == "tool" and not self.tool_call_id:
            raise ValueError("tool messages require a tool_call_id")
        if self.role != "tool" and self.tool_call_id is not None:
            raise ValueError("tool_call_id is only valid on tool messages")
        if self.tool_calls is not None and self.role != "assistant":
            raise ValueError("tool_calls are only valid on assistant messages")
        if self.content is None and not self.tool_calls:
            raise ValueError("content may only be null on a turn carrying tool calls")
        return self

    # ─── Constructors ─────────────────────────────────────

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(role="user", content=content)

    @classmethod
    def assistant(
        cls,
        content: Optional[str] = None,
        tool_calls: Optional[Iterable[ToolCall]] = None,
    ) -> "ChatMessage":
        calls = tuple(tool_calls) if tool_calls else None
        return cls(role="assistant", content=content, tool_calls=calls)

    @classmethod
    def tool(cls, tool_call_id: str, content: str) -> "ChatMessage":
        return cls(role="tool", tool_call_id=tool_call_id, content=content)

    # ─── Wire format ──────────────────────────────────────

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    def to_openai(self) -> dict[str, Any]:
        """Render as an OpenAI chat-completions message dict."""
        data: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_call_id is not None:
            data["tool_call_id"] = self.tool_call_id
        if self.tool_calls:
            data["tool_calls"] = [call.to_openai() for call in self.tool_calls]
        return data

    @classmethod
    def from_openai(cls, data: dict[str, Any]) -> "ChatMessage":
        """Parse an OpenAI chat-completions message dict."""
        raw_calls = data.get("tool_calls")
        calls = tuple(ToolCall.from_openai(c) for c in raw_calls) if raw_calls else None
        return cls(
            role=data["role"],
            content=data.get("content"),
            tool_call_id=data.get("tool_call_id"),
            tool_calls=calls,
        )


def visible_replies(messages: Iterable[ChatMessage]) -> list[str]:
    """Texts a transport should show the user: assistant turns with content."""
    return [
        m.content
        for m in messages
        if m.role == "assistant" and isinstance(m.content, str) and m.content
    ]
