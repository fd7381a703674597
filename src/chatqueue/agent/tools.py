"""Tool registry — the callable mapping and the catalog advertised to the model.

Learn: The backend only ever sees the catalog (name, description, JSON
schema). Execution goes through the mapping. Keeping both in one registry
means a tool cannot be advertised without something to run it, while a
plain mapping plus a hand-written catalog still works for callers that
build them elsewhere.

A tool is an async callable `(parsed_args: dict, tool_args) -> str`, where
`tool_args` is the opaque per-run payload the caller handed to the
orchestrator (a chat id, a DB handle, whatever the tools need).
"""

import re
from typing import Any, Awaitable, Callable, Iterator, Mapping, Optional

ToolFunction = Callable[[dict, Any], Awaitable[str]]

_NAME_RE = re.compile(r"^[a-zA-Z0-9_-]+$")

EMPTY_PARAMETERS = {"type": "object", "properties": {}}


class ToolRegistry(Mapping[str, ToolFunction]):
    """Name → tool function mapping that also builds the tool catalog."""

    def __init__(self):
        self._functions: dict[str, ToolFunction] = {}
        self._catalog: list[dict] = []

    def register(
        self,
        name: str,
        func: ToolFunction,
        description: str = "",
        parameters: Optional[dict] = None,
    ) -> ToolFunction:
        if not _NAME_RE.match(name):
            raise ValueError(f"Tool name may only contain [a-zA-Z0-9_-]: {name!r}")
        if name in self._functions:
            raise ValueError(f"Tool {name!r} is already registered")

        self._functions[name] = func
        self._catalog.append({
            "type": "function",
            "function": {
                "name": name,
                "description": description or (func.__doc__ or "").strip(),
                "parameters": parameters or EMPTY_PARAMETERS,
            },
        })
        return func

    def tool(
        self,
        name: Optional[str] = None,
        description: str = "",
        parameters: Optional[dict] = None,
    ) -> Callable[[ToolFunction], ToolFunction]:
        """Decorator form of register(); the name defaults to the function's."""

        def decorator(func: ToolFunction) -> ToolFunction:
            return self.register(name or func.__name__, func, description, parameters)

        return decorator

    @property
    def functions(self) -> dict[str, ToolFunction]:
        return dict(self._functions)

    @property
    def catalog(self) -> list[dict]:
        return list(self._catalog)

    # Mapping protocol

    def __getitem__(self, name: str) -> ToolFunction:
        return self._functions[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._functions)

    def __len__(self) -> int:
        return len(self._functions)
