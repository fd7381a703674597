"""Tool registry tests."""

import pytest

from chatqueue.agent.tools import EMPTY_PARAMETERS, ToolRegistry


def test_register_builds_mapping_and_catalog():
    registry = ToolRegistry()

    async def weather(args, tool_args):
        """Current weather for a city."""
        return "sunny"

    registry.register("weather", weather, parameters={
        "type": "object",
        "properties": {"city": {"type": "string"}},
    })

    assert registry["weather"] is weather
    assert list(registry) == ["weather"]
    assert registry.catalog == [{
        "type": "function",
        "function": {
            "name": "weather",
            "description": "Current weather for a city.",
            "parameters": {"type": "object", "properties": {"city": {"type": "string"}}},
        },
    }]


def test_decorator_defaults_name_and_parameters():
    registry = ToolRegistry()

    @registry.tool(description="Roll a die")
    async def roll(args, tool_args):
        return "4"

    spec = registry.catalog[0]["function"]
    assert spec["name"] == "roll"
    assert spec["parameters"] == EMPTY_PARAMETERS
    assert len(registry) == 1


def test_duplicate_and_invalid_names_rejected():
    registry = ToolRegistry()

    async def noop(args, tool_args):
        return ""

    registry.register("noop", noop)
    with pytest.raises(ValueError):
        registry.register("noop", noop)
    with pytest.raises(ValueError):
        registry.register("no op", noop)


def test_catalog_is_a_copy():
    registry = ToolRegistry()

    async def noop(args, tool_args):
        return ""

    registry.register("noop", noop)
    registry.catalog.clear()
    registry.functions.clear()
    assert len(registry.catalog) == 1
    assert "noop" in registry
