"""CLI tests via click's CliRunner.

Learn: build_runtime is swapped for one that shares a single in-memory
store and an echo backend across invocations, so `send` followed by
`history` sees the same conversation without a database or network.
"""

import pytest
from click.testing import CliRunner

from chatqueue.cli import main as cli
from chatqueue.config import Settings
from chatqueue.messages import ChatMessage
from chatqueue.runtime import build_runtime
from chatqueue.store.memory import InMemoryMessageStore

from conftest import EchoBackend, ScriptedBackend


@pytest.fixture()
def store():
    return InMemoryMessageStore()


@pytest.fixture()
def runner(monkeypatch, store):
    monkeypatch.setattr(cli, "configure_logging", lambda *a, **kw: None)

    def fake_build_runtime(settings, memory=False, **kwargs):
        return build_runtime(Settings(), store=store, backend=EchoBackend())

    monkeypatch.setattr(cli, "build_runtime", fake_build_runtime)
    return CliRunner()


def test_send_prints_reply(runner):
    result = runner.invoke(cli.main, ["--memory", "send", "alice", "hi"])

    assert result.exit_code == 0
    assert "echo: hi" in result.output


def test_history_after_send(runner):
    runner.invoke(cli.main, ["send", "alice", "hi"])

    result = runner.invoke(cli.main, ["history", "alice"])

    assert result.exit_code == 0
    assert "hi" in result.output
    assert "echo: hi" in result.output


def test_history_empty(runner):
    result = runner.invoke(cli.main, ["history", "nobody"])

    assert result.exit_code == 0
    assert "No messages." in result.output


@pytest.mark.asyncio
async def test_history_pending(runner, store):
    await store.insert_messages("alice", True, [ChatMessage.user("waiting")])

    result = runner.invoke(cli.main, ["history", "alice", "--pending"])

    assert "waiting" in result.output


def test_chat_reads_lines_until_eof(runner, store):
    result = runner.invoke(cli.main, ["chat", "alice"], input="one\n\ntwo\n")

    assert result.exit_code == 0
    assert "echo: one" in result.output
    assert "echo: two" in result.output


def test_init_db_with_memory_is_a_noop(runner):
    result = runner.invoke(cli.main, ["--memory", "init-db"])

    assert result.exit_code == 0
    assert "Nothing to initialize" in result.output


def test_send_failure_exits_nonzero(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda *a, **kw: None)

    def failing_runtime(settings, memory=False, **kwargs):
        backend = ScriptedBackend([ConnectionError("backend unreachable")])
        return build_runtime(Settings(), store=InMemoryMessageStore(), backend=backend)

    monkeypatch.setattr(cli, "build_runtime", failing_runtime)

    result = CliRunner().invoke(cli.main, ["send", "alice", "hi"])

    assert result.exit_code == 1
