"""Tests for the captain-hook CLI."""

import asyncio
import json
import shlex
import threading
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from captain_hook.bridge import Bridge
from captain_hook.cli import main, parse_payload
from captain_hook.termination import ManualTerminationHooks

HANDLER_FILE = '''
from captain_hook import command


@command(name="messageCallback")
def reword(message):
    return message.replace("teh", "the")
'''


@pytest.fixture()
def handler_file(tmp_path: Path) -> Path:
    path = tmp_path / "reword.py"
    path.write_text(HANDLER_FILE)
    return path


@pytest.fixture()
def running_bridge(socket_dir: Path) -> Generator[Bridge]:
    """A bridge served from its own event loop in a background thread."""
    bridge = Bridge("cli", {"ping": lambda: "pong"}, socket_dir=socket_dir, hooks=ManualTerminationHooks())
    loop = asyncio.new_event_loop()
    thread = threading.Thread(target=loop.run_forever, daemon=True)
    thread.start()
    asyncio.run_coroutine_threadsafe(bridge.connect(), loop).result(timeout=5)
    yield bridge
    asyncio.run_coroutine_threadsafe(bridge.close(), loop).result(timeout=5)
    loop.call_soon_threadsafe(loop.stop)
    thread.join(timeout=5)
    loop.close()


def test_parse_payload():
    assert parse_payload(None) is None
    assert parse_payload("[1, 2]") == [1, 2]
    assert parse_payload("plain text") == "plain text"


def test_send(running_bridge: Bridge, socket_dir: Path):
    result = CliRunner().invoke(main, ["send", "ping", "--name", "cli", "--socket-dir", str(socket_dir)])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == "pong"


def test_send_without_bridge(socket_dir: Path):
    result = CliRunner().invoke(main, ["send", "ping", "--name", "nobody", "--socket-dir", str(socket_dir)])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_test_command(handler_file: Path):
    result = CliRunner().invoke(main, ["test", str(handler_file), "messageCallback", "fix teh bug"])
    assert result.exit_code == 0, result.output
    assert 'Result: "fix the bug"' in result.output


def test_test_unknown_command(handler_file: Path):
    result = CliRunner().invoke(main, ["test", str(handler_file), "nope"])
    assert result.exit_code == 1
    assert "No command named 'nope'" in result.output


def test_missing_handler_file(tmp_path: Path):
    result = CliRunner().invoke(main, ["test", str(tmp_path / "missing.py"), "x"])
    assert result.exit_code == 1
    assert "Handler file not found" in result.output


def test_filter_dry_run(handler_file: Path, tmp_path: Path):
    result = CliRunner().invoke(
        main,
        ["filter", "message", str(handler_file), "--cwd", str(tmp_path), "--path", "src", "--dry-run"],
    )
    assert result.exit_code == 0, result.output
    parts = shlex.split(result.output)
    assert parts[:2] == ["git", "filter-repo"]
    assert parts[parts.index("--path") + 1] == "src"
    assert "--message-callback" in parts
    assert parts[-1] == "--force"


def test_filter_rejects_unknown_kind(handler_file: Path):
    result = CliRunner().invoke(main, ["filter", "tree", str(handler_file), "--dry-run"])
    assert result.exit_code == 2
