"""Tests for loading commands from handler files."""

from pathlib import Path

import pytest

from captain_hook.loader import load_commands_from_file, load_default_commands
from captain_hook.registry import CommandSet

HANDLER_FILE = '''
from captain_hook import command


@command
def shout(text):
    return text.upper()


@command(name="messageCallback")
def reword(message):
    return message.replace("teh", "the")


def helper():
    return "not a command"
'''


def test_load_commands(tmp_path: Path):
    path = tmp_path / "handlers.py"
    path.write_text(HANDLER_FILE)

    registry = load_commands_from_file(str(path))

    assert set(registry) == {"shout", "messageCallback"}
    assert CommandSet.get_instance().registry() == {}


async def test_loaded_commands_run(tmp_path: Path):
    path = tmp_path / "handlers.py"
    path.write_text(HANDLER_FILE)

    registry = load_commands_from_file(str(path))

    assert await registry["messageCallback"]("fix teh bug") == "fix the bug"


def test_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_commands_from_file(str(tmp_path / "missing.py"))


def test_file_without_commands(tmp_path: Path):
    path = tmp_path / "empty.py"
    path.write_text("x = 1\n")
    with pytest.raises(ValueError, match="No @command"):
        load_commands_from_file(str(path))


async def test_default_commands():
    registry = load_default_commands()
    assert await registry["ping"](None) == "pong"
    assert await registry["echo"](None) == []
    assert await registry["echo"]([1, 2]) == [1, 2]
    assert "now" in registry
