"""Tests for the script git-filter-repo callback bodies load."""

import asyncio
from collections.abc import Generator

import pytest

from captain_hook.bridge import Bridge
from captain_hook.scripts import callbacks
from captain_hook.termination import ManualTerminationHooks


class FakeCommit:
    """The attributes git-filter-repo's Commit carries, minus file changes."""

    def __init__(self) -> None:
        self.branch = b"refs/heads/main"
        self.original_id = b"abc123"
        self.author_name = b"Ada"
        self.author_email = b"ada@example.com"
        self.author_date = b"1600000000 +0200"
        self.committer_name = b"Ada"
        self.committer_email = b"ada@example.com"
        self.committer_date = b"1600000000 +0200"
        self.message = b"wip\n"
        self.file_changes = [object()]
        self.parents = [1]
        self.id = 2
        self.old_id = 2
        self.type = "commit"
        self.dumped = 0


@pytest.fixture(autouse=True)
def fresh_connection() -> Generator[None]:
    callbacks.disconnect()
    yield
    callbacks.disconnect()


@pytest.fixture()
async def host(socket_dir, monkeypatch: pytest.MonkeyPatch):
    received = []

    def message(text):
        received.append(text)
        return text.replace("wip", "Work in progress")

    def filename(name):
        received.append(name)
        return None if name.startswith("secrets/") else name

    def commit(data):
        received.append(data)
        return {**data, "author_name": "Ada Lovelace"}

    commands = {
        "messageCallback": message,
        "filenameCallback": filename,
        "commitCallback": commit,
    }
    bridge = Bridge("callbacks", commands, socket_dir=socket_dir, hooks=ManualTerminationHooks())
    await bridge.connect()
    monkeypatch.setenv(callbacks.SOCKET_ENV_VAR, str(bridge.path))
    yield received
    await bridge.close()


def test_socket_path_defaults_to_temp_dir(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv(callbacks.SOCKET_ENV_VAR, raising=False)
    assert callbacks.socket_path().endswith("captain_hook.sock")


async def test_bytes_callback(host: list):
    result = await asyncio.to_thread(callbacks.callback, "message", b"wip\n")
    assert result == b"Work in progress\n"
    assert host == ["wip\n"]


async def test_filename_dropped_on_null(host: list):
    assert await asyncio.to_thread(callbacks.callback, "filename", b"src/app.py") == b"src/app.py"
    assert await asyncio.to_thread(callbacks.callback, "filename", b"secrets/key") is None


async def test_object_callback_updates_in_place(host: list):
    commit = FakeCommit()

    await asyncio.to_thread(callbacks.callback, "commit", commit)

    sent = host[0]
    assert sent["author_date"] == "1600000000 +0200"
    assert sent["parents"] == [1]
    assert "file_changes" not in sent
    assert commit.author_name == b"Ada Lovelace"
    assert commit.message == b"wip\n"
    assert commit.parents == [1]


async def test_connection_is_reused(host: list):
    first = await asyncio.to_thread(callbacks.connection)
    await asyncio.to_thread(callbacks.callback, "message", b"wip")
    await asyncio.to_thread(callbacks.callback, "message", b"wip")
    assert callbacks.connection() is first
    assert len(host) == 2


async def test_error_envelope_raises(host: list):
    with pytest.raises(RuntimeError, match="is invalid"):
        await asyncio.to_thread(callbacks.request, "not an object")
