"""Shared test fixtures for captain-hook."""

import shutil
import tempfile
from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import pytest

from captain_hook.bridge import Bridge
from captain_hook.errors import BridgeError
from captain_hook.termination import ManualTerminationHooks


class FakeWriter:
    """Minimal StreamWriter that collects written bytes."""

    def __init__(self) -> None:
        self._buf = bytearray()
        self.closed = False

    def write(self, data: bytes) -> None:
        self._buf.extend(data)

    async def drain(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True

    @property
    def written(self) -> bytes:
        return bytes(self._buf)


@pytest.fixture()
def socket_dir() -> Generator[Path]:
    # unix socket paths are limited to ~100 bytes, tmp_path can be longer
    path = Path(tempfile.mkdtemp(prefix="ch-"))
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture()
def hooks() -> ManualTerminationHooks:
    return ManualTerminationHooks()


@pytest.fixture()
def errors() -> list[BridgeError]:
    return []


@pytest.fixture()
def commands() -> dict:
    return {
        "ping": lambda: "pong",
        "a": lambda x: x + 1,
        "b": lambda x: x * 2,
        "echo": lambda *args: list(args),
    }


@pytest.fixture()
async def bridge(
    socket_dir: Path,
    hooks: ManualTerminationHooks,
    errors: list[BridgeError],
    commands: dict,
) -> AsyncGenerator[Bridge]:
    bridge = Bridge("test_bridge", commands, socket_dir=socket_dir, hooks=hooks, on_error=errors.append)
    await bridge.connect()
    yield bridge
    await bridge.close()
