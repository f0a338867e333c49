"""Tests for the bridge client."""

from pathlib import Path

import pytest

from captain_hook.bridge import Bridge
from captain_hook.client import BridgeClient, error_message, send_command
from captain_hook.errors import ProtocolError


def test_error_message():
    assert error_message({"err": {"message": "boom"}}) == "boom"
    assert error_message({"err": 1}) is None
    assert error_message({"err": {"message": "x"}, "ping": "pong"}) is None
    assert error_message("pong") is None


async def test_send_command(bridge: Bridge):
    assert await send_command(bridge.path, {"a": 1, "b": 2}) == {"a": 2, "b": 4}


async def test_send_command_without_bridge(socket_dir: Path):
    with pytest.raises(ConnectionError, match="not found"):
        await send_command(socket_dir / "missing.sock", {"ping": None})


async def test_client_reuses_its_connection(bridge: Bridge):
    async with BridgeClient(bridge.path) as client:
        assert await client.call("ping") == "pong"
        assert await client.call("a", 41) == 42
        assert await client.call("echo", 1, 2, 3) == [1, 2, 3]
        assert len(bridge.sessions) == 1


async def test_client_can_raise_error_envelopes(bridge: Bridge):
    async with BridgeClient(bridge.path, raise_errors=True) as client:
        with pytest.raises(ProtocolError, match="'oops' is invalid"):
            await client.send_raw("oops\r\n")
