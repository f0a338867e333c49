"""Client side of the bridge wire protocol"""

import asyncio
import json
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from captain_hook_core.config import ENCODING, STREAM_LIMIT, TERMINATOR
from captain_hook.errors import ProtocolError
from captain_hook.session import serialize


def error_message(response: Any) -> Optional[str]:
    """Message of an {"err": {"message": ...}} envelope, None otherwise"""
    if isinstance(response, dict) and set(response) == {"err"} and isinstance(response["err"], dict):
        return response["err"].get("message")
    return None


class BridgeClient:
    """
    A reusable connection to a bridge.

    Usage:
        async with BridgeClient(path) as client:
            pong = await client.call("ping")
    """

    def __init__(self, socket_path: Union[str, Path], raise_errors: bool = False):
        self.socket_path = Path(socket_path)
        self.raise_errors = raise_errors
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None

    async def __aenter__(self) -> "BridgeClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def connect(self) -> None:
        if self._writer is not None:
            return
        if not self.socket_path.exists():
            raise ConnectionError(f"Bridge socket not found: {self.socket_path}")
        self._reader, self._writer = await asyncio.open_unix_connection(
            str(self.socket_path), limit=STREAM_LIMIT
        )

    async def close(self) -> None:
        if self._writer is None:
            return
        writer = self._writer
        self._reader = self._writer = None
        writer.close()
        try:
            await writer.wait_closed()
        except (ConnectionError, OSError):
            pass

    async def send_raw(self, text: str) -> Any:
        """Send text as-is (terminator included by the caller) and await one response"""
        await self.connect()
        self._writer.write(text.encode(ENCODING))
        await self._writer.drain()
        return await self.receive()

    async def receive(self) -> Any:
        data = await self._reader.readuntil(TERMINATOR.encode(ENCODING))
        response = json.loads(data.decode(ENCODING)[: -len(TERMINATOR)])
        message = error_message(response)
        if self.raise_errors and message is not None:
            raise ProtocolError(response, message)
        return response

    async def request(self, commands: Mapping[str, Any]) -> Any:
        """Send one request object and await its response"""
        return await self.send_raw(serialize(dict(commands)))

    async def call(self, name: str, *args: Any) -> Any:
        """Call one command; several args are sent as positional arguments"""
        if len(args) == 1:
            payload = args[0]
        elif args:
            payload = list(args)
        else:
            payload = None
        return await self.request({name: payload})


async def send_command(socket_path: Union[str, Path], request: Mapping[str, Any]) -> Any:
    """Send a single request over a fresh connection"""
    try:
        async with BridgeClient(socket_path) as client:
            return await client.request(request)
    except (asyncio.IncompleteReadError, OSError, ValueError) as e:
        raise ConnectionError(f"Failed to communicate with bridge: {e}") from e
