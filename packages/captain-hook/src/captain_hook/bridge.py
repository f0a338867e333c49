"""Local socket bridge that lets a subprocess call host-side commands"""

import asyncio
import errno
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Tuple, Union

from loguru import logger
from pydantic import BaseModel, Field, PositiveFloat, PositiveInt

from captain_hook_core.config import (
    DEFAULT_BRIDGE_NAME,
    DEFAULT_IDLE_TIMEOUT,
    DEFAULT_MAX_BUFFER_SIZE,
    READ_SIZE,
    SOCKET_SUFFIX,
)
from captain_hook.errors import (
    BridgeError,
    DispatchError,
    ProtocolError,
    TransportError,
    envelope,
)
from captain_hook.registry import CommandRegistry, Handler
from captain_hook.session import ClientSession
from captain_hook.termination import TerminationHooks, process_termination_hooks


class BridgeOptions(BaseModel):
    """Per-session limits; None leaves the session unbounded"""

    idle_timeout: Optional[PositiveFloat] = Field(
        default=DEFAULT_IDLE_TIMEOUT, description="Seconds without data before a session is closed"
    )
    max_buffer_size: Optional[PositiveInt] = Field(
        default=DEFAULT_MAX_BUFFER_SIZE, description="Characters buffered before a message is rejected"
    )
    read_size: PositiveInt = READ_SIZE


def socket_path(name: str = DEFAULT_BRIDGE_NAME, socket_dir: Union[str, Path, None] = None) -> Path:
    """Deterministic socket location for a bridge name"""
    return Path(socket_dir or tempfile.gettempdir()) / f"{name}{SOCKET_SUFFIX}"


def parse_message(text: str) -> Any:
    """Parse a message; text that is not JSON is taken literally"""
    try:
        return json.loads(text)
    except ValueError:
        return text


def compose_response(results: Dict[str, Any]) -> Any:
    """Unwrap single-command responses to the bare result"""
    if len(results) == 1:
        return next(iter(results.values()))
    return results


class Bridge:
    """
    Serves a command registry on a unix socket at {socket_dir}/{name}.sock.

    Each request is a JSON object of command name -> payload, terminated by
    CR LF. All commands of one request run concurrently and the response is
    written once every one of them has finished.

    Usage:
        async with Bridge("captain_hook", {"ping": lambda: "pong"}) as bridge:
            ...
    """

    def __init__(
        self,
        name: str = DEFAULT_BRIDGE_NAME,
        commands: Optional[Mapping[str, Handler]] = None,
        *,
        socket_dir: Union[str, Path, None] = None,
        hooks: Optional[TerminationHooks] = None,
        on_error: Optional[Callable[[BridgeError], None]] = None,
        options: Optional[BridgeOptions] = None,
    ):
        self.name = name
        self.commands = commands if isinstance(commands, CommandRegistry) else CommandRegistry(commands)
        self.path = socket_path(name, socket_dir)
        self.hooks = hooks if hooks is not None else process_termination_hooks()
        self.on_error = on_error
        self.options = options or BridgeOptions()
        self.server: Optional[asyncio.AbstractServer] = None
        self.sessions: Dict[str, ClientSession] = {}
        self.tasks: Set[asyncio.Task] = set()

    def __repr__(self) -> str:
        return f"Bridge(name={self.name!r}, path='{self.path}', connected={self.connected})"

    @property
    def connected(self) -> bool:
        return self.server is not None

    async def __aenter__(self) -> "Bridge":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def connect(self) -> None:
        """Bind and listen; resolves once the socket accepts connections"""
        if self.server is not None:
            return

        self.hooks.subscribe(self._handle_termination)
        try:
            await self._check_socket_path()
            self.server = await asyncio.start_unix_server(self._handle_client, path=str(self.path))
        except OSError as e:
            self.hooks.unsubscribe(self._handle_termination)
            raise TransportError(str(self.path), e) from e

        logger.info(f"Bridge '{self.name}' listening on: {self.path}")

    async def close(self) -> None:
        """Stop listening and remove the socket file; safe to call repeatedly"""
        if self.server is None:
            return

        server = self.server
        self.server = None
        self.hooks.unsubscribe(self._handle_termination)

        server.close()
        for session in list(self.sessions.values()):
            if session.writer is not None:
                session.writer.close()
        try:
            await server.wait_closed()
            self._remove_socket_file()
        except OSError as e:
            raise TransportError(str(self.path), e) from e
        # Session tasks outlive wait_closed before Python 3.12
        pending = self.tasks - {asyncio.current_task()}
        await asyncio.gather(*pending, return_exceptions=True)

        logger.info(f"Bridge '{self.name}' closed")

    async def _check_socket_path(self) -> None:
        """Remove a stale socket file; refuse to take over a live one"""
        if not self.path.is_socket():
            # Missing, or not a socket; bind reports the latter
            return
        try:
            _, writer = await asyncio.open_unix_connection(str(self.path))
        except ConnectionRefusedError:
            logger.warning(f"Removing stale socket: {self.path}")
            self.path.unlink(missing_ok=True)
            return
        writer.close()
        await writer.wait_closed()
        raise OSError(errno.EADDRINUSE, os.strerror(errno.EADDRINUSE), str(self.path))

    def _remove_socket_file(self) -> None:
        if self.path.is_socket():
            self.path.unlink(missing_ok=True)

    def _handle_termination(self, reason: str) -> None:
        """Synchronous cleanup; runs from atexit, signal or excepthook context"""
        self.hooks.unsubscribe(self._handle_termination)
        if self.server is not None:
            self.server.close()
            self.server = None
        try:
            self._remove_socket_file()
        except OSError as e:
            logger.error(f"Failed to remove socket {self.path}: {e}")
        logger.info(f"Bridge '{self.name}' released on {reason}")

    async def _read(self, reader: asyncio.StreamReader) -> bytes:
        read = reader.read(self.options.read_size)
        if self.options.idle_timeout is None:
            return await read
        return await asyncio.wait_for(read, self.options.idle_timeout)

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        task = asyncio.current_task()
        if task is not None:
            self.tasks.add(task)
        session = ClientSession(writer, self.options.max_buffer_size)
        self.sessions[session.id] = session
        logger.debug(f"Session {session.id} connected")

        try:
            while True:
                try:
                    data = await self._read(reader)
                except asyncio.TimeoutError:
                    logger.warning(f"Session {session.id} idle for {self.options.idle_timeout}s, closing")
                    break
                if not data:
                    break
                await self.handle_data(session, data)
        except (ConnectionError, OSError) as e:
            logger.debug(f"Session {session.id} connection lost: {e}")
        finally:
            self.sessions.pop(session.id, None)
            session.reset()
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass
            logger.debug(f"Session {session.id} disconnected")
            self.tasks.discard(task)

    async def handle_data(self, session: ClientSession, data: Union[bytes, str]) -> None:
        """Buffer one inbound fragment and answer every message it completes"""
        messages = session.feed_bytes(data) if isinstance(data, bytes) else session.feed(data)
        for message in messages:
            try:
                await self.handle_message(session, message)
            except BridgeError as e:
                self.report(e)

        overflow = session.take_overflow()
        if overflow is not None:
            await session.send(envelope(str(overflow)))
            self.report(overflow)

    async def handle_message(self, session: ClientSession, text: str) -> Any:
        """
        Parse, dispatch and answer one complete message.

        Returns the response sent to the session.

        Raises:
            ProtocolError: If the message is not a JSON object, after the
                error envelope has been sent
        """
        request = parse_message(text)
        if not isinstance(request, dict):
            error = ProtocolError(request if isinstance(request, str) else text)
            await session.send(envelope(str(error)))
            raise error

        results, errors = await self.dispatch(request)
        response = compose_response(results)
        try:
            await session.send(response)
        except (TypeError, ValueError) as e:
            # Unserializable handler result
            response = envelope(str(e))
            await session.send(response)
            errors.append(DispatchError(", ".join(results), e))

        for error in errors:
            self.report(error)
        return response

    async def dispatch(self, request: Dict[str, Any]) -> Tuple[Dict[str, Any], List[DispatchError]]:
        """Run every command in the request concurrently and join them all"""
        names = list(request)
        outcomes = await asyncio.gather(
            *(self.run_command(name, request[name]) for name in names),
            return_exceptions=True,
        )

        results: Dict[str, Any] = {}
        errors: List[DispatchError] = []
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
                raise outcome
            if isinstance(outcome, Exception):
                results[name] = envelope(str(outcome))
                errors.append(DispatchError(name, outcome))
            else:
                results[name] = outcome
        return results, errors

    async def run_command(self, name: str, payload: Any) -> Any:
        command = self.commands.lookup(name)
        if command is None:
            logger.debug(f"No handler registered for '{name}'")
            return None
        return await command(payload)

    def report(self, error: BridgeError) -> None:
        """Surface an error to the hosting application"""
        logger.error(f"Bridge '{self.name}': {error}")
        if self.on_error is not None:
            self.on_error(error)
