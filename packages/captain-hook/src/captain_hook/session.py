"""Per-connection buffering state for the callback bridge"""

import codecs
import json
import uuid
from typing import Any, List, Optional

from pydantic import BaseModel

from captain_hook_core.config import ENCODING, TERMINATOR
from captain_hook.errors import BufferOverflowError


def encode_value(value: Any) -> Any:
    """json.dumps default for values handlers commonly return"""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (bytes, bytearray)):
        return value.decode(ENCODING, errors="surrogateescape")
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def serialize(value: Any) -> str:
    """One wire message: JSON text plus terminator"""
    return json.dumps(value, default=encode_value) + TERMINATOR


class ClientSession:
    """
    One accepted connection.

    Holds the fragments received since the last complete message. Fragments
    may split a message (or a multi-byte character, or the terminator
    itself) anywhere; feed() returns the messages completed so far.

    Going over max_buffer_size discards the buffer and leaves the error in
    overflow, for the caller to report after answering the returned messages.
    """

    def __init__(self, writer=None, max_buffer_size: Optional[int] = None):
        self.id = uuid.uuid4().hex
        self.writer = writer
        self.max_buffer_size = max_buffer_size
        self.fragments: List[str] = []
        self._decoder = codecs.getincrementaldecoder(ENCODING)(errors="replace")
        self._size = 0
        self.overflow: Optional[BufferOverflowError] = None

    def __repr__(self) -> str:
        return f"ClientSession(id={self.id!r}, buffered={self._size})"

    @property
    def buffered(self) -> str:
        return "".join(self.fragments)

    def feed_bytes(self, data: bytes) -> List[str]:
        return self.feed(self._decoder.decode(data))

    def feed(self, fragment: str) -> List[str]:
        """Append a fragment and cut every message it terminates"""
        if not fragment:
            return []

        # Only the tail can complete a terminator split across fragments
        tail = self.fragments[-1][-(len(TERMINATOR) - 1):] if self.fragments else ""
        if TERMINATOR not in tail + fragment:
            self._append(fragment)
            return []

        text = self.buffered + fragment
        self.reset()
        *messages, rest = text.split(TERMINATOR)
        if rest:
            self._append(rest)
        return messages

    def reset(self):
        self.fragments = []
        self._size = 0

    async def send(self, value: Any) -> None:
        """Write one terminated JSON message to this session's connection"""
        if self.writer is None:
            raise ConnectionError(f"Session {self.id} has no connection")
        self.writer.write(serialize(value).encode(ENCODING))
        await self.writer.drain()

    def take_overflow(self) -> Optional[BufferOverflowError]:
        """Pop the overflow recorded by the last feed, if any"""
        overflow, self.overflow = self.overflow, None
        return overflow

    def _append(self, fragment: str):
        self.fragments.append(fragment)
        self._size += len(fragment)
        if self.max_buffer_size is not None and self._size > self.max_buffer_size:
            self.overflow = BufferOverflowError(self._size, self.max_buffer_size)
            self.reset()
