"""Error types for the callback bridge and command wrappers"""

from typing import Any, Dict, Optional


def envelope(message: str) -> Dict[str, Dict[str, str]]:
    """Wire shape for errors reported back to a peer"""
    return {"err": {"message": message}}


class BridgeError(Exception):
    """Base class for bridge errors"""


class ProtocolError(BridgeError):
    """A received message is not a JSON object of commands"""

    def __init__(self, literal: Any, message: Optional[str] = None):
        self.literal = literal
        super().__init__(message or f"'{literal}' is invalid")


class BufferOverflowError(ProtocolError):
    """A session buffered more unterminated text than allowed"""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(
            f"<{size} buffered characters>",
            f"message exceeds {limit} characters",
        )


class DispatchError(BridgeError):
    """A registered handler raised while processing a command"""

    def __init__(self, command: str, cause: BaseException):
        self.command = command
        self.cause = cause
        super().__init__(f"Command '{command}' failed: {cause}")


class TransportError(BridgeError):
    """Binding, listening on or closing the local socket failed"""

    def __init__(self, path: str, cause: OSError):
        self.path = path
        self.cause = cause
        super().__init__(f"Socket {path}: {cause}")


class CommandError(Exception):
    """An external command exited with a non-zero status"""

    def __init__(self, command: str, returncode: int, stdout: str = "", stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        detail = stderr.strip() or stdout.strip()
        super().__init__(
            f"Command failed with exit code {returncode}: {command}"
            + (f"\n{detail}" if detail else "")
        )
