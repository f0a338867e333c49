"""
Client loaded by git-filter-repo callback bodies.

Runs inside git-filter-repo's own interpreter, so it only uses the standard
library. Every callback invocation sends one request naming
"<kind>Callback" to the host bridge and blocks until the response arrives.
"""

import json
import os
import socket
import tempfile

TERMINATOR = b"\r\n"
SOCKET_ENV_VAR = "CAPTAIN_HOOK_SOCKET"
DEFAULT_SOCKET = os.path.join(tempfile.gettempdir(), "captain_hook.sock")

# Callbacks whose argument and return value are plain bytes
BYTES_CALLBACKS = ("email", "filename", "message", "name", "refname")

_connection = None
_pending = b""


def socket_path():
    return os.environ.get(SOCKET_ENV_VAR) or DEFAULT_SOCKET


def connection():
    global _connection
    if _connection is None:
        _connection = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        _connection.connect(socket_path())
    return _connection


def disconnect():
    global _connection, _pending
    if _connection is not None:
        _connection.close()
    _connection = None
    _pending = b""


def request(commands):
    """Send one request and block for its response"""
    global _pending
    conn = connection()
    conn.sendall(json.dumps(commands).encode("utf-8") + TERMINATOR)
    while TERMINATOR not in _pending:
        chunk = conn.recv(65536)
        if not chunk:
            disconnect()
            raise ConnectionError("captain-hook bridge closed the connection")
        _pending += chunk
    message, _pending = _pending.split(TERMINATOR, 1)
    response = json.loads(message.decode("utf-8"))
    if isinstance(response, dict) and set(response) == {"err"}:
        raise RuntimeError(response["err"].get("message"))
    return response


def to_wire(value):
    if isinstance(value, bytes):
        return value.decode("utf-8", "surrogateescape")
    return value


def from_wire(value, current):
    if isinstance(current, bytes) and isinstance(value, str):
        return value.encode("utf-8", "surrogateescape")
    return value


def serializable(value):
    if isinstance(value, (bytes, str, int, float, bool)) or value is None:
        return True
    if isinstance(value, list):
        return all(isinstance(item, (bytes, str, int)) for item in value)
    return False


def serialize(obj):
    data = {}
    for key, value in vars(obj).items():
        if key.startswith("_") or not serializable(value):
            continue
        data[key] = [to_wire(item) for item in value] if isinstance(value, list) else to_wire(value)
    return data


def apply(obj, data):
    for key, value in data.items():
        if not hasattr(obj, key):
            continue
        current = getattr(obj, key)
        if isinstance(current, list) and isinstance(value, list):
            sample = current[0] if current else None
            value = [from_wire(item, sample) for item in value]
        else:
            value = from_wire(value, current)
        setattr(obj, key, value)


def callback(name, obj):
    """Round-trip one filter-repo object through the host's <name>Callback"""
    command = "%sCallback" % name
    if name in BYTES_CALLBACKS or isinstance(obj, bytes):
        result = request({command: to_wire(obj)})
        if result is None:
            return None if name == "filename" else obj
        return from_wire(result, obj)

    result = request({command: serialize(obj)})
    if isinstance(result, dict):
        apply(obj, result)
    return obj
