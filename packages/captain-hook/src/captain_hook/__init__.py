"""Captain Hook: call host-side Python from git-filter-repo callbacks"""

from captain_hook.bridge import Bridge, BridgeOptions
from captain_hook.client import BridgeClient, send_command
from captain_hook.errors import (
    BridgeError,
    BufferOverflowError,
    CommandError,
    DispatchError,
    ProtocolError,
    TransportError,
)
from captain_hook.filter_repo import GitFilterRepo
from captain_hook.git import FilterRepoOptions, Git
from captain_hook.pip import Pip
from captain_hook.registry import Command, CommandRegistry, Positional, Single, command
from captain_hook.session import ClientSession
from captain_hook.termination import ManualTerminationHooks, ProcessTerminationHooks

__all__ = [
    "Bridge",
    "BridgeClient",
    "BridgeError",
    "BridgeOptions",
    "BufferOverflowError",
    "ClientSession",
    "Command",
    "CommandError",
    "CommandRegistry",
    "DispatchError",
    "FilterRepoOptions",
    "Git",
    "GitFilterRepo",
    "ManualTerminationHooks",
    "Pip",
    "Positional",
    "ProcessTerminationHooks",
    "ProtocolError",
    "Single",
    "TransportError",
    "command",
    "send_command",
]
