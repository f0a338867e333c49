"""Default commands for captain-hook"""

from datetime import datetime, timezone

from captain_hook.registry import Command, CommandRegistry


def ping():
    return "pong"


def echo(*args):
    """Returns the positional arguments it was called with"""
    return list(args)


def now():
    return datetime.now(timezone.utc).isoformat()


DEFAULT_COMMANDS = CommandRegistry({
    "ping": Command(ping),
    "echo": Command(echo),
    "now": Command(now),
})
