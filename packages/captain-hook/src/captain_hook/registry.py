"""Command registry and handler decorator for the callback bridge"""

import inspect
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Tuple, Union


@dataclass(frozen=True)
class Single:
    """The whole payload is one argument"""
    value: Any


@dataclass(frozen=True)
class Positional:
    """The payload is an ordered list of positional arguments"""
    values: tuple = field(default_factory=tuple)


Arguments = Union[Single, Positional]


def positional_arity(handler: Callable[..., Any]) -> Tuple[Optional[int], int]:
    """
    (most, required) positional arguments a handler takes.

    most is None when the handler accepts *args or its signature cannot be
    read, in which case every argument is passed through.
    """
    try:
        parameters = inspect.signature(handler).parameters.values()
    except (TypeError, ValueError):
        return None, 0

    most = required = 0
    for parameter in parameters:
        if parameter.kind is inspect.Parameter.VAR_POSITIONAL:
            return None, required
        if parameter.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            most += 1
            if parameter.default is inspect.Parameter.empty:
                required += 1
    return most, required


@dataclass(frozen=True)
class Command:
    """
    A named host-side handler.

    With spread=True (the default) an array payload is passed as positional
    arguments and any other payload as a single argument. With spread=False
    every payload, arrays included, is passed as a single argument.

    Arguments beyond what the handler accepts are dropped, and a null payload
    is no argument at all for a handler that requires none.
    """

    handler: Callable[..., Any]
    spread: bool = True
    max_args: Optional[int] = field(init=False, repr=False, compare=False, default=None)
    required_args: int = field(init=False, repr=False, compare=False, default=0)

    def __post_init__(self):
        max_args, required_args = positional_arity(self.handler)
        object.__setattr__(self, "max_args", max_args)
        object.__setattr__(self, "required_args", required_args)

    def arguments(self, payload: Any) -> Arguments:
        if self.spread and isinstance(payload, list):
            return Positional(tuple(payload))
        return Single(payload)

    async def invoke(self, arguments: Arguments) -> Any:
        if isinstance(arguments, Positional):
            values = arguments.values
        elif arguments.value is None and self.required_args == 0:
            values = ()
        else:
            values = (arguments.value,)
        if self.max_args is not None:
            values = values[:self.max_args]

        result = self.handler(*values)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def __call__(self, payload: Any) -> Any:
        return await self.invoke(self.arguments(payload))


Handler = Union[Command, Callable[..., Any]]


class CommandRegistry(Mapping[str, Command]):
    """Read-only lookup table of command name -> Command"""

    def __init__(self, commands: Optional[Mapping[str, Handler]] = None):
        table: Dict[str, Command] = {}
        for name, handler in (commands or {}).items():
            if not isinstance(handler, Command):
                if not callable(handler):
                    raise TypeError(f"Handler for '{name}' is not callable")
                handler = Command(handler)
            table[name] = handler
        self._commands = MappingProxyType(table)

    def __getitem__(self, name: str) -> Command:
        return self._commands[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._commands)

    def __len__(self) -> int:
        return len(self._commands)

    def __repr__(self) -> str:
        return f"CommandRegistry({sorted(self._commands)})"

    def lookup(self, name: str) -> Optional[Command]:
        """Get a command by name, None when unregistered"""
        return self._commands.get(name)


class CommandSet:
    """Collects @command decorated handlers while a handler file loads"""
    _instance = None

    def __init__(self):
        self._commands: Dict[str, Command] = {}

    @classmethod
    def get_instance(cls):
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def register(self, name: str, command: Command):
        self._commands[name] = command

    def clear(self):
        self._commands = {}

    def registry(self) -> CommandRegistry:
        return CommandRegistry(self._commands)


def command(func: Optional[Callable] = None, *, name: Optional[str] = None, spread: bool = True):
    """
    Decorator for bridge command handlers.

    The handler is registered under its function name unless name is given.
    The function itself is returned unchanged, so it stays callable.

    Usage:
        from captain_hook import command

        @command
        def ping():
            return "pong"

        @command(name="messageCallback")
        def reword(message: str) -> str:
            return message.upper()

        @command(spread=False)
        def total(values: list) -> int:
            return sum(values)
    """
    def register(f: Callable) -> Callable:
        if not callable(f):
            raise TypeError(f"Command handler must be callable, got {type(f).__name__}")
        CommandSet.get_instance().register(name or f.__name__, Command(f, spread=spread))
        return f

    if func is not None:
        return register(func)
    return register
