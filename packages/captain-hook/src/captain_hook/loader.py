"""Dynamic command loading from Python files"""

import sys
import importlib.util
from pathlib import Path

from captain_hook.registry import CommandRegistry, CommandSet


def load_commands_from_file(handler_path: str) -> CommandRegistry:
    """
    Dynamically load commands from a Python file.

    Args:
        handler_path: Path to Python file with @command decorated functions

    Returns:
        Registry of the commands the file defines

    Raises:
        FileNotFoundError: If handler file doesn't exist
        ValueError: If the file defines no commands
    """
    path = Path(handler_path).resolve()

    if not path.exists():
        raise FileNotFoundError(f"Handler file not found: {path}")

    module_name = f"captain_hook_handlers_{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ValueError(f"Cannot load module from {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module

    # Clear collected commands before loading
    command_set = CommandSet.get_instance()
    command_set.clear()
    try:
        # Execute module (this will trigger @command decorators)
        spec.loader.exec_module(module)
        registry = command_set.registry()
    finally:
        command_set.clear()

    if not registry:
        raise ValueError(f"No @command decorated function found in {path}")

    return registry


def load_default_commands() -> CommandRegistry:
    """Built-in commands served when no handler file is given"""
    from captain_hook.handlers.default import DEFAULT_COMMANDS
    return DEFAULT_COMMANDS
