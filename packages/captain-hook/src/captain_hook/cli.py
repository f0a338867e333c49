#!/usr/bin/env python3
"""Captain Hook CLI - serve, call and filter with host-side commands"""

import asyncio
import json
import sys
import time
from pathlib import Path

import click

from captain_hook_core.config import CALLBACK_KINDS, DEFAULT_BRIDGE_NAME
from captain_hook.bridge import BridgeOptions, socket_path
from captain_hook.client import error_message, send_command
from captain_hook.daemon import BridgeDaemon
from captain_hook.errors import CommandError, TransportError
from captain_hook.filter_repo import GitFilterRepo
from captain_hook.git import FilterRepoOptions
from captain_hook.loader import load_commands_from_file, load_default_commands


def parse_payload(args_json):
    """CLI payload: JSON when it parses, otherwise the raw string"""
    if args_json is None:
        return None
    try:
        return json.loads(args_json)
    except ValueError:
        return args_json


def load_or_exit(handler_file):
    handler_path = Path(handler_file).resolve()
    if not handler_path.exists():
        click.echo(f"❌ Handler file not found: {handler_path}", err=True)
        sys.exit(1)
    try:
        return load_commands_from_file(str(handler_path))
    except Exception as e:
        click.echo(f"❌ Failed to load handlers: {e}", err=True)
        sys.exit(1)


@click.group()
def main():
    """Captain Hook - host-side callbacks over a local socket"""
    pass


@main.command()
@click.argument('handler_file', required=False)
@click.option('--name', default=DEFAULT_BRIDGE_NAME, show_default=True, help='Bridge name')
@click.option('--socket-dir', type=click.Path(file_okay=False), default=None, help='Socket directory (default: temp dir)')
@click.option('--log-file', type=click.Path(dir_okay=False), default=None, help='Write logs to this file')
@click.option('--idle-timeout', type=float, default=None, help='Close sessions idle for this many seconds')
@click.option('--max-buffer-size', type=int, default=None, help='Reject messages longer than this')
def serve(handler_file, name, socket_dir, log_file, idle_timeout, max_buffer_size):
    """
    Serve commands on a local socket until interrupted.

    Example:
        captain-hook serve my_handlers.py --name captain_hook
    """
    commands = load_or_exit(handler_file) if handler_file else load_default_commands()
    options = BridgeOptions(idle_timeout=idle_timeout, max_buffer_size=max_buffer_size)

    daemon = BridgeDaemon(
        name,
        commands,
        socket_dir=socket_dir,
        log_path=Path(log_file) if log_file else None,
        options=options,
    )
    click.echo(f"✅ Serving {len(commands)} command(s) on {daemon.bridge.path}")
    try:
        asyncio.run(daemon.run())
    except TransportError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument('command_name')
@click.argument('args_json', required=False)
@click.option('--name', default=DEFAULT_BRIDGE_NAME, show_default=True, help='Bridge name')
@click.option('--socket-dir', type=click.Path(file_okay=False), default=None, help='Socket directory (default: temp dir)')
def send(command_name, args_json, name, socket_dir):
    """
    Call one command on a running bridge and print the response.

    Example:
        captain-hook send echo '[1, 2, 3]'
    """
    path = socket_path(name, socket_dir)
    try:
        response = asyncio.run(send_command(path, {command_name: parse_payload(args_json)}))
    except ConnectionError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    message = error_message(response)
    if message is not None:
        click.echo(f"❌ {message}", err=True)
        sys.exit(1)
    click.echo(json.dumps(response))


@main.command()
@click.argument('handler_file')
@click.argument('command_name')
@click.argument('args_json', required=False)
def test(handler_file, command_name, args_json):
    """
    Run a command from a handler file in-process.

    Example:
        captain-hook test my_handlers.py messageCallback '"fix typo"'
    """
    commands = load_or_exit(handler_file)
    click.echo(f"✅ Loaded commands: {', '.join(sorted(commands))}")

    handler = commands.lookup(command_name)
    if handler is None:
        click.echo(f"❌ No command named '{command_name}'", err=True)
        sys.exit(1)

    click.echo("🔄 Executing command...")
    try:
        start_time = time.time()
        result = asyncio.run(handler(parse_payload(args_json)))
        execution_time = time.time() - start_time
    except Exception as e:
        click.echo(f"❌ Command failed: {e}", err=True)
        sys.exit(1)

    click.echo(f"✅ Result: {json.dumps(result, default=str)}")
    click.echo(f"⏱️  Execution time: {execution_time:.3f}s")


@main.command(name='filter')
@click.argument('kind', type=click.Choice(CALLBACK_KINDS))
@click.argument('handler_file')
@click.option('--cwd', type=click.Path(exists=True, file_okay=False), default='.', help='Repository to rewrite')
@click.option('--path', 'paths', multiple=True, help='Only keep these paths (repeatable)')
@click.option('--invert-paths', is_flag=True, help='Drop the given paths instead')
@click.option('--refs', multiple=True, help='Limit rewriting to these refs')
@click.option('--partial', is_flag=True, help='Pass --partial to git-filter-repo')
@click.option('--preserve-origin', is_flag=True, help='Keep the origin remote across the rewrite')
@click.option('--dry-run', 'dryrun', is_flag=True, help='Print the git-filter-repo command instead of running it')
def filter_command(kind, handler_file, cwd, paths, invert_paths, refs, partial, preserve_origin, dryrun):
    """
    Rewrite history with git-filter-repo, answering each callback with the
    single command defined in HANDLER_FILE.

    Example:
        captain-hook filter message reword.py --cwd ~/src/project
    """
    commands = load_or_exit(handler_file)
    if len(commands) != 1:
        click.echo(f"❌ Expected exactly one command, found: {', '.join(sorted(commands))}", err=True)
        sys.exit(1)
    handler = next(iter(commands.values())).handler

    options = FilterRepoOptions(
        paths=list(paths),
        invert_paths=invert_paths,
        refs=list(refs) or None,
        partial=partial,
    )
    repo = GitFilterRepo(cwd, preserve_origin=preserve_origin)
    try:
        result = asyncio.run(repo.callback(kind, handler, options, dryrun=dryrun))
    except CommandError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)
    except TransportError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    if dryrun:
        click.echo(result)
    else:
        click.echo("✅ History rewritten")


if __name__ == '__main__':
    main()
