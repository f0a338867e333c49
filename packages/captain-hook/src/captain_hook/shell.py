"""Spawning external tools through the shell"""

import asyncio
import codecs
import json
import os
import shlex
import sys
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Union

from loguru import logger

from captain_hook_core.config import ENCODING, READ_SIZE
from captain_hook.errors import CommandError

Args = Union[str, Sequence[str]]


def as_list(args: Args) -> list:
    if isinstance(args, str):
        return [args]
    return list(args)


def parse_output(stdout: str) -> Any:
    """Command output as JSON when it parses, otherwise the raw text"""
    try:
        return json.loads(stdout)
    except ValueError:
        return stdout


class CommandRunner:
    """Runs `<binary> <args>` in a shell and captures its output"""

    def __init__(self, binary: str, cwd: Union[str, Path, None] = None):
        self.binary = binary
        self.cwd = Path(cwd) if cwd else Path.cwd()

    def compose(self, args: Args) -> str:
        return " ".join([self.binary, *(shlex.quote(str(arg)) for arg in as_list(args) if arg != "")])

    async def run(
        self,
        args: Args,
        *,
        cwd: Union[str, Path, None] = None,
        dryrun: bool = False,
        pipe: bool = False,
        env: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """
        Run the command.

        Args:
            args: Arguments after the binary
            cwd: Working directory, defaults to the runner's
            dryrun: Only compose and return the command line
            pipe: Echo stdout to this process's stdout while it runs
            env: Extra environment variables

        Returns:
            Stdout parsed as JSON if possible, otherwise the stripped text

        Raises:
            CommandError: If the command exits non-zero
        """
        command = self.compose(args)
        if dryrun:
            logger.info(command)
            return command

        logger.debug(f"Running: {command}")
        process = await asyncio.create_subprocess_exec(
            "sh", "-c", command,
            cwd=str(cwd or self.cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env={**os.environ, **(env or {})},
        )
        stdout, stderr = await asyncio.gather(
            self._collect(process.stdout, sys.stdout if pipe else None),
            self._collect(process.stderr, None),
        )
        returncode = await process.wait()

        if returncode != 0:
            raise CommandError(command, returncode, stdout, stderr)
        return parse_output(stdout.strip())

    async def _collect(self, stream: asyncio.StreamReader, echo) -> str:
        decoder = codecs.getincrementaldecoder(ENCODING)(errors="replace")
        chunks = []
        while True:
            data = await stream.read(READ_SIZE)
            text = decoder.decode(data, final=not data)
            if text:
                chunks.append(text)
                if echo is not None:
                    echo.write(text)
                    echo.flush()
            if not data:
                break
        return "".join(chunks)
