"""Run git-filter-repo with callbacks served by host-side Python functions"""

import hashlib
import inspect
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Union

from loguru import logger

from captain_hook_core.config import (
    DEFAULT_BRIDGE_NAME,
    FILTER_REPO_PACKAGE,
    NOT_A_GIT_COMMAND,
    SOCKET_ENV_VAR,
)
from captain_hook_core.types import (
    PythonCommit,
    commit_to_python_commit,
    python_commit_to_commit,
)
from captain_hook.bridge import Bridge
from captain_hook.errors import CommandError
from captain_hook.git import FilterRepoOptions, Git
from captain_hook.pip import Pip
from captain_hook.registry import Command
from captain_hook.termination import TerminationHooks

Callback = Callable[[Any], Union[Any, Awaitable[Any]]]


async def _resolve(value):
    if inspect.isawaitable(value):
        return await value
    return value


def hashed_remote_name(remote: str) -> str:
    """Temporary name a remote is parked under while history is rewritten"""
    return hashlib.sha256(remote.encode()).hexdigest()[:16]


class GitFilterRepo:
    """
    Rewrites repository history with git-filter-repo, calling back into this
    process once per object through a bridge.

    Usage:
        repo = GitFilterRepo("/path/to/repo")
        await repo.message_callback(lambda message: message.replace("foo", "bar"))
    """

    def __init__(
        self,
        git_path: Union[str, Path, None] = None,
        pipe: bool = True,
        preserve_origin: bool = False,
        socket_name: str = DEFAULT_BRIDGE_NAME,
        socket_dir: Union[str, Path, None] = None,
        hooks: Optional[TerminationHooks] = None,
    ):
        self.git_path = Path(git_path) if git_path else Path.cwd()
        self.pipe = pipe
        self.preserve_origin = preserve_origin
        self.socket_name = socket_name
        self.socket_dir = socket_dir
        self.hooks = hooks
        self.git = Git(self.git_path)
        self.pip = Pip(self.git_path)

    async def installed(self) -> bool:
        """Check whether `git filter-repo` is available"""
        try:
            await self.git.filter_repo(FilterRepoOptions(help=True), pipe=False)
            return True
        except CommandError as e:
            if NOT_A_GIT_COMMAND in e.stderr:
                return False
            raise

    async def ensure(self) -> None:
        """Install git-filter-repo for the user if it is missing"""
        if not await self.installed():
            logger.info(f"Installing {FILTER_REPO_PACKAGE}")
            await self.pip.install(FILTER_REPO_PACKAGE, user=True, pipe=self.pipe)

    async def help(self, **options) -> Any:
        return await self.git.filter_repo(FilterRepoOptions(**options, help=True), pipe=self.pipe)

    async def has_remote(self, remote: str) -> bool:
        output = await self.git.remote("-v", pipe=False)
        names = {line.split()[0] for line in str(output).splitlines() if line.strip()}
        return remote in names

    async def callback(
        self,
        name: str,
        handler: Callback,
        options: Optional[FilterRepoOptions] = None,
        dryrun: bool = False,
    ) -> Any:
        """
        Run git-filter-repo with a `--<name>-callback` served by handler.

        Args:
            name: Callback kind (blob, commit, message, ...)
            handler: Host-side function receiving the wire payload
            options: Other filter-repo flags
            dryrun: Only compose the command line

        Returns:
            git-filter-repo's output
        """
        options = (options or FilterRepoOptions()).model_copy()
        if "force" not in options.model_fields_set:
            options.force = True
        setattr(options, f"{name}_callback", f"return callbacks.callback('{name}', {name})")
        options.import_scripts = [*options.import_scripts, "callbacks"]

        bridge = Bridge(
            self.socket_name,
            {f"{name}Callback": Command(handler, spread=False)},
            socket_dir=self.socket_dir,
            hooks=self.hooks,
        )
        if dryrun:
            return await self.git.filter_repo(options, dryrun=True, env={SOCKET_ENV_VAR: str(bridge.path)})

        await self.ensure()
        await bridge.connect()
        renamed = False
        try:
            if self.preserve_origin and await self.has_remote("origin"):
                await self.git.remote(["rename", "origin", hashed_remote_name("origin")], pipe=self.pipe)
                renamed = True
            return await self.git.filter_repo(
                options,
                pipe=self.pipe,
                env={SOCKET_ENV_VAR: str(bridge.path)},
            )
        finally:
            if renamed:
                await self.git.remote(["rename", hashed_remote_name("origin"), "origin"], pipe=self.pipe)
            await bridge.close()

    async def blob_callback(self, callback: Callback, options: Optional[FilterRepoOptions] = None) -> Any:
        return await self.callback("blob", callback, options)

    async def commit_callback(self, callback: Callback, options: Optional[FilterRepoOptions] = None) -> Any:
        """callback receives and returns a Commit with parsed dates"""
        async def handle(data: dict) -> dict:
            python_commit = PythonCommit(**data)
            commit = await _resolve(callback(python_commit_to_commit(python_commit)))
            if commit is None:
                return None
            return commit_to_python_commit(commit).model_dump()

        return await self.callback("commit", handle, options)

    async def tag_callback(self, callback: Callback, options: Optional[FilterRepoOptions] = None) -> Any:
        return await self.callback("tag", callback, options)

    async def reset_callback(self, callback: Callback, options: Optional[FilterRepoOptions] = None) -> Any:
        return await self.callback("reset", callback, options)

    async def filename_callback(self, callback: Callback, options: Optional[FilterRepoOptions] = None) -> Any:
        return await self.callback("filename", callback, options)

    async def message_callback(self, callback: Callback, options: Optional[FilterRepoOptions] = None) -> Any:
        return await self.callback("message", callback, options)

    async def name_callback(self, callback: Callback, options: Optional[FilterRepoOptions] = None) -> Any:
        return await self.callback("name", callback, options)

    async def email_callback(self, callback: Callback, options: Optional[FilterRepoOptions] = None) -> Any:
        return await self.callback("email", callback, options)

    async def refname_callback(self, callback: Callback, options: Optional[FilterRepoOptions] = None) -> Any:
        return await self.callback("refname", callback, options)
