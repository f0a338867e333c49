"""pip wrapper"""

from pathlib import Path
from typing import Any, Union

from captain_hook.shell import CommandRunner


class Pip(CommandRunner):

    def __init__(self, cwd: Union[str, Path, None] = None):
        super().__init__("pip", cwd)

    async def install(self, package_name: str, user: bool = True, **options) -> Any:
        args = ["install", *(["--user"] if user else []), package_name]
        return await self.run(args, **options)
