"""git wrapper with git-filter-repo argument composition"""

from pathlib import Path
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field

from captain_hook_core.config import CALLBACK_KINDS
from captain_hook.shell import Args, CommandRunner, as_list

SCRIPTS_PATH = Path(__file__).resolve().parent / "scripts"


class FilterRepoOptions(BaseModel):
    """git filter-repo flags; callbacks hold Python callback bodies"""

    debug: bool = False
    dry_run: bool = False
    force: bool = False
    help: bool = False
    invert_paths: bool = False
    partial: bool = False
    paths: List[str] = Field(default_factory=list)
    paths_glob: List[str] = Field(default_factory=list)
    paths_regex: List[str] = Field(default_factory=list)
    refs: Optional[Union[str, List[str]]] = None
    import_scripts: List[str] = Field(default_factory=list)

    blob_callback: Optional[str] = None
    commit_callback: Optional[str] = None
    email_callback: Optional[str] = None
    filename_callback: Optional[str] = None
    message_callback: Optional[str] = None
    name_callback: Optional[str] = None
    refname_callback: Optional[str] = None
    reset_callback: Optional[str] = None
    tag_callback: Optional[str] = None


def python_import_script(script_name: str) -> str:
    """Callback preamble that loads scripts/<script_name>.py once per filter-repo run"""
    script_path = SCRIPTS_PATH / f"{script_name}.py"
    module_name = f"captain_hook_scripts_{script_name}"
    return "\n".join([
        "import sys",
        "from importlib import util",
        f"{script_name} = sys.modules.get({module_name!r})",
        f"if {script_name} is None:",
        f"  spec = util.spec_from_file_location({module_name!r}, {str(script_path)!r})",
        f"  {script_name} = util.module_from_spec(spec)",
        f"  spec.loader.exec_module({script_name})",
        f"  sys.modules[{module_name!r}] = {script_name}",
    ])


def render_callback(python: str, import_scripts: Optional[List[str]] = None) -> str:
    return "\n".join([*(python_import_script(name) for name in import_scripts or []), python])


def filter_repo_args(options: FilterRepoOptions) -> List[str]:
    args: List[str] = []
    if options.debug:
        args.append("--debug")
    if options.dry_run:
        args.append("--dry-run")
    if options.invert_paths:
        args.append("--invert-paths")
    if options.partial:
        args.append("--partial")
    for path in options.paths:
        args += ["--path", path]
    for path in options.paths_regex:
        args += ["--path-regex", path]
    for path in options.paths_glob:
        args += ["--path-glob", path]
    for kind in CALLBACK_KINDS:
        body = getattr(options, f"{kind}_callback")
        if body:
            args += [f"--{kind}-callback", render_callback(body, options.import_scripts)]
    if options.help:
        args.append("-h")
    if options.refs:
        args += ["--refs", *as_list(options.refs)]
    if options.force:
        args.append("--force")
    return args


class Git(CommandRunner):

    def __init__(self, git_path: Union[str, Path, None] = None):
        super().__init__("git", git_path)

    @property
    def git_path(self) -> Path:
        return self.cwd

    async def filter_repo(self, options: Optional[FilterRepoOptions] = None, args: Args = (), **run) -> Any:
        """Run git filter-repo; run options (dryrun, pipe, cwd, env) pass through to run()"""
        options = options or FilterRepoOptions()
        return await self.run(["filter-repo", *as_list(args), *filter_repo_args(options)], **run)

    async def remote(self, args: Args = (), **run) -> Any:
        return await self.run(["remote", *as_list(args)], **run)
