"""Captain Hook Core: Shared types and configuration"""

from captain_hook_core.types import Commit, PythonCommit, commit_to_python_commit, python_commit_to_commit
from captain_hook_core import config

__all__ = ["Commit", "PythonCommit", "commit_to_python_commit", "python_commit_to_commit", "config"]
