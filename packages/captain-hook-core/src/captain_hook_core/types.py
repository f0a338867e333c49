"""Core types shared between the bridge host and filter-repo callbacks"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from captain_hook_core.git_date import date_from_git_date, git_date_from_date


class PythonCommit(BaseModel):
    """Commit as serialized by the filter-repo callback script"""

    author_date: str = Field(..., description="Raw git date, '<seconds> <offset>'")
    author_email: str
    author_name: str
    branch: str
    committer_date: str = Field(..., description="Raw git date, '<seconds> <offset>'")
    committer_email: str
    committer_name: str
    dumped: int = 0
    id: Optional[int] = None
    message: str
    old_id: Optional[int] = None
    original_id: Optional[str] = None
    type: str = "commit"


class Commit(BaseModel):
    """Commit as seen by host-side callbacks"""

    author_date: datetime
    author_email: str
    author_name: str
    branch: str
    committer_date: datetime
    committer_email: str
    committer_name: str
    dumped: int = 0
    id: Optional[int] = None
    message: str
    old_id: Optional[int] = None
    original_id: Optional[str] = None
    type: str = "commit"


def python_commit_to_commit(python_commit: PythonCommit) -> Commit:
    data = python_commit.model_dump()
    data["author_date"] = date_from_git_date(python_commit.author_date)
    data["committer_date"] = date_from_git_date(python_commit.committer_date)
    return Commit(**data)


def commit_to_python_commit(commit: Commit) -> PythonCommit:
    data = commit.model_dump()
    data["author_date"] = git_date_from_date(commit.author_date)
    data["committer_date"] = git_date_from_date(commit.committer_date)
    return PythonCommit(**data)
