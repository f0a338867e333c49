"""Tests for git date conversions and commit types."""

from datetime import datetime, timedelta, timezone

import pytest

from captain_hook_core.git_date import (
    date_from_git_date,
    git_date_from_date,
    git_timezone_from_timezone,
    timezone_from_git_timezone,
)
from captain_hook_core.types import PythonCommit, commit_to_python_commit, python_commit_to_commit


@pytest.mark.parametrize(
    "git_timezone, offset",
    [
        ("+0000", timedelta(0)),
        ("+0130", timedelta(hours=1, minutes=30)),
        ("-0800", timedelta(hours=-8)),
        ("0200", timedelta(hours=2)),
        ("+05:45", timedelta(hours=5, minutes=45)),
    ],
)
def test_timezone_from_git_timezone(git_timezone: str, offset: timedelta):
    assert timezone_from_git_timezone(git_timezone).utcoffset(None) == offset


@pytest.mark.parametrize("git_timezone", ["*0100", "+1", "+01000", "+ab00"])
def test_invalid_git_timezone(git_timezone: str):
    with pytest.raises(ValueError, match="is an invalid git timezone"):
        timezone_from_git_timezone(git_timezone)


def test_git_timezone_from_timezone():
    assert git_timezone_from_timezone(timezone(timedelta(hours=5, minutes=30))) == "+0530"
    assert git_timezone_from_timezone(timezone(timedelta(hours=-3, minutes=-30))) == "-0330"
    assert git_timezone_from_timezone(timezone.utc) == "+0000"


def test_date_from_git_date_keeps_offset():
    date = date_from_git_date("1600000000 -0700")
    assert date.timestamp() == 1600000000
    assert date.utcoffset() == timedelta(hours=-7)


def test_date_without_offset_is_utc():
    assert date_from_git_date("0").utcoffset() == timedelta(0)


def test_git_date_from_date():
    date = datetime(2021, 1, 1, 12, tzinfo=timezone(timedelta(hours=2)))
    assert git_date_from_date(date) == f"{int(date.timestamp())} +0200"


def test_commit_conversion():
    python_commit = PythonCommit(
        author_date="1600000000 +0200",
        author_email="ada@example.com",
        author_name="Ada",
        branch="refs/heads/main",
        committer_date="1600000100 -0100",
        committer_email="bob@example.com",
        committer_name="Bob",
        id=3,
        message="Initial commit\n",
        original_id="abc123",
    )
    commit = python_commit_to_commit(python_commit)
    assert commit.author_date.utcoffset() == timedelta(hours=2)
    assert commit.committer_date.timestamp() == 1600000100

    assert commit_to_python_commit(commit) == python_commit
