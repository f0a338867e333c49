"""Conversions between git's raw date strings and aware datetimes"""

from datetime import datetime, timedelta, timezone


def timezone_from_git_timezone(git_timezone: str) -> timezone:
    """
    Parse a git timezone offset.

    Accepts "+0130", "-0800", "0200" (sign optional) and "+01:30".

    Raises:
        ValueError: If the offset is not a valid git timezone
    """
    parts = git_timezone.split(":")
    tz_str = parts[0] + parts[1] if len(parts) > 1 else parts[0]
    if len(tz_str) < 5:
        tz_str = f"+{tz_str}"
    if tz_str[0] not in "+-" or len(tz_str) != 5 or not tz_str[1:].isdigit():
        raise ValueError(f"{git_timezone} is an invalid git timezone")

    sign = -1 if tz_str[0] == "-" else 1
    hours = int(tz_str[1:3])
    minutes = int(tz_str[3:5])
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def git_timezone_from_timezone(tz: timezone) -> str:
    """Format a fixed offset timezone as git's "+HHMM" form"""
    offset = tz.utcoffset(None)
    sign = "-" if offset < timedelta(0) else "+"
    total_minutes = abs(int(offset.total_seconds())) // 60
    hours, minutes = divmod(total_minutes, 60)
    return f"{sign}{hours:02d}{minutes:02d}"


def date_from_git_date(git_date: str) -> datetime:
    """Parse "<unix seconds> <offset>" into an aware datetime"""
    parts = git_date.split()
    if not parts:
        raise ValueError(f"'{git_date}' is an invalid git date")
    git_timezone = parts[1] if len(parts) > 1 else "+0000"
    tz = timezone_from_git_timezone(git_timezone)
    return datetime.fromtimestamp(int(parts[0]), tz)


def git_date_from_date(date: datetime) -> str:
    """Format an aware datetime as "<unix seconds> <offset>" """
    tz = date.tzinfo or timezone.utc
    offset = tz.utcoffset(date) or timedelta(0)
    return f"{int(date.timestamp())} {git_timezone_from_timezone(timezone(offset))}"
