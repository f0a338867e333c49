"""Example commands for `captain-hook serve`"""

import asyncio

from captain_hook import command


@command
def add(*numbers):
    return sum(numbers)


@command(spread=False)
def count(items: list) -> int:
    """Takes one list argument, even though it arrives as a JSON array"""
    return len(items)


@command
async def slow_upper(text: str) -> str:
    await asyncio.sleep(0.1)
    return text.upper()
