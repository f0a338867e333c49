"""Example message callback for `captain-hook filter message`"""

from captain_hook import command

TYPOS = {
    "teh": "the",
    "recieve": "receive",
    "seperate": "separate",
}


@command(name="messageCallback")
def reword(message: str) -> str:
    """
    Fixes common typos in every commit message.

    Usage:
        captain-hook filter message examples/reword_messages.py --cwd path/to/repo
    """
    for typo, fix in TYPOS.items():
        message = message.replace(typo, fix)
    return message
