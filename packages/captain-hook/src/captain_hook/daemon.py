"""Bridge daemon process - serves commands until interrupted"""

import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from captain_hook.bridge import Bridge, BridgeOptions
from captain_hook.errors import BridgeError
from captain_hook.registry import CommandRegistry


class BridgeDaemon:
    """Daemon process that keeps a bridge listening until SIGINT/SIGTERM"""

    def __init__(
        self,
        name: str,
        commands: CommandRegistry,
        socket_dir: Union[str, Path, None] = None,
        log_path: Optional[Path] = None,
        options: Optional[BridgeOptions] = None,
    ):
        self.name = name
        self.commands = commands
        self.log_path = log_path
        self.shutdown_event = asyncio.Event()
        self.error_count = 0
        self.bridge = Bridge(
            name,
            commands,
            socket_dir=socket_dir,
            on_error=self.handle_error,
            options=options,
        )

        # Configure logging
        logger.remove()  # Remove default handler
        if log_path is not None:
            logger.add(
                str(log_path),
                format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
                level="DEBUG"
            )
            logger.add(sys.stderr, level="ERROR")  # Also log errors to stderr
        else:
            logger.add(sys.stderr, level="INFO")

    def handle_error(self, error: BridgeError) -> None:
        """Errors are already logged by the bridge; keep a count for shutdown"""
        self.error_count += 1

    async def shutdown(self):
        """Graceful shutdown"""
        logger.info(f"Shutting down bridge daemon: {self.name}")
        await self.bridge.close()
        self.shutdown_event.set()
        logger.info(f"Bridge daemon stopped ({self.error_count} error(s) reported)")

    async def run(self):
        """Main run loop"""
        logger.info(f"Starting bridge daemon: {self.name}")
        logger.info(f"Commands: {', '.join(sorted(self.commands)) or '(none)'}")

        await self.bridge.connect()

        # Setup signal handlers; these take over from the bridge's own hooks
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, lambda: asyncio.create_task(self.shutdown()))

        logger.info(f"Bridge daemon ready: {self.bridge.path}")

        try:
            # Wait for shutdown
            await self.shutdown_event.wait()
        finally:
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.remove_signal_handler(sig)
            await self.bridge.close()
