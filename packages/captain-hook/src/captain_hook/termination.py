"""Process termination events the bridge subscribes to for socket cleanup"""

import atexit
import signal
import sys
from typing import Callable, Dict, List, Protocol

from loguru import logger

TerminationCallback = Callable[[str], None]

TERMINATION_SIGNALS = tuple(
    getattr(signal, name)
    for name in ("SIGINT", "SIGTERM", "SIGUSR1", "SIGUSR2")
    if hasattr(signal, name)
)


class TerminationHooks(Protocol):
    """Source of termination events; callbacks receive a reason string"""

    def subscribe(self, callback: TerminationCallback) -> None: ...

    def unsubscribe(self, callback: TerminationCallback) -> None: ...


class ManualTerminationHooks:
    """Termination events fired explicitly with trigger()"""

    def __init__(self):
        self.callbacks: List[TerminationCallback] = []

    def subscribe(self, callback: TerminationCallback) -> None:
        if callback not in self.callbacks:
            self.callbacks.append(callback)

    def unsubscribe(self, callback: TerminationCallback) -> None:
        if callback in self.callbacks:
            self.callbacks.remove(callback)

    def trigger(self, reason: str = "manual") -> None:
        for callback in list(self.callbacks):
            callback(reason)


class ProcessTerminationHooks:
    """
    Termination events from the running process.

    The first subscriber installs an atexit handler, signal handlers for
    SIGINT, SIGTERM, SIGUSR1 and SIGUSR2, and a sys.excepthook wrapper for
    uncaught exceptions. The last unsubscribe restores what was there
    before. After the callbacks for a signal have run, the previous signal
    disposition is restored and the signal is raised again.
    """

    def __init__(self, signals=TERMINATION_SIGNALS):
        self.signals = tuple(signals)
        self.callbacks: List[TerminationCallback] = []
        self._previous_handlers: Dict[int, object] = {}
        self._previous_excepthook = None
        self._installed = False

    def subscribe(self, callback: TerminationCallback) -> None:
        if callback in self.callbacks:
            return
        self.callbacks.append(callback)
        if not self._installed:
            self._install()

    def unsubscribe(self, callback: TerminationCallback) -> None:
        if callback in self.callbacks:
            self.callbacks.remove(callback)
        if not self.callbacks and self._installed:
            self._uninstall()

    def _fire(self, reason: str) -> None:
        for callback in list(self.callbacks):
            try:
                callback(reason)
            except Exception as e:
                logger.error(f"Termination callback failed ({reason}): {e}")

    def _install(self) -> None:
        atexit.register(self._on_exit)
        for sig in self.signals:
            try:
                self._previous_handlers[sig] = signal.signal(sig, self._on_signal)
            except ValueError:
                # signal.signal only works from the main thread
                logger.warning(f"Cannot install handler for {signal.Signals(sig).name} outside the main thread")
        self._previous_excepthook = sys.excepthook
        sys.excepthook = self._on_uncaught
        self._installed = True

    def _uninstall(self) -> None:
        atexit.unregister(self._on_exit)
        for sig, previous in self._previous_handlers.items():
            try:
                signal.signal(sig, previous if previous is not None else signal.SIG_DFL)
            except ValueError:
                logger.warning(f"Cannot restore handler for {signal.Signals(sig).name} outside the main thread")
        self._previous_handlers = {}
        if sys.excepthook == self._on_uncaught:
            sys.excepthook = self._previous_excepthook or sys.__excepthook__
        self._previous_excepthook = None
        self._installed = False

    def _on_exit(self) -> None:
        self._fire("exit")

    def _on_signal(self, signum, frame) -> None:
        previous = self._previous_handlers.get(signum, signal.SIG_DFL)
        self._fire(signal.Signals(signum).name)
        if self._installed:
            self._uninstall()
        if callable(previous):
            previous(signum, frame)
        elif previous != signal.SIG_IGN:
            signal.raise_signal(signum)

    def _on_uncaught(self, exc_type, exc, tb) -> None:
        excepthook = self._previous_excepthook or sys.__excepthook__
        self._fire("uncaught")
        excepthook(exc_type, exc, tb)


_process_hooks = None


def process_termination_hooks() -> ProcessTerminationHooks:
    """Shared hooks for the running process, so handlers chain only once"""
    global _process_hooks
    if _process_hooks is None:
        _process_hooks = ProcessTerminationHooks()
    return _process_hooks
