"""Flush backends on process exit and termination signals.

Every backend registers itself once at construction. The first registration
installs an atexit hook and, when running on the main thread, SIGINT and
SIGTERM handlers. Each handler flushes all live backends and then defers to
whatever handler was installed before it.
"""

from __future__ import annotations

import atexit
import contextlib
import logging
import signal
import threading
import weakref
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import FrameType

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class Flushable(Protocol):
    def flush(self) -> None: ...


_live: weakref.WeakSet[Any] = weakref.WeakSet()
_atexit_installed = False
_signals_installed = False


def register(backend: Flushable, *, install_signal_handlers: bool = True) -> None:
    """Register a backend to be flushed on shutdown.

    Args:
        backend: Object with a flush() method
        install_signal_handlers: Whether SIGINT/SIGTERM handlers may be installed
    """
    _live.add(backend)
    _install_atexit()
    if install_signal_handlers:
        _install_signal_handlers()


def flush_all() -> None:
    """Flush every live backend. Closed streams are skipped."""
    for backend in list(_live):
        with contextlib.suppress(ValueError, OSError):
            backend.flush()


def registered_count() -> int:
    """Number of backends currently registered."""
    return len(_live)


def _install_atexit() -> None:
    global _atexit_installed  # noqa: PLW0603
    if _atexit_installed:
        return
    atexit.register(flush_all)
    _atexit_installed = True


def _install_signal_handlers() -> None:
    global _signals_installed  # noqa: PLW0603
    if _signals_installed:
        return
    # signal.signal() only works on the main thread
    if threading.current_thread() is not threading.main_thread():
        logger.debug("Not on main thread, skipping shutdown signal handlers")
        return

    for signum in SHUTDOWN_SIGNALS:
        previous = signal.getsignal(signum)
        signal.signal(signum, _make_handler(previous))
    _signals_installed = True


def _make_handler(
    previous: Callable[[int, FrameType | None], Any] | int | None,
) -> Callable[[int, FrameType | None], None]:
    def handler(signum: int, frame: FrameType | None) -> None:
        flush_all()
        if callable(previous):
            previous(signum, frame)
        elif previous == signal.SIG_IGN:
            return
        else:
            # Default disposition: restore it and re-deliver the signal
            signal.signal(signum, signal.SIG_DFL)
            signal.raise_signal(signum)

    return handler
