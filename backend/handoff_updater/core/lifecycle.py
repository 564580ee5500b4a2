"""
Lifecycle management

Keeps track of the resources the running application has to release before
the process terminates (database engine, open clients, ...). The wrapper
handoff closes the context right before exiting.
"""

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


class ApplicationContext:
    """
    Ordered registry of close callbacks

    Callbacks run in reverse registration order, so resources registered
    last (usually the ones depending on earlier ones) are released first.

    Example:
        context = get_application_context()
        context.register("database", database.dispose)
        ...
        context.close()
    """

    def __init__(self):
        self._closers: list[tuple[str, Callable[[], None]]] = []
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def register(self, name: str, closer: Callable[[], None]) -> None:
        """
        Register a callback to run on close

        Args:
            name: Name used in log output
            closer: Zero-argument callable releasing the resource
        """
        with self._lock:
            self._closers.append((name, closer))

    def close(self) -> None:
        """Run all close callbacks once. Failures are logged, never raised."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            closers = list(reversed(self._closers))
            self._closers.clear()

        logger.info("[STOP] Closing application context...")
        for name, closer in closers:
            try:
                closer()
                logger.info(f"[OK] {name} closed")
            except Exception as e:
                logger.warning(f"[WARN]  {name} close warning: {e}")
        logger.info("[OK] Application context closed")


# Global context instance (singleton)
_context: ApplicationContext | None = None


def get_application_context() -> ApplicationContext:
    """
    Get the process-wide application context

    Returns:
        ApplicationContext instance
    """
    global _context
    if _context is None:
        _context = ApplicationContext()
    return _context
