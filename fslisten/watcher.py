# fslisten/watcher.py

"""
Raw event sources built on watchdog observers
"""
import logging
from pathlib import Path
from queue import Queue
from typing import Any, Dict, Optional, Sequence

from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from .errors import WatchSourceFailure
from .handlers import ChangeHandler
from .interfaces import IRawEventSource

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_FALLBACK_MESSAGE = (
    "Native file system events are unavailable, falling back to polling. "
    "Change detection may be slower and use more CPU."
)


class WatchdogAdapter(IRawEventSource):
    """
    Native OS event source (inotify, FSEvents, kqueue, ReadDirectoryChangesW)
    """

    name = "native"

    def __init__(self, directories: Sequence[Path], latency: Optional[float] = None):
        """
        Initialize adapter

        Args:
            directories: Directories to watch recursively
            latency: Observer timeout in seconds (watchdog default when None)
        """
        self.directories = list(directories)
        self.latency = latency

        self.observer = None
        self.handler: Optional[ChangeHandler] = None
        self.is_watching = False

    def _create_observer(self):
        if self.latency is not None:
            return Observer(timeout=self.latency)
        return Observer()

    def start(self, queue: Queue) -> None:
        if self.is_watching:
            logger.warning(f"{self.name} adapter already watching")
            return

        self.handler = ChangeHandler(queue)
        observer = self._create_observer()

        try:
            for directory in self.directories:
                observer.schedule(self.handler, str(directory), recursive=True)
                logger.debug(f"Scheduled {self.name} watch on {directory}")
            observer.start()
        except OSError as e:
            logger.debug(f"{self.name} observer failed to start: {e}")
            raise WatchSourceFailure(f"Could not start {self.name} observer: {e}") from e

        self.observer = observer
        self.is_watching = True
        logger.info(f"Watching {len(self.directories)} directories ({self.name})")

    def stop(self) -> None:
        if not self.is_watching:
            return

        try:
            self.observer.stop()
            self.observer.join(timeout=10)
        finally:
            self.is_watching = False
            self.observer = None
            logger.info(f"Stopped {self.name} watching")

    def get_status(self) -> Dict[str, Any]:
        """Get adapter status"""
        return {
            'name': self.name,
            'is_watching': self.is_watching,
            'directories': [str(d) for d in self.directories],
            'latency': self.latency,
            'handler': self.handler.get_stats() if self.handler else None,
        }


class PollingAdapter(WatchdogAdapter):
    """Periodic directory snapshot diffing, works everywhere"""

    name = "polling"

    def _create_observer(self):
        interval = self.latency if self.latency is not None else DEFAULT_POLL_INTERVAL
        logger.debug(f"Using polling observer (interval: {interval}s)")
        return PollingObserver(timeout=interval)


def start_adapter(directories: Sequence[Path], queue: Queue, options: Any) -> IRawEventSource:
    """
    Start the best available event source

    Args:
        directories: Directories to watch
        queue: Queue receiving RawChange records
        options: ListenerOptions (force_polling, latency, polling_fallback_message)

    Returns:
        Started adapter

    Raises:
        WatchSourceFailure: if no source could be started
    """
    if not options.force_polling:
        native = WatchdogAdapter(directories, latency=options.latency)
        try:
            native.start(queue)
            return native
        except WatchSourceFailure as e:
            message = options.polling_fallback_message or DEFAULT_FALLBACK_MESSAGE
            logger.warning(f"{message} ({e.__cause__ or e})")

    polling = PollingAdapter(directories, latency=options.latency)
    polling.start(queue)
    return polling
