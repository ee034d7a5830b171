# fslisten/handlers.py

"""
Watchdog event handler feeding the raw change queue
"""
import itertools
import os
import logging
from datetime import datetime
from queue import Queue
from typing import Any, Dict

from watchdog.events import (
    FileSystemEventHandler,
    FileCreatedEvent,
    FileModifiedEvent,
    FileDeletedEvent,
    FileMovedEvent,
)

from .events import ChangeKind, RawChange

logger = logging.getLogger(__name__)


class ChangeHandler(FileSystemEventHandler):
    """
    Translate watchdog file events into RawChange records

    Runs on the observer thread. Directory events are skipped; a move is
    split into MOVED_FROM and MOVED_TO halves sharing a fresh cookie.
    """

    _cookies = itertools.count(1)

    def __init__(self, queue: Queue):
        self.queue = queue

        # Statistics
        self.stats = {
            'events_received': 0,
            'events_queued': 0,
            'directory_events': 0,
            'last_event': None,
        }

    def on_any_event(self, event):
        self.stats['events_received'] += 1
        self.stats['last_event'] = datetime.now()

        if event.is_directory:
            self.stats['directory_events'] += 1
            return

        if isinstance(event, FileCreatedEvent):
            self._put(RawChange(ChangeKind.ADDED, self._path(event.src_path)))
        elif isinstance(event, FileModifiedEvent):
            self._put(RawChange(ChangeKind.MODIFIED, self._path(event.src_path)))
        elif isinstance(event, FileDeletedEvent):
            self._put(RawChange(ChangeKind.REMOVED, self._path(event.src_path)))
        elif isinstance(event, FileMovedEvent):
            cookie = next(self._cookies)
            self._put(RawChange(ChangeKind.MOVED_FROM, self._path(event.src_path), cookie))
            self._put(RawChange(ChangeKind.MOVED_TO, self._path(event.dest_path), cookie))
        else:
            # opened/closed notifications carry no change
            logger.debug(f"Skipping {event.event_type} event for {event.src_path}")

    @staticmethod
    def _path(path: Any) -> str:
        return os.fsdecode(path)

    def _put(self, change: RawChange):
        self.queue.put(change)
        self.stats['events_queued'] += 1
        logger.debug(f"Queued {change}")

    def get_stats(self) -> Dict[str, Any]:
        """Get handler statistics"""
        return self.stats.copy()
