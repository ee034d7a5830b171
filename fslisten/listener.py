# fslisten/listener.py

"""
Listener: lifecycle, filter publication and callback registration
"""
import asyncio
import logging
import time
from dataclasses import replace
from pathlib import Path
from queue import Queue
from typing import Any, Callable, Dict, List, Optional

from .debounce import ChangeAggregator
from .errors import AlreadyStarted, AlreadyStopped, InvalidConfiguration, NotStarted
from .events import ListenerState
from .interfaces import IRawEventSource, IRecord
from .patterns import FilterRuleSet, Silencer
from .record import Record
from .utils.config import ListenerOptions
from .watcher import start_adapter

logger = logging.getLogger(__name__)

__all__ = ['Listener', 'ListenerState']


def _flatten_directories(directories) -> List[Path]:
    flat: List[Path] = []
    for item in directories:
        if isinstance(item, (list, tuple, set)):
            flat.extend(_flatten_directories(item))
        else:
            flat.append(Path(item).expanduser().resolve())

    unique = []
    seen = set()
    for d in flat:
        if d not in seen:
            seen.add(d)
            unique.append(d)
    return unique


class Listener:
    """
    Watch directories and deliver debounced, coalesced changes

    Usage:
        listener = Listener("src", "docs", ignore=r"\\.log$", wait_for_delay=0.2)

        @listener.on_change
        def changed(modified, added, removed):
            ...

        await listener.start()
        ...
        await listener.stop()
    """

    def __init__(self, *directories, callback: Optional[Callable] = None,
                 adapter: Optional[IRawEventSource] = None,
                 record: Optional[IRecord] = None, **options):
        """
        Initialize listener

        Args:
            *directories: Directories to watch (str or Path, lists allowed)
            callback: Called with (modified, added, removed) per batch
            adapter: Raw event source; watchdog native/polling when None
            record: Path snapshot; a directory walking Record when None
            **options: ListenerOptions fields

        Raises:
            InvalidConfiguration: on unknown option names
        """
        self.options = ListenerOptions.from_dict(options)
        if self.options.debug:
            logging.getLogger('fslisten').setLevel(logging.DEBUG)

        self.directories = _flatten_directories(directories)

        self.callback: Optional[Callable] = None
        if callback is not None:
            self.on_change(callback)

        self._adapter = adapter
        self._record = record
        self._queue: Queue = Queue()
        self._aggregator: Optional[ChangeAggregator] = None
        self._task: Optional[asyncio.Task] = None

        self._rules = FilterRuleSet.from_options(
            ignore=self.options.ignore,
            ignore_override=self.options.ignore_override,
            only=self.options.only,
        )
        self._silencer = Silencer(self._rules, self.directories)
        self._state = ListenerState.CREATED

        # Used by the aggregation loop; replaceable for deterministic timing
        self._sleep = asyncio.sleep
        self._clock = time.monotonic

        self.error: Optional[BaseException] = None
        self.last_callback_error = None

        logger.debug(f"Listener created for {len(self.directories)} directories")

    # State

    @property
    def state(self) -> ListenerState:
        return self._state

    @property
    def rules(self) -> FilterRuleSet:
        return self._rules

    @property
    def silencer(self) -> Silencer:
        return self._silencer

    @property
    def record(self) -> Optional[IRecord]:
        return self._record

    @property
    def adapter(self) -> Optional[IRawEventSource]:
        return self._adapter

    def is_paused(self) -> bool:
        return self._state is ListenerState.PAUSED

    def is_listening(self) -> bool:
        return self._state is ListenerState.RUNNING

    def _require_started(self):
        if self._state is ListenerState.CREATED:
            raise NotStarted("Listener has not been started")
        if self._state in (ListenerState.STOPPING, ListenerState.STOPPED):
            raise AlreadyStopped("Listener has been stopped")

    # Callback

    def on_change(self, callback: Callable) -> Callable:
        """
        Register the change callback; usable as a decorator

        Raises:
            InvalidConfiguration: if not callable or one is already registered
        """
        if not callable(callback):
            raise InvalidConfiguration(f"Callback must be callable, got {callback!r}")
        if self.callback is not None:
            raise InvalidConfiguration("A callback is already registered")

        self.callback = callback
        return callback

    # Lifecycle

    def _validate(self):
        if not self.directories:
            raise InvalidConfiguration("No directories to watch")

        for directory in self.directories:
            if not directory.exists():
                raise InvalidConfiguration(f"Directory does not exist: {directory}")
            if not directory.is_dir():
                raise InvalidConfiguration(f"Not a directory: {directory}")

        self.options.validate()

    async def start(self):
        """
        Start watching

        Raises:
            AlreadyStarted: if running or paused
            AlreadyStopped: if stopped
            InvalidConfiguration: on bad directories or options
            WatchSourceFailure: if no event source could be started
        """
        if self._state in (ListenerState.STOPPING, ListenerState.STOPPED):
            raise AlreadyStopped("Listener has been stopped")
        if self._state is not ListenerState.CREATED:
            raise AlreadyStarted("Listener is already started")

        self._validate()

        if self._record is None:
            self._record = Record(self.directories, lambda: self._silencer)
        self._record.build()

        if self._adapter is None:
            self._adapter = start_adapter(self.directories, self._queue, self.options)
        else:
            self._adapter.start(self._queue)

        self._aggregator = ChangeAggregator(
            self,
            self._queue,
            float(self.options.wait_for_delay),
            sleep=self._sleep,
            clock=self._clock,
        )
        self._state = ListenerState.RUNNING
        self._task = asyncio.create_task(self._aggregator.run())

        logger.info(
            f"Listening to {', '.join(str(d) for d in self.directories)} "
            f"({self._adapter.name})"
        )

    async def stop(self):
        """Stop watching; buffered changes are dropped. Repeated calls are no-ops."""
        if self._state is ListenerState.STOPPED:
            return

        if self._state is ListenerState.CREATED:
            self._state = ListenerState.STOPPED
            return

        if self._state is not ListenerState.STOPPING:
            self._state = ListenerState.STOPPING
            try:
                self._adapter.stop()
            except Exception as e:
                logger.error(f"Error stopping {self._adapter.name} adapter: {e}")

        # stop() may be called from the callback, i.e. from inside the task
        if self._task is not None and self._task is not asyncio.current_task():
            await self._task

        self._state = ListenerState.STOPPED
        logger.info("Listener stopped")

    def _fail(self, error: BaseException):
        """Fatal aggregation error: halt the source and stop"""
        self.error = error
        self._state = ListenerState.STOPPING
        try:
            self._adapter.stop()
        except Exception as e:
            logger.error(f"Error stopping {self._adapter.name} adapter: {e}")
        self._state = ListenerState.STOPPED

    def pause(self):
        """Stop delivering; changes seen while paused are discarded"""
        self._require_started()
        if self._state is ListenerState.PAUSED:
            return
        self._state = ListenerState.PAUSED
        logger.info("Listener paused")

    def unpause(self):
        """Rebuild the record and resume delivery"""
        self._require_started()
        if self._state is ListenerState.RUNNING:
            return
        self._record.build()
        if self._aggregator is not None:
            self._aggregator.discard()
        self._state = ListenerState.RUNNING
        logger.info("Listener resumed")

    # Filters

    def _publish(self, rules: FilterRuleSet):
        self._rules = rules
        # single reference swap, readers see the old or the new silencer
        self._silencer = Silencer(rules, self.directories)
        self.options = replace(
            self.options,
            ignore=list(rules.ignore),
            ignore_override=None if rules.ignore_override is None else list(rules.ignore_override),
            only=None if rules.only is None else list(rules.only),
        )

    def ignore(self, *patterns):
        """Add ignore patterns to the ones already configured"""
        self._require_started()
        self._publish(self._rules.with_ignore(patterns))

    def ignore_override(self, *patterns):
        """Replace the ignore patterns, defaults included"""
        self._require_started()
        self._publish(self._rules.with_ignore_override(patterns))

    def only(self, *patterns):
        """Only report files matching these patterns"""
        self._require_started()
        self._publish(self._rules.with_only(patterns))

    def get_status(self) -> Dict[str, Any]:
        """Get listener status"""
        return {
            'state': self._state.value,
            'directories': [str(d) for d in self.directories],
            'adapter': self._adapter.name if self._adapter else None,
            'options': self.options.to_dict(),
            'filter': self._silencer.get_stats(),
            'stats': self._aggregator.get_stats() if self._aggregator else {},
            'error': repr(self.error) if self.error else None,
            'last_callback_error': str(self.last_callback_error) if self.last_callback_error else None,
        }
