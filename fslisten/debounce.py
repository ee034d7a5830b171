# fslisten/debounce.py

"""
Change aggregation loop

Drains raw changes produced by the watch threads, holds them until the
watched tree has been quiet for ``wait_for_delay`` seconds, then coalesces
the batch and hands the net result to the listener's callback.
"""
import asyncio
import inspect
import logging
import time
from queue import Empty, Queue
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .coalesce import smoosh_changes
from .errors import CallbackFailure
from .events import ListenerState, NetChangeSet, RawChange
from .interfaces import FILE

logger = logging.getLogger(__name__)

MAX_POLL_INTERVAL = 0.05


class ChangeAggregator:
    """
    Debouncing consumer of the raw change queue

    Owns the pending batch and its deadline; both live only for one running
    period of the listener. Everything else (state, silencer, record,
    callback) is read from the listener on every use.
    """

    def __init__(self, listener: Any, queue: Queue, wait_for_delay: float,
                 sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
                 clock: Optional[Callable[[], float]] = None):
        """
        Initialize aggregator

        Args:
            listener: Owning listener (state, silencer, record, callback)
            queue: Thread-safe queue fed by the raw event source
            wait_for_delay: Quiet period in seconds before a batch is delivered
            sleep: Awaitable sleep used between polls (asyncio.sleep)
            clock: Monotonic time source (time.monotonic)
        """
        self.listener = listener
        self.queue = queue
        self.wait_for_delay = wait_for_delay
        self.poll_interval = min(wait_for_delay, MAX_POLL_INTERVAL)

        self._sleep = sleep or asyncio.sleep
        self._clock = clock or time.monotonic

        self.pending: List[RawChange] = []
        self.deadline: Optional[float] = None

        # Statistics
        self.stats = {
            'raw_events': 0,
            'events_silenced': 0,
            'events_discarded': 0,
            'batches_coalesced': 0,
            'batches_delivered': 0,
            'callback_failures': 0,
        }

    async def run(self):
        """Aggregate until the listener leaves the running/paused states"""
        logger.debug(
            f"Aggregation loop started (wait_for_delay={self.wait_for_delay}s, "
            f"poll={self.poll_interval}s)"
        )

        try:
            while True:
                state = self.listener.state
                if state in (ListenerState.STOPPING, ListenerState.STOPPED):
                    break

                if state is ListenerState.PAUSED:
                    self.discard()
                    await self._sleep(self.poll_interval)
                    continue

                fresh = self._pop_changes()
                now = self._clock()

                if fresh:
                    self.pending.extend(fresh)
                    self.deadline = now + self.wait_for_delay
                elif self.pending and now >= self.deadline:
                    await self._deliver()

                await self._sleep(self.poll_interval)

        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Fatal error in aggregation loop: {e}")
            self.listener._fail(e)
        finally:
            if self.pending:
                logger.debug(f"Dropping {len(self.pending)} buffered changes on exit")
            self.pending = []
            self.deadline = None

        logger.debug("Aggregation loop finished")

    def _pop_changes(self) -> List[RawChange]:
        """Drain the queue without blocking, dropping silenced simple events"""
        changes = []
        while True:
            try:
                change = self.queue.get_nowait()
            except Empty:
                break

            self.stats['raw_events'] += 1

            # Moves are filtered pairwise by the coalescer
            if not change.is_move and self.listener.silencer.silenced(change.path, FILE):
                self.stats['events_silenced'] += 1
                continue

            changes.append(change)

        return changes

    def discard(self):
        """Throw away queued and buffered changes while paused"""
        dropped = len(self.pending)
        while True:
            try:
                self.queue.get_nowait()
            except Empty:
                break
            dropped += 1

        if dropped:
            self.stats['events_discarded'] += dropped
            logger.debug(f"Discarded {dropped} changes while paused")

        self.pending = []
        self.deadline = None

    async def _deliver(self):
        batch, self.pending, self.deadline = self.pending, [], None

        silencer = self.listener.silencer
        changes = smoosh_changes(batch, silencer.silenced, self.listener.record.exists)
        self.stats['batches_coalesced'] += 1

        if changes.is_empty():
            logger.debug(f"Batch of {len(batch)} raw changes coalesced to nothing")
            return

        # A pause or stop may have landed while the batch was being coalesced
        if self.listener.state is not ListenerState.RUNNING:
            return

        await self._dispatch(changes)

    async def _dispatch(self, changes: NetChangeSet):
        callback = self.listener.callback
        if callback is None:
            logger.debug(f"No callback registered, dropping batch ({changes})")
            return

        logger.info(f"Delivering changes: {changes}")
        started = time.perf_counter()

        try:
            result = callback(*changes.as_tuple())
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            failure = CallbackFailure(e, batch_size=changes.total_count())
            logger.exception(f"Error in change callback: {failure}")
            self.listener.last_callback_error = failure
            self.stats['callback_failures'] += 1
            return

        self.stats['batches_delivered'] += 1
        logger.debug(f"Callback completed in {time.perf_counter() - started:.3f}s")

    def get_stats(self) -> Dict[str, Any]:
        """Get aggregator statistics"""
        return {
            **self.stats,
            'pending_changes': len(self.pending),
            'queue_size': self.queue.qsize(),
            'wait_for_delay': self.wait_for_delay,
        }
