"""
Shared test doubles for the listener's collaborators
"""
from queue import Queue
from typing import Dict, List, Optional

import pytest

from fslisten.errors import WatchSourceFailure
from fslisten.interfaces import IRawEventSource, IRecord


class FakeAdapter(IRawEventSource):
    """Event source the test pushes changes through by hand"""

    name = "fake"

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.queue: Optional[Queue] = None
        self.start_calls = 0
        self.stop_calls = 0

    def start(self, queue: Queue) -> None:
        self.start_calls += 1
        if self.fail:
            raise WatchSourceFailure("fake source refused to start")
        self.queue = queue

    def stop(self) -> None:
        self.stop_calls += 1

    def emit(self, *changes):
        for change in changes:
            self.queue.put(change)


class FakeRecord(IRecord):
    """Existence answers from a dict, everything else exists"""

    def __init__(self, existing: Optional[Dict[str, bool]] = None, default: bool = True):
        self.existing = dict(existing or {})
        self.default = default
        self.build_calls = 0
        self.exists_calls: List[str] = []

    def build(self) -> None:
        self.build_calls += 1

    def exists(self, path: str) -> bool:
        self.exists_calls.append(path)
        return self.existing.get(path, self.default)


@pytest.fixture
def adapter():
    return FakeAdapter()


@pytest.fixture
def record():
    return FakeRecord()
