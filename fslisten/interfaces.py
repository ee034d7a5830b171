# fslisten/interfaces.py

"""
Capability interfaces for the listener's collaborators

- IRawEventSource: produces RawChange records into a shared queue
- IRecord: snapshot of known paths, answers existence checks
- ISilencer: decides which paths are never reported
"""
from abc import ABC, abstractmethod
from queue import Queue

FILE = "File"
DIRECTORY = "Dir"


class ISilencer(ABC):
    """
    Ignore/only predicate over an immutable rule set
    """

    @abstractmethod
    def silenced(self, path: str, kind: str = FILE) -> bool:
        """
        Check whether a path should be suppressed

        Args:
            path: Absolute path of the changed file or directory
            kind: Coarse type label, FILE or DIRECTORY

        Returns:
            True if the path must not be reported
        """
        ...


class IRecord(ABC):
    """
    Snapshot of known path metadata
    """

    @abstractmethod
    def build(self) -> None:
        """(Re)build the snapshot from the watched directories."""
        ...

    @abstractmethod
    def exists(self, path: str) -> bool:
        """
        Check whether a path currently exists on disk

        Errors while checking must be reported as False.
        """
        ...


class IRawEventSource(ABC):
    """
    Producer of raw change records

    Implementations run on their own threads and push RawChange
    instances into the queue handed to start().
    """

    name: str = "source"

    @abstractmethod
    def start(self, queue: Queue) -> None:
        """
        Start producing events without blocking the caller

        Raises:
            WatchSourceFailure: if the source cannot initialize
        """
        ...

    @abstractmethod
    def stop(self) -> None:
        """Stop producing events and release resources."""
        ...
