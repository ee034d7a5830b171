from enum import Enum
from dataclasses import dataclass, field
from typing import Hashable, List, Optional, Tuple


class ChangeKind(Enum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"
    MOVED_FROM = "moved_from"
    MOVED_TO = "moved_to"


MOVE_KINDS = (ChangeKind.MOVED_FROM, ChangeKind.MOVED_TO)


@dataclass(frozen=True)
class RawChange:
    kind: ChangeKind
    path: str
    cookie: Optional[Hashable] = None

    @property
    def is_move(self) -> bool:
        return self.kind in MOVE_KINDS

    def __str__(self):
        if self.cookie is not None:
            return f"{self.kind.value}: {self.path} (cookie={self.cookie})"
        return f"{self.kind.value}: {self.path}"


@dataclass
class NetChangeSet:
    """Coalesced result of one batch; the three lists are disjoint"""
    modified: List[str] = field(default_factory=list)
    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.modified or self.added or self.removed)

    def as_tuple(self) -> Tuple[List[str], List[str], List[str]]:
        return self.modified, self.added, self.removed

    def total_count(self) -> int:
        return len(self.modified) + len(self.added) + len(self.removed)

    def __str__(self):
        return (
            f"modified={len(self.modified)} "
            f"added={len(self.added)} removed={len(self.removed)}"
        )


class ListenerState(Enum):
    """Lifecycle states of a Listener"""
    CREATED = "created"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPING = "stopping"
    STOPPED = "stopped"
