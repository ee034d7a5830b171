# fslisten/coalesce.py

"""
Coalescing of raw changes into a net change set

A single logical edit usually shows up as several raw events (temp file
write, rename over the target, delete of the original). This module reduces
one batch of raw changes to the minimal set of modified/added/removed paths.
"""
import logging
from typing import Callable, Dict, Hashable, List, Optional, Sequence, Tuple

from .events import ChangeKind, NetChangeSet, RawChange
from .interfaces import FILE

logger = logging.getLogger(__name__)

SilencedFn = Callable[[str, str], bool]
ExistsFn = Callable[[str], bool]

MODIFIED = "modified"
ADDED = "added"
REMOVED = "removed"


def _never_silenced(path: str, kind: str) -> bool:
    return False


class _ExistenceCache:
    """Ask the existence check at most once per distinct path"""

    def __init__(self, exists: ExistsFn):
        self._exists = exists
        self._known: Dict[str, bool] = {}

    def __call__(self, path: str) -> bool:
        if path not in self._known:
            try:
                self._known[path] = bool(self._exists(path))
            except OSError as e:
                logger.debug(f"Existence check failed for {path}: {e}")
                self._known[path] = False
        return self._known[path]


def _group_moves(changes: Sequence[RawChange]) -> Dict[Hashable, Dict[ChangeKind, RawChange]]:
    """Group move events by cookie, preserving first-arrival order"""
    groups: Dict[Hashable, Dict[ChangeKind, RawChange]] = {}
    for change in changes:
        if not change.is_move or change.cookie is None:
            continue
        group = groups.setdefault(change.cookie, {})
        if change.kind in group:
            logger.warning(f"Duplicate {change.kind.value} for cookie {change.cookie}, keeping the latest")
        group[change.kind] = change
    return groups


def _logical_action(kinds: List[ChangeKind], exists_now: bool) -> Optional[str]:
    """
    Decide the net effect of a path's event history

    Intermediate kinds do not matter, only how many times the path was
    created and removed and whether it exists at the end of the batch.
    """
    added = kinds.count(ChangeKind.ADDED)
    removed = kinds.count(ChangeKind.REMOVED)
    diff = added - removed

    if exists_now:
        # remove+add (double move, rename via temp file) nets out to a modification
        return ADDED if diff > 0 else MODIFIED

    # a path that appeared and vanished inside one batch is transient
    return REMOVED if diff < 0 else None


def smoosh_changes(changes: Sequence[RawChange],
                   silenced: Optional[SilencedFn] = None,
                   exists: Optional[ExistsFn] = None) -> NetChangeSet:
    """
    Reduce a batch of raw changes into a net change set

    Args:
        changes: Raw changes in arrival order
        silenced: Filter predicate taking (path, kind)
        exists: Existence check, called at most once per distinct path

    Returns:
        NetChangeSet with disjoint modified/added/removed lists
    """
    silenced = silenced or _never_silenced
    exists_now = _ExistenceCache(exists or (lambda path: False))

    moves = _group_moves(changes)
    history: Dict[str, List[ChangeKind]] = {}

    for change in changes:
        if not change.is_move:
            history.setdefault(change.path, []).append(change.kind)
            continue

        group = moves.get(change.cookie) if change.cookie is not None else None
        paired = (
            group is not None
            and ChangeKind.MOVED_FROM in group
            and ChangeKind.MOVED_TO in group
        )

        if not paired:
            # orphaned half of a rename: rename-out is a removal, rename-in an addition
            kind = ChangeKind.REMOVED if change.kind is ChangeKind.MOVED_FROM else ChangeKind.ADDED
            history.setdefault(change.path, []).append(kind)
            continue

        if change is not group[ChangeKind.MOVED_TO]:
            # the source half never produces an entry of its own
            continue

        source = group[ChangeKind.MOVED_FROM].path
        destination = change.path
        if silenced(destination, FILE):
            logger.debug(f"Dropping rename {source} -> {destination}: destination silenced")
            continue

        if silenced(source, FILE):
            # editors save by renaming a hidden temp file over the target
            history.setdefault(destination, []).append(ChangeKind.MODIFIED)
        else:
            history.setdefault(destination, []).append(ChangeKind.ADDED)

    result = NetChangeSet()
    buckets = {MODIFIED: result.modified, ADDED: result.added, REMOVED: result.removed}

    for path, kinds in history.items():
        if silenced(path, FILE):
            continue

        action = _logical_action(kinds, exists_now(path))
        logger.debug(f"{path}: {[k.value for k in kinds]} -> {action}")
        if action is not None:
            buckets[action].append(path)

    return result


def reduce_changes(batch: Sequence[Tuple[RawChange, bool]],
                   silenced: Optional[SilencedFn] = None) -> NetChangeSet:
    """
    Reduce (change, exists_now) pairs where existence was resolved upfront

    The last existence value given for a path wins.
    """
    known: Dict[str, bool] = {}
    for change, exists_flag in batch:
        known[change.path] = exists_flag

    return smoosh_changes(
        [change for change, _ in batch],
        silenced=silenced,
        exists=lambda path: known.get(path, False),
    )
