# fslisten/__init__.py

"""
fslisten
Directory change listener with debouncing and event coalescing
"""
from .errors import (
    AlreadyStarted,
    AlreadyStopped,
    CallbackFailure,
    InvalidConfiguration,
    ListenError,
    NotStarted,
    WatchSourceFailure,
)
from .events import ChangeKind, ListenerState, NetChangeSet, RawChange
from .coalesce import reduce_changes, smoosh_changes
from .patterns import FilterRuleSet, Silencer
from .listener import Listener
from .utils.config import ListenerOptions

__version__ = "0.1.0"


def to(*directories, callback=None, **options) -> Listener:
    """
    Create an unstarted listener

    Args:
        *directories: Directories to watch
        callback: Called with (modified, added, removed) per batch
        **options: ListenerOptions fields

    Returns:
        Listener, call ``await listener.start()`` to begin
    """
    return Listener(*directories, callback=callback, **options)


__all__ = [
    'to',
    'Listener',
    'ListenerState',
    'ListenerOptions',
    'ChangeKind',
    'RawChange',
    'NetChangeSet',
    'FilterRuleSet',
    'Silencer',
    'smoosh_changes',
    'reduce_changes',
    'ListenError',
    'InvalidConfiguration',
    'AlreadyStarted',
    'AlreadyStopped',
    'NotStarted',
    'WatchSourceFailure',
    'CallbackFailure',
]
