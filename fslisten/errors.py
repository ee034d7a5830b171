"""
Error taxonomy for fslisten
"""
from typing import Optional


class ListenError(Exception):
    """Base class for all listener errors"""


class InvalidConfiguration(ListenError):
    """Bad directories or options"""


class AlreadyStarted(ListenError):
    """start() called on a listener that is already running"""


class AlreadyStopped(ListenError):
    """Operation attempted on a stopped listener"""


class NotStarted(ListenError):
    """Operation requires a started listener"""


class WatchSourceFailure(ListenError):
    """The raw event source could not be initialized"""


class CallbackFailure(ListenError):
    """
    The registered callback raised while handling a batch

    The aggregation loop logs and records it, it never stops delivery.
    """

    def __init__(self, original: BaseException, batch_size: Optional[int] = None):
        self.original = original
        self.batch_size = batch_size
        super().__init__(f"Callback raised {type(original).__name__}: {original}")
