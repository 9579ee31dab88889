"""
Exception taxonomy for the band keeper.

Every failure is raised synchronously to the immediate caller and aborts the
whole operation; nothing is retried internally.
"""

from typing import Optional


class BandKeeperError(Exception):
    """Base exception for engine and controller errors"""
    pass


class InvalidParams(BandKeeperError):
    """Raised on malformed configuration or arguments"""
    pass


class NotInitialized(BandKeeperError):
    """Raised when the indicator engine is read or updated before initialize()"""
    pass


class AlreadyInitialized(BandKeeperError):
    """Raised on a second initialize() while the engine is active"""
    pass


class BadFeed(BandKeeperError):
    """Raised when an upstream price feed is stale or returns a bad value"""

    def __init__(self, feed_id: str, reason: str = "stale"):
        self.feed_id = feed_id
        self.reason = reason
        super().__init__(f"bad feed {feed_id}: {reason}")


class TooEarly(BandKeeperError):
    """Raised when the controller is triggered before its next epoch"""

    def __init__(self, now: float, next_epoch_timestamp: float):
        self.now = now
        self.next_epoch_timestamp = next_epoch_timestamp
        super().__init__(
            f"epoch not reached: now={now} next_epoch={next_epoch_timestamp}"
        )


class Unauthorized(BandKeeperError):
    """Raised when an admin operation is attempted by someone other than the owner"""

    def __init__(self, caller: Optional[str]):
        self.caller = caller
        super().__init__(f"caller {caller!r} is not authorized")


class ControllerInactive(BandKeeperError):
    """Raised when a deactivated controller is triggered"""
    pass
