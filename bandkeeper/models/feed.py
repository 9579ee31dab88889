"""Price feed reading model"""

from dataclasses import dataclass


@dataclass
class FeedReading:
    """
    Raw reading from an upstream price feed.

    Attributes:
        value: Signed fixed-point value, scaled by the feed's decimals
        updated_at: Unix timestamp the feed last updated
    """
    value: int
    updated_at: float

    def age(self, now: float) -> float:
        """Seconds since the feed last updated"""
        return now - self.updated_at

    def to_dict(self) -> dict:
        return {
            "value": self.value,
            "updated_at": self.updated_at,
        }
