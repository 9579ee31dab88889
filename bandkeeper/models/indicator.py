"""Indicator engine data models"""

from dataclasses import dataclass


@dataclass
class Observation:
    """A price sample recorded by the indicator engine"""
    timestamp: float
    price: float

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "price": self.price,
        }


@dataclass
class IndicatorReading:
    """
    Output of one indicator engine update.

    Attributes:
        price: Current asset price in quote units
        moving_average: Running moving average after the update
        standard_deviation: sqrt(m2 / (N - 1)) after the update
        timestamp: Unix timestamp of the observation
    """
    price: float
    moving_average: float
    standard_deviation: float
    timestamp: float = 0.0

    @property
    def deviation_zscore(self) -> float:
        """Distance of price from the moving average in standard deviations"""
        if self.standard_deviation == 0:
            return 0.0
        return (self.price - self.moving_average) / self.standard_deviation

    def to_dict(self) -> dict:
        return {
            "price": self.price,
            "moving_average": self.moving_average,
            "standard_deviation": self.standard_deviation,
            "timestamp": self.timestamp,
            "deviation_zscore": self.deviation_zscore,
        }
