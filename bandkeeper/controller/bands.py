"""
Bollinger band position and order sizing.

Percentages are fractions: 0.5 is the band midpoint (the moving average),
0.0 the lower band and 1.0 the upper band.
"""

from ..models.indicator import IndicatorReading
from ..models.order import BollingerBands, DecisionAction, OrderDecision

MIDPOINT = 0.5


def compute_bands(
    price: float,
    moving_average: float,
    standard_deviation: float,
    band_multiple: float,
) -> BollingerBands:
    """
    Compute bands and the clamped %-band of price.

    A zero-width band carries no directional signal and maps to the midpoint.
    """
    upper = moving_average + standard_deviation * band_multiple
    lower = moving_average - standard_deviation * band_multiple

    return BollingerBands(
        upper=upper,
        lower=lower,
        middle=moving_average,
        percent_band=percent_band(price, lower, upper),
    )


def percent_band(price: float, lower: float, upper: float) -> float:
    """Position of price between lower and upper, clamped to [0, 1]"""
    if upper == lower:
        return MIDPOINT
    pct = (price - lower) / (upper - lower)
    return max(0.0, min(1.0, pct))


def decide(
    reading: IndicatorReading,
    band_multiple: float,
    min_pct_threshold: float,
    bid_capacity: float,
    ask_capacity: float,
) -> OrderDecision:
    """
    Map an indicator reading to a sell, buy or idle decision.

    Above the dead zone the asset is sold, below it the asset is bought; the
    order size is the capacity scaled by how far %-band is past the midpoint.
    """
    bands = compute_bands(
        reading.price,
        reading.moving_average,
        reading.standard_deviation,
        band_multiple,
    )
    pct = bands.percent_band

    if pct > MIDPOINT + min_pct_threshold:
        overshoot = (pct - MIDPOINT) / MIDPOINT
        return OrderDecision(
            action=DecisionAction.SELL_TRIGGERED,
            percent_band=pct,
            overshoot=overshoot,
            order_size=ask_capacity * overshoot,
            bands=bands,
        )

    if pct < MIDPOINT - min_pct_threshold:
        overshoot = (MIDPOINT - pct) / MIDPOINT
        return OrderDecision(
            action=DecisionAction.BUY_TRIGGERED,
            percent_band=pct,
            overshoot=overshoot,
            order_size=bid_capacity * overshoot,
            bands=bands,
        )

    return OrderDecision.idle(pct, bands)
