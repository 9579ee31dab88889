"""Rolling price indicators"""

from .engine import IndicatorEngine, PendingUpdate
from .window import ObservationWindow

__all__ = ["IndicatorEngine", "ObservationWindow", "PendingUpdate"]
