"""Band-position order controller"""

from .controller import BandController
from .bands import compute_bands, percent_band, decide

__all__ = ["BandController", "compute_bands", "percent_band", "decide"]
