"""Collaborator implementations"""

from .paper import (
    InsufficientReserves,
    PaperMarketMaker,
    PaperMinter,
    PaperTreasury,
    PlacedOrder,
)

__all__ = [
    "InsufficientReserves",
    "PaperMarketMaker",
    "PaperMinter",
    "PaperTreasury",
    "PlacedOrder",
]
