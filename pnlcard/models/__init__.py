from pnlcard.models.base import Base
from pnlcard.models.position_card import PositionCard

__all__ = [
    "Base",
    "PositionCard",
]
