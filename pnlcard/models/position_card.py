from sqlalchemy import Boolean, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from pnlcard.models.base import Base, TimestampMixin


class PositionCard(Base, TimestampMixin):
    """One position card (a tab in the editor) and its derived metrics."""

    __tablename__ = "position_cards"

    id: Mapped[int] = mapped_column(primary_key=True)

    symbol: Mapped[str] = mapped_column(String(30), default="BTCUSDT")
    contract_type: Mapped[str] = mapped_column("type", String(20), default="Perp")
    margin_mode: Mapped[str] = mapped_column(String(10), default="Cross")
    leverage: Mapped[int] = mapped_column(Integer, default=20)
    position_type: Mapped[str] = mapped_column(String(10), default="Long")
    signal_bars: Mapped[int] = mapped_column(Integer, default=4)

    # Position inputs
    size: Mapped[float] = mapped_column(Float)
    size_unit: Mapped[str] = mapped_column(String(20), default="BTC")
    entry_price: Mapped[float] = mapped_column(Float)
    mark_price: Mapped[float] = mapped_column(Float)
    wallet_balance: Mapped[float] = mapped_column(Float, default=10000.0)

    # Derived metrics
    unrealized_pnl: Mapped[float] = mapped_column(Float)
    roi: Mapped[float] = mapped_column(Float)
    margin: Mapped[float] = mapped_column(Float)
    margin_ratio: Mapped[float] = mapped_column(Float)
    liq_price: Mapped[float] = mapped_column(Float)

    # Free text, shown as-is on the card
    tp_price: Mapped[str] = mapped_column(String(30), default="--")
    sl_price: Mapped[str] = mapped_column(String(30), default="--")

    # Live mode was switched on for this card
    is_live: Mapped[bool] = mapped_column(Boolean, default=False)
