from pnlcard.schemas.pnl import (
    LiveStatus,
    LiveToggle,
    PnlData,
    merge_pnl_data,
    parse_pnl_data,
)

__all__ = [
    "PnlData",
    "LiveToggle",
    "LiveStatus",
    "parse_pnl_data",
    "merge_pnl_data",
]
