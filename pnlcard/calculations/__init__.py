"""Calculation modules for position card metrics."""

from pnlcard.calculations.pnl_calcs import (
    DERIVED_FIELDS,
    MAINTENANCE_MARGIN_RATE,
    METRICS_EPSILON,
    calculate_pnl_values,
    liquidation_price,
    metrics_changed,
)

__all__ = [
    "DERIVED_FIELDS",
    "MAINTENANCE_MARGIN_RATE",
    "METRICS_EPSILON",
    "calculate_pnl_values",
    "liquidation_price",
    "metrics_changed",
]
