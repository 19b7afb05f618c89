"""Pure calculation functions for futures position metrics."""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

DEFAULT_LEVERAGE = 20
DEFAULT_SIZE_UNIT = "BTC"
DEFAULT_WALLET_BALANCE = 10000.0
NOTIONAL_UNIT = "USDT"

# Flat maintenance margin rate, not tiered
MAINTENANCE_MARGIN_RATE = 0.004

# Smallest change in a derived field worth writing back to the store
METRICS_EPSILON = 0.01

DERIVED_FIELDS = ("unrealized_pnl", "roi", "margin", "margin_ratio", "liq_price")

CENT = Decimal("0.01")


def _divide(numerator: float, denominator: float) -> float:
    """Divide with IEEE-754 semantics instead of raising ZeroDivisionError."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)
    return numerator / denominator


def _round2(value: float) -> float:
    """Round to cents with exact ties going away from zero (0.125 -> 0.13)."""
    # Non-finite values pass through; floats this large are already whole
    if not math.isfinite(value) or abs(value) >= 2**52:
        return value
    return float(Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


def _clamp(value: float, low: float | None = None, high: float | None = None) -> float:
    """Clamp a value, letting NaN through untouched."""
    if math.isnan(value):
        return value
    if high is not None and value > high:
        value = high
    if low is not None and value < low:
        value = low
    return value


def liquidation_price(
    entry_price: float,
    position_value: float,
    leverage: float,
    wallet_balance: float,
    position_type: str,
    margin_mode: str,
) -> float:
    """
    Approximate liquidation price.

    Cross margin backs the position with the whole wallet, so the distance
    to liquidation is wallet / notional. Isolated margin only has the
    initial margin, so the distance is 1 / leverage.
    """
    if margin_mode == "Cross":
        buffer = _divide(wallet_balance, position_value)
    else:
        buffer = _divide(1.0, leverage)

    if position_type == "Long":
        liq = entry_price * (1 - buffer + MAINTENANCE_MARGIN_RATE)
    else:
        liq = entry_price * (1 + buffer - MAINTENANCE_MARGIN_RATE)

    return _clamp(liq, low=0.0)


def calculate_pnl_values(data: dict[str, Any]) -> dict[str, Any]:
    """
    Derive PNL, ROI, margin, margin ratio and liquidation price.

    Takes a (possibly partial) card record keyed by snake_case field names
    and returns a new dict with the five derived fields merged over it. When
    entry_price or size is missing or zero the input is returned unchanged.

    Missing and zero inputs are treated alike when applying defaults, so an
    explicit leverage of 0 becomes 20.
    """
    updated = dict(data)

    entry_price = updated.get("entry_price")
    size = updated.get("size")
    if not entry_price or not size:
        return updated

    leverage = updated.get("leverage") or DEFAULT_LEVERAGE
    mark_price = updated.get("mark_price") or entry_price
    position_type = updated.get("position_type") or "Long"
    size_unit = updated.get("size_unit") or DEFAULT_SIZE_UNIT
    wallet_balance = updated.get("wallet_balance") or DEFAULT_WALLET_BALANCE
    margin_mode = updated.get("margin_mode") or "Cross"

    is_notional = size_unit.upper() == NOTIONAL_UNIT
    position_value = size if is_notional else entry_price * size
    size_in_base = _divide(size, entry_price) if is_notional else size

    direction = 1 if position_type == "Long" else -1
    pnl = (mark_price - entry_price) * size_in_base * direction
    initial_margin = _divide(position_value, leverage)
    roi = _divide(pnl, initial_margin) * 100

    maintenance_margin = position_value * MAINTENANCE_MARGIN_RATE
    margin_balance = wallet_balance + pnl
    if margin_balance <= 0:
        margin_ratio = 100.0
    else:
        margin_ratio = _divide(maintenance_margin, margin_balance) * 100

    liq = liquidation_price(
        entry_price,
        position_value,
        leverage,
        wallet_balance,
        position_type,
        margin_mode,
    )

    updated.update(
        unrealized_pnl=_round2(pnl),
        roi=_round2(roi),
        margin=_round2(initial_margin),
        margin_ratio=_round2(_clamp(margin_ratio, 0.0, 100.0)),
        liq_price=_round2(liq),
    )
    return updated


def metrics_changed(
    previous: dict[str, Any],
    computed: dict[str, Any],
    epsilon: float = METRICS_EPSILON,
) -> bool:
    """
    Check whether any derived field moved by more than epsilon.

    Fields absent from the previous record always count as changed.
    """
    for field in DERIVED_FIELDS:
        if field not in computed:
            continue
        old = previous.get(field)
        if old is None:
            return True
        if abs(computed[field] - old) > epsilon:
            return True
    return False
