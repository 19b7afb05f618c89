"""Number formatting for the card, in the exchange's de-DE style."""


def format_number(num: float, decimals: int = 1) -> str:
    """Format with '.' thousands separators and ',' as decimal mark."""
    formatted = f"{num:,.{decimals}f}"
    return formatted.replace(",", "_").replace(".", ",").replace("_", ".")


def price_decimals(num: float) -> int:
    """
    Decimal places a price is shown with.

    Keeps the precision the value was entered with, capped at 2 for
    prices above 1 so small-cap prices stay readable.
    """
    text = repr(float(num))
    if "e" in text or "." not in text:
        decimals = 1
    else:
        decimals = len(text.split(".")[1]) or 1
    if num > 1 and decimals > 2:
        decimals = 2
    return decimals


def format_price(num: float) -> str:
    return format_number(num, price_decimals(num))


def format_pnl(pnl: float) -> str:
    prefix = "+" if pnl >= 0 else ""
    return prefix + format_number(pnl, 2)


def format_roi(roi: float) -> str:
    prefix = "+" if roi >= 0 else ""
    return prefix + format_number(roi, 2) + "%"


def pnl_color(value: float) -> str:
    """Exchange green for gains, red for losses."""
    return "#0ECB81" if value >= 0 else "#F6465D"
