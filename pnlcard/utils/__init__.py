"""Utility modules for common operations."""

from pnlcard.utils.formatting import (
    format_number,
    format_pnl,
    format_price,
    format_roi,
    pnl_color,
)
from pnlcard.utils.htmx import htmx_response, is_htmx_request
from pnlcard.utils.query_params import (
    parse_int_param,
    split_card_params,
)

__all__ = [
    "format_number",
    "format_price",
    "format_pnl",
    "format_roi",
    "pnl_color",
    "parse_int_param",
    "split_card_params",
    "is_htmx_request",
    "htmx_response",
]
