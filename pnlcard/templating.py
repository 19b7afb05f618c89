"""Shared Jinja2 environment with the card formatting filters."""

from pathlib import Path

from fastapi.templating import Jinja2Templates

from pnlcard.utils.formatting import (
    format_number,
    format_pnl,
    format_price,
    format_roi,
    pnl_color,
)

TEMPLATES_DIR = Path(__file__).parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["number"] = format_number
templates.env.filters["price"] = format_price
templates.env.filters["pnl"] = format_pnl
templates.env.filters["roi"] = format_roi
templates.env.filters["pnl_color"] = pnl_color
