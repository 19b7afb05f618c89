#!/usr/bin/env python
"""
PNL Card Export Script

Optionally updates the current card through the API, then downloads
its PNG render from a running server.

Usage:
    uv run python scripts/export_card.py --set entryPrice=64000 --set size=0.5
    uv run python scripts/export_card.py --card-id 2 --output eth.png
"""

import argparse
import logging
import sys
import time
from pathlib import Path

import httpx

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def parse_overrides(pairs: list[str]) -> dict[str, str]:
    """Turn key=value arguments into a partial card update."""
    overrides: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected key=value, got {pair!r}")
        overrides[key] = value
    return overrides


def export_card(
    client: httpx.Client,
    overrides: dict[str, str],
    card_id: int | None,
    output: Path,
) -> Path:
    if overrides:
        path = f"/api/cards/{card_id}" if card_id is not None else "/api/pnl"
        response = client.post(path, json=overrides)
        if response.status_code == 400:
            raise ValueError(response.json().get("detail", "Invalid card data"))
        response.raise_for_status()
        card = response.json()
        logger.info(
            "Updated %s: PNL %s, ROI %s%%", card["symbol"], card["unrealizedPnl"], card["roi"]
        )

    path = f"/api/cards/{card_id}/image" if card_id is not None else "/api/pnl/image"
    response = client.get(path)
    response.raise_for_status()

    output.write_bytes(response.content)
    logger.info("Saved %d bytes to %s", len(response.content), output)
    return output


def main() -> int:
    parser = argparse.ArgumentParser(description="Export a PNL card as PNG")
    parser.add_argument("--base-url", default="http://127.0.0.1:8000")
    parser.add_argument("--card-id", type=int, default=None)
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="FIELD=VALUE",
        help="Card field to update before export (wire name, e.g. markPrice)",
    )
    parser.add_argument("--output", type=Path, default=None)
    parser.add_argument("--timeout", type=float, default=90.0)
    args = parser.parse_args()

    output = args.output or Path(f"pnl-{int(time.time() * 1000)}.png")

    try:
        overrides = parse_overrides(args.overrides)
        with httpx.Client(base_url=args.base_url, timeout=args.timeout) as client:
            export_card(client, overrides, args.card_id, output)
    except ValueError as e:
        logger.error("Rejected: %s", e)
        return 2
    except httpx.HTTPError as e:
        logger.error("Export failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
