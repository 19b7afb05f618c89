"""Live mark prices from the Binance USDT-M futures ticker stream."""

import asyncio
import json
import logging
import math
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass

import websockets
from fastapi import Request
from sqlalchemy.orm import Session, sessionmaker
from websockets.exceptions import WebSocketException

from pnlcard.exceptions import NotFoundError, PnlCardError, PriceFeedError
from pnlcard.services import card_service

logger = logging.getLogger(__name__)

TICKER_EVENT = "24hrTicker"

# Called with (card_id, price) from a worker thread
PriceHandler = Callable[[int, float], None]


def ticker_stream_url(base_url: str, symbol: str) -> str:
    """Build the raw ticker stream URL (ETH/USDT -> .../ethusdt@ticker)."""
    normalized = symbol.replace("/", "").lower()
    return f"{base_url.rstrip('/')}/{normalized}@ticker"


def parse_ticker_message(message: str | bytes) -> float | None:
    """
    Extract the last trade price from a 24hr ticker event.

    Returns None for other events and for payloads without a usable
    positive price.
    """
    try:
        data = json.loads(message)
    except json.JSONDecodeError as e:
        logger.warning("Undecodable ticker message: %s", e)
        return None

    if not isinstance(data, dict) or data.get("e") != TICKER_EVENT:
        return None

    try:
        price = float(data["c"])
    except (KeyError, TypeError, ValueError):
        logger.warning("Ticker event without last price: %s", data)
        return None

    if not math.isfinite(price) or price <= 0:
        return None
    return price


def make_tick_handler(session_factory: sessionmaker) -> PriceHandler:
    """Return a handler that applies each tick in its own session."""

    def apply_tick(card_id: int, price: float) -> None:
        db: Session = session_factory()
        try:
            card_service.apply_mark_price(db, card_id, price)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    return apply_tick


@dataclass
class FeedState:
    """Streaming state for one card."""

    card_id: int
    symbol: str
    task: asyncio.Task | None = None
    last_price: float | None = None
    error: str | None = None

    @property
    def live(self) -> bool:
        return self.task is not None and not self.task.done()


class PriceFeedManager:
    """
    Runs at most one ticker subscription per card.

    Each tick replaces the card's mark price and recomputes it. Ticks are
    applied in arrival order and the last one wins. A dropped connection
    ends the feed with an error in its status; it is not reconnected.
    """

    def __init__(self, base_url: str, on_price: PriceHandler):
        self.base_url = base_url
        self.on_price = on_price
        self._feeds: dict[int, FeedState] = {}

    def start(self, card_id: int, symbol: str) -> FeedState:
        """Start streaming a symbol into a card. Must run inside the event loop."""
        existing = self._feeds.get(card_id)
        if existing is not None and existing.live and existing.symbol == symbol:
            return existing
        if existing is not None and existing.task is not None:
            existing.task.cancel()

        state = FeedState(card_id=card_id, symbol=symbol)
        state.task = asyncio.create_task(self._run(state), name=f"price-feed-{card_id}")
        self._feeds[card_id] = state
        return state

    async def stop(self, card_id: int) -> None:
        state = self._feeds.pop(card_id, None)
        if state is None or state.task is None:
            return
        state.task.cancel()
        with suppress(asyncio.CancelledError):
            await state.task
        logger.info("Stopped price feed for card %s", card_id)

    async def stop_all(self) -> None:
        for card_id in list(self._feeds):
            await self.stop(card_id)

    def status(self, card_id: int) -> FeedState | None:
        return self._feeds.get(card_id)

    async def handle_message(self, state: FeedState, message: str | bytes) -> None:
        """Apply one stream message to the card."""
        price = parse_ticker_message(message)
        if price is None:
            return
        state.last_price = price
        try:
            await asyncio.to_thread(self.on_price, state.card_id, price)
        except NotFoundError as e:
            raise PriceFeedError("card no longer exists", symbol=state.symbol) from e
        except PnlCardError as e:
            logger.warning("Dropped tick %s for card %s: %s", price, state.card_id, e)

    async def _run(self, state: FeedState) -> None:
        url = ticker_stream_url(self.base_url, state.symbol)
        logger.info("Connecting price feed for card %s: %s", state.card_id, url)
        try:
            async with websockets.connect(url, ping_interval=20, ping_timeout=10) as ws:
                logger.info("Streaming %s prices from Binance", state.symbol)
                async for message in ws:
                    await self.handle_message(state, message)
            state.error = "Price feed closed by server"
            logger.warning("Price feed for %s closed by server", state.symbol)
        except PriceFeedError as e:
            state.error = str(e)
            logger.warning("Price feed stopped: %s", e)
        except (WebSocketException, OSError) as e:
            state.error = (
                f"Could not stream {state.symbol} from Binance Futures: {e}"
            )
            logger.error("Price feed for %s failed: %s", state.symbol, e)
        except Exception as e:
            state.error = f"Price feed for {state.symbol} failed: {e}"
            logger.exception("Price feed for card %s crashed", state.card_id)


def get_price_feeds(request: Request) -> PriceFeedManager:
    """Dependency returning the application's feed manager."""
    return request.app.state.price_feeds
