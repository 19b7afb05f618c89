import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pnlcard.config import get_settings
from pnlcard.database import SessionLocal, engine
from pnlcard.logging_config import configure_logging
from pnlcard.models import Base
from pnlcard.routers import cards, pages, pnl
from pnlcard.services import card_service
from pnlcard.services.price_feed import PriceFeedManager, make_tick_handler
from pnlcard.services.render_service import CardRenderer

# Configure logging at startup
configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the card store, renderer and price feeds for the process."""
    settings = get_settings()
    Base.metadata.create_all(bind=engine)

    app.state.renderer = CardRenderer(settings)
    app.state.price_feeds = PriceFeedManager(
        settings.price_feed_url, make_tick_handler(SessionLocal)
    )

    # Bring stored cards up to date and resume the ones left in live mode
    db = SessionLocal()
    try:
        results = card_service.recalculate_all(db)
        logger.info("Loaded cards: %s", results)
        for card in card_service.list_cards(db):
            if card.is_live:
                app.state.price_feeds.start(card.id, card.symbol)
    finally:
        db.close()

    try:
        yield
    finally:
        await app.state.price_feeds.stop_all()
        await app.state.renderer.close()


app = FastAPI(title="PNL Generator", lifespan=lifespan)

# Routers
app.include_router(pages.router)
app.include_router(pnl.router, prefix="/api/pnl", tags=["pnl"])
app.include_router(cards.router, prefix="/api/cards", tags=["cards"])


@app.get("/health")
def health_check() -> dict[str, str]:
    return {"status": "ok"}
