"""JSON API for the card list (one card per editor tab)."""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from pnlcard.config import get_settings
from pnlcard.database import get_db
from pnlcard.exceptions import NotFoundError, RenderError, ValidationError
from pnlcard.models import PositionCard
from pnlcard.schemas import LiveStatus, LiveToggle, PnlData
from pnlcard.services import card_service
from pnlcard.services.price_feed import PriceFeedManager, get_price_feeds
from pnlcard.services.render_service import CardRenderer, card_view_url, get_renderer

logger = logging.getLogger(__name__)

router = APIRouter()


def base_url(request: Request) -> str:
    """Where the headless browser reaches this app."""
    return get_settings().public_base_url or str(request.base_url)


async def render_png(renderer: CardRenderer, url: str) -> Response:
    """Render a card view to a PNG response, surfacing failures as 500."""
    try:
        png = await renderer.render_card(url)
    except RenderError as e:
        raise HTTPException(
            status_code=500,
            detail={"message": "Failed to generate image", "error": str(e)},
        ) from e
    return Response(content=png, media_type="image/png")


async def follow_live_mode(feeds: PriceFeedManager, card: PositionCard) -> None:
    """Keep the card's price feed in step with its live flag and symbol."""
    if card.is_live:
        feeds.start(card.id, card.symbol)
    elif feeds.status(card.id) is not None:
        await feeds.stop(card.id)


def load_card(db: Session, card_id: int) -> PositionCard:
    try:
        return card_service.get_card(db, card_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail="Card not found") from e


async def update_card_checked(
    db: Session, feeds: PriceFeedManager, card_id: int, payload: dict[str, Any]
) -> PnlData:
    """Apply a partial update, mapping store errors to HTTP errors."""
    try:
        card = await run_in_threadpool(card_service.update_card, db, card_id, payload)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail="Card not found") from e
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await follow_live_mode(feeds, card)
    return card_service.card_to_data(card)


@router.get("", response_model=list[PnlData])
def list_cards(db: Session = Depends(get_db)) -> list[PnlData]:
    """List all cards in tab order."""
    return [card_service.card_to_data(card) for card in card_service.list_cards(db)]


@router.post("", response_model=PnlData, status_code=201)
def create_card(
    payload: dict[str, Any] | None = Body(default=None),
    db: Session = Depends(get_db),
) -> PnlData:
    """Open a new card from defaults plus an optional partial."""
    try:
        card = card_service.create_card(db, payload)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return card_service.card_to_data(card)


@router.post("/recalculate")
def recalculate_cards(db: Session = Depends(get_db)) -> dict[str, int]:
    """Recompute derived metrics for every card."""
    results = card_service.recalculate_all(db)
    logger.info("Recalculated cards: %s", results)
    return results


@router.get("/{card_id}", response_model=PnlData)
def get_card(card_id: int, db: Session = Depends(get_db)) -> PnlData:
    return card_service.card_to_data(load_card(db, card_id))


@router.post("/{card_id}", response_model=PnlData)
async def update_card(
    card_id: int,
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    feeds: PriceFeedManager = Depends(get_price_feeds),
) -> PnlData:
    """Merge a partial update into a card and recompute its metrics."""
    return await update_card_checked(db, feeds, card_id, payload)


@router.post("/{card_id}/reset", response_model=PnlData)
async def reset_card(
    card_id: int,
    db: Session = Depends(get_db),
    feeds: PriceFeedManager = Depends(get_price_feeds),
) -> PnlData:
    """Restore a card to defaults and switch it back to draft mode."""
    try:
        card = await run_in_threadpool(card_service.reset_card, db, card_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail="Card not found") from e
    await feeds.stop(card_id)
    return card_service.card_to_data(card)


@router.delete("/{card_id}", status_code=204)
async def delete_card(
    card_id: int,
    db: Session = Depends(get_db),
    feeds: PriceFeedManager = Depends(get_price_feeds),
) -> Response:
    try:
        await run_in_threadpool(card_service.delete_card, db, card_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail="Card not found") from e
    await feeds.stop(card_id)
    return Response(status_code=204)


@router.get("/{card_id}/image")
async def card_image(
    request: Request,
    card_id: int,
    db: Session = Depends(get_db),
    renderer: CardRenderer = Depends(get_renderer),
) -> Response:
    """Export a stored card as PNG."""
    await run_in_threadpool(load_card, db, card_id)
    return await render_png(renderer, card_view_url(base_url(request), card_id=card_id))


@router.get("/{card_id}/live", response_model=LiveStatus)
def live_status(
    card_id: int,
    db: Session = Depends(get_db),
    feeds: PriceFeedManager = Depends(get_price_feeds),
) -> LiveStatus:
    """Report whether a card is streaming and the last feed error."""
    card = load_card(db, card_id)
    state = feeds.status(card_id)
    return LiveStatus(
        card_id=card.id,
        symbol=state.symbol if state else card.symbol,
        live=state.live if state else False,
        last_price=state.last_price if state else None,
        error=state.error if state else None,
    )


@router.post("/{card_id}/live", response_model=LiveStatus)
async def toggle_live(
    card_id: int,
    toggle: LiveToggle,
    db: Session = Depends(get_db),
    feeds: PriceFeedManager = Depends(get_price_feeds),
) -> LiveStatus:
    """Switch a card between live mark prices and draft mode."""
    try:
        card = await run_in_threadpool(card_service.set_live, db, card_id, toggle.enabled)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail="Card not found") from e
    await follow_live_mode(feeds, card)
    logger.info("Card %s live mode: %s", card_id, toggle.enabled)
    state = feeds.status(card_id)
    return LiveStatus(
        card_id=card.id,
        symbol=card.symbol,
        live=toggle.enabled,
        last_price=state.last_price if state else None,
        error=state.error if state else None,
    )
