"""JSON API for the current card, the one the editor opens on."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from pnlcard.database import get_db
from pnlcard.exceptions import ValidationError
from pnlcard.routers.cards import (
    base_url,
    load_card,
    render_png,
    update_card_checked,
)
from pnlcard.schemas import PnlData, parse_pnl_data
from pnlcard.services import card_service
from pnlcard.services.price_feed import PriceFeedManager, get_price_feeds
from pnlcard.services.render_service import CardRenderer, card_view_url, get_renderer
from pnlcard.utils.query_params import parse_int_param, split_card_params

router = APIRouter()


@router.get("", response_model=PnlData)
def get_pnl(db: Session = Depends(get_db)) -> PnlData:
    """Get the current card."""
    return card_service.card_to_data(card_service.get_current_card(db))


@router.post("", response_model=PnlData)
async def update_pnl(
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    feeds: PriceFeedManager = Depends(get_price_feeds),
) -> PnlData:
    """Merge a partial update into the current card and recompute it."""
    card = await run_in_threadpool(card_service.get_current_card, db)
    return await update_card_checked(db, feeds, card.id, payload)


@router.post("/reset", response_model=PnlData)
async def reset_pnl(
    db: Session = Depends(get_db),
    feeds: PriceFeedManager = Depends(get_price_feeds),
) -> PnlData:
    """Restore the current card to defaults."""
    card = await run_in_threadpool(card_service.get_current_card, db)
    card = await run_in_threadpool(card_service.reset_card, db, card.id)
    await feeds.stop(card.id)
    return card_service.card_to_data(card)


@router.get("/image")
async def pnl_image(
    request: Request,
    db: Session = Depends(get_db),
    renderer: CardRenderer = Depends(get_renderer),
) -> Response:
    """
    Export a card as PNG.

    With no query parameters the current card is rendered. Otherwise
    card_id picks a stored card, and any other parameters describe a
    card inline (wire field names, merged over defaults).
    """
    control, fields = split_card_params(dict(request.query_params))
    url_base = base_url(request)

    if fields:
        try:
            parse_pnl_data(fields)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        return await render_png(renderer, card_view_url(url_base, params=fields))

    if "card_id" in control:
        card_id = parse_int_param(control["card_id"])
        if card_id is None:
            raise HTTPException(status_code=400, detail="card_id must be an integer")
        await run_in_threadpool(load_card, db, card_id)
        return await render_png(renderer, card_view_url(url_base, card_id=card_id))

    card = await run_in_threadpool(card_service.get_current_card, db)
    return await render_png(renderer, card_view_url(url_base, card_id=card.id))
