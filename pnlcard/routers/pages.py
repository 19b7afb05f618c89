"""HTML pages: the card editor and the bare card view used for export."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from starlette.responses import Response

from pnlcard.calculations import calculate_pnl_values
from pnlcard.database import get_db
from pnlcard.exceptions import NotFoundError, ValidationError
from pnlcard.schemas import parse_pnl_data
from pnlcard.services import card_service
from pnlcard.services.price_feed import PriceFeedManager, get_price_feeds
from pnlcard.templating import templates
from pnlcard.utils.htmx import htmx_response
from pnlcard.utils.query_params import parse_int_param, split_card_params

logger = logging.getLogger(__name__)

router = APIRouter()


def _card_or_404(db: Session, card_id: int):
    try:
        return card_service.get_card(db, card_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail="Card not found") from e


@router.get("/", response_class=HTMLResponse)
def index(
    request: Request,
    card_id: str | None = None,
    db: Session = Depends(get_db),
) -> Response:
    """Editor page: card tabs, the input form and a live preview."""
    selected_id = parse_int_param(card_id)
    if selected_id is not None:
        card = _card_or_404(db, selected_id)
    else:
        card = card_service.get_current_card(db)

    context = {
        "title": "PNL Generator",
        "cards": card_service.list_cards(db),
        "card": card_service.card_to_data(card),
        "is_live": card.is_live,
    }
    return htmx_response(
        templates=templates,
        request=request,
        full_template="index.html",
        partial_template="partials/editor.html",
        context=context,
    )


@router.post("/cards/new")
def new_card(db: Session = Depends(get_db)) -> RedirectResponse:
    """Open a new tab with a default card."""
    card = card_service.create_card(db)
    return RedirectResponse(url=f"/?card_id={card.id}", status_code=303)


@router.post("/cards/{card_id}/form", response_class=HTMLResponse)
async def submit_form(
    request: Request,
    card_id: int,
    db: Session = Depends(get_db),
    feeds: PriceFeedManager = Depends(get_price_feeds),
) -> HTMLResponse:
    """Apply the editor form and return the refreshed preview."""
    form = await request.form()
    partial = {key: value for key, value in form.items() if value != ""}

    error = None
    try:
        card = await run_in_threadpool(card_service.update_card, db, card_id, partial)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail="Card not found") from e
    except ValidationError as e:
        logger.info("Rejected form update for card %s: %s", card_id, e)
        error = str(e)
        card = await run_in_threadpool(_card_or_404, db, card_id)
    else:
        if card.is_live:
            feeds.start(card.id, card.symbol)

    return templates.TemplateResponse(
        request=request,
        name="partials/card_preview.html",
        context={
            "card": card_service.card_to_data(card),
            "is_live": card.is_live,
            "error": error,
        },
    )


@router.get("/cards/{card_id}/preview", response_class=HTMLResponse)
def card_preview(
    request: Request, card_id: int, db: Session = Depends(get_db)
) -> HTMLResponse:
    """Preview partial, polled while the card is live."""
    card = _card_or_404(db, card_id)
    return templates.TemplateResponse(
        request=request,
        name="partials/card_preview.html",
        context={
            "card": card_service.card_to_data(card),
            "is_live": card.is_live,
            "error": None,
        },
    )


@router.post("/cards/{card_id}/reset")
async def reset_card(
    card_id: int,
    db: Session = Depends(get_db),
    feeds: PriceFeedManager = Depends(get_price_feeds),
) -> RedirectResponse:
    try:
        await run_in_threadpool(card_service.reset_card, db, card_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail="Card not found") from e
    await feeds.stop(card_id)
    return RedirectResponse(url=f"/?card_id={card_id}", status_code=303)


@router.post("/cards/{card_id}/delete")
async def delete_card(
    card_id: int,
    db: Session = Depends(get_db),
    feeds: PriceFeedManager = Depends(get_price_feeds),
) -> RedirectResponse:
    try:
        await run_in_threadpool(card_service.delete_card, db, card_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail="Card not found") from e
    await feeds.stop(card_id)
    return RedirectResponse(url="/", status_code=303)


@router.get("/isolated-card", response_class=HTMLResponse)
def isolated_card(request: Request, db: Session = Depends(get_db)) -> HTMLResponse:
    """
    The bare card inside #pnl-card-container, loaded by the image exporter.

    Renders a stored card when card_id is given, otherwise a card built
    from inline query parameters merged over defaults and recomputed.
    """
    control, fields = split_card_params(dict(request.query_params))

    if fields:
        try:
            base = parse_pnl_data(fields)
            card = parse_pnl_data(calculate_pnl_values(base.model_dump()))
        except ValidationError as e:
            return templates.TemplateResponse(
                request=request,
                name="isolated_card.html",
                context={"card": None, "error": str(e)},
                status_code=400,
            )
    else:
        card_id = parse_int_param(control.get("card_id"))
        if card_id is not None:
            stored = _card_or_404(db, card_id)
        else:
            stored = card_service.get_current_card(db)
        card = card_service.card_to_data(stored)

    return templates.TemplateResponse(
        request=request,
        name="isolated_card.html",
        context={"card": card, "error": None},
    )
