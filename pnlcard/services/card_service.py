"""Card store: CRUD for position cards with recompute-on-change."""

import logging
from typing import Any

from sqlalchemy.orm import Session

from pnlcard.calculations import DERIVED_FIELDS, calculate_pnl_values, metrics_changed
from pnlcard.exceptions import NotFoundError
from pnlcard.models import PositionCard
from pnlcard.schemas import PnlData, merge_pnl_data, parse_pnl_data

logger = logging.getLogger(__name__)

INPUT_FIELDS = tuple(
    name for name in PnlData.model_fields if name != "id" and name not in DERIVED_FIELDS
)


def card_to_data(card: PositionCard) -> PnlData:
    """Build the wire model for a stored card."""
    return PnlData.model_validate(
        {name: getattr(card, name) for name in PnlData.model_fields}
    )


def _apply_inputs(card: PositionCard, data: PnlData) -> None:
    for name in INPUT_FIELDS:
        setattr(card, name, getattr(data, name))


def _recompute(data: PnlData) -> PnlData:
    """Run the calculator over a record and validate the result."""
    return parse_pnl_data(calculate_pnl_values(data.model_dump()))


def _apply_derived(card: PositionCard, computed: PnlData) -> bool:
    """
    Store recomputed metrics if any moved past epsilon.

    Returns True when the stored values were overwritten. Writes that only
    differ in float noise are skipped so repeated recomputes settle.
    """
    previous = {field: getattr(card, field) for field in DERIVED_FIELDS}
    if not metrics_changed(previous, computed.model_dump()):
        return False
    for field in DERIVED_FIELDS:
        setattr(card, field, getattr(computed, field))
    return True


def list_cards(db: Session) -> list[PositionCard]:
    """Get all cards in tab order."""
    return db.query(PositionCard).order_by(PositionCard.id).all()


def get_card(db: Session, card_id: int) -> PositionCard:
    """Get a single card by ID."""
    card = db.query(PositionCard).filter(PositionCard.id == card_id).first()
    if not card:
        raise NotFoundError("PositionCard", card_id)
    return card


def create_card(db: Session, partial: dict[str, Any] | None = None) -> PositionCard:
    """Create a card from schema defaults with an optional wire update on top."""
    data = merge_pnl_data(PnlData(), partial or {})
    computed = _recompute(data)
    card = PositionCard()
    _apply_inputs(card, data)
    for field in DERIVED_FIELDS:
        setattr(card, field, getattr(data, field))
    _apply_derived(card, computed)
    db.add(card)
    db.commit()
    db.refresh(card)
    logger.info("Created card %s for %s", card.id, card.symbol)
    return card


def get_current_card(db: Session) -> PositionCard:
    """Get the first card, creating a default one when the store is empty."""
    card = db.query(PositionCard).order_by(PositionCard.id).first()
    if card is None:
        card = create_card(db)
    return card


def update_card(db: Session, card_id: int, partial: dict[str, Any]) -> PositionCard:
    """
    Merge a partial wire update into a card, validate and recompute.

    Raises ValidationError without touching the stored card when the
    merged record is rejected.
    """
    card = get_card(db, card_id)
    data = merge_pnl_data(card_to_data(card), partial)
    computed = _recompute(data)
    _apply_inputs(card, data)
    _apply_derived(card, computed)
    db.commit()
    db.refresh(card)
    return card


def reset_card(db: Session, card_id: int) -> PositionCard:
    """Restore a card to schema defaults and leave live mode."""
    card = get_card(db, card_id)
    defaults = PnlData()
    computed = _recompute(defaults)
    _apply_inputs(card, defaults)
    for field in DERIVED_FIELDS:
        setattr(card, field, getattr(defaults, field))
    _apply_derived(card, computed)
    card.is_live = False
    db.commit()
    db.refresh(card)
    logger.info("Reset card %s to defaults", card_id)
    return card


def delete_card(db: Session, card_id: int) -> None:
    """Delete a card."""
    card = get_card(db, card_id)
    db.delete(card)
    db.commit()
    logger.info("Deleted card %s", card_id)


def set_live(db: Session, card_id: int, enabled: bool) -> PositionCard:
    """Record whether a card follows the live price feed."""
    card = get_card(db, card_id)
    card.is_live = enabled
    db.commit()
    db.refresh(card)
    return card


def apply_mark_price(db: Session, card_id: int, price: float) -> PositionCard:
    """Replace a card's mark price with a live tick and recompute."""
    card = get_card(db, card_id)
    computed = _recompute(card_to_data(card).model_copy(update={"mark_price": price}))
    card.mark_price = price
    changed = _apply_derived(card, computed)
    db.commit()
    if changed:
        logger.debug("Card %s repriced at %s", card_id, price)
    return card


def recalculate_all(db: Session) -> dict[str, int]:
    """
    Recompute derived metrics for every card.

    Returns summary of updated cards.
    """
    cards = list_cards(db)

    updated = 0
    for card in cards:
        if _apply_derived(card, _recompute(card_to_data(card))):
            updated += 1

    db.commit()

    return {
        "updated": updated,
        "unchanged": len(cards) - updated,
        "total": len(cards),
    }
