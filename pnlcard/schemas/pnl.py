"""Wire schema for position cards."""

from typing import Any, Literal

import pydantic
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pnlcard.exceptions import ValidationError

READ_ONLY_FIELDS = ("id",)


class PnlData(BaseModel):
    """
    A full position card as sent over the wire.

    Field names are camelCase on the wire and snake_case in Python.
    Numeric strings are coerced, enums are closed sets and unknown
    fields are rejected. Defaults describe a sample BTCUSDT long.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        allow_inf_nan=False,
    )

    id: int | None = None
    symbol: str = Field(default="BTCUSDT", max_length=30)
    contract_type: Literal["Perp", "Quarterly"] = Field(default="Perp", alias="type")
    margin_mode: Literal["Cross", "Isolated"] = "Cross"
    leverage: int = Field(default=20, ge=1, le=125)
    position_type: Literal["Long", "Short"] = "Long"
    signal_bars: int = Field(default=4, ge=0, le=4)
    unrealized_pnl: float = -1381.63
    roi: float = -41.03
    size: float = 0.768
    size_unit: str = Field(default="BTC", max_length=20)
    margin: float = 3367.29
    margin_ratio: float = 5.17
    entry_price: float = 89493.20
    mark_price: float = 87689.94
    liq_price: float = 80812.02
    wallet_balance: float = 10000
    tp_price: str = Field(default="--", max_length=30)
    sl_price: str = Field(default="--", max_length=30)


class LiveToggle(BaseModel):
    enabled: bool


class LiveStatus(BaseModel):
    card_id: int
    symbol: str
    live: bool
    last_price: float | None = None
    error: str | None = None


def _wire_name(part: Any) -> str:
    field = PnlData.model_fields.get(part) if isinstance(part, str) else None
    if field is not None and field.alias:
        return field.alias
    return str(part)


def _format_error(exc: pydantic.ValidationError) -> tuple[str, str | None]:
    """Turn the first pydantic error into a message and wire field name."""
    first = exc.errors()[0]
    field = ".".join(_wire_name(part) for part in first["loc"]) or None
    message = f"{field}: {first['msg']}" if field else first["msg"]
    return message, field


def parse_pnl_data(raw: dict[str, Any]) -> PnlData:
    """Validate a wire dict, raising ValidationError on rejection."""
    try:
        return PnlData.model_validate(raw)
    except pydantic.ValidationError as e:
        message, field = _format_error(e)
        raise ValidationError(message, field=field) from e


def merge_pnl_data(current: PnlData, partial: dict[str, Any]) -> PnlData:
    """
    Merge a partial wire update over a card and validate the result.

    Read-only fields in the partial are ignored.
    """
    merged = current.model_dump(by_alias=True)
    for key, value in partial.items():
        if key in READ_ONLY_FIELDS:
            continue
        merged[key] = value
    merged["id"] = current.id
    return parse_pnl_data(merged)
