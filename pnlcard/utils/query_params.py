"""Query parameter parsing utilities."""


def parse_int_param(value: str | None) -> int | None:
    """Parse string to int, returning None for empty/invalid values."""
    if not value:
        return None
    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def split_card_params(
    params: dict[str, str], reserved: tuple[str, ...] = ("card_id",)
) -> tuple[dict[str, str], dict[str, str]]:
    """Split query params into reserved control params and inline card fields."""
    control = {k: v for k, v in params.items() if k in reserved}
    fields = {k: v for k, v in params.items() if k not in reserved}
    return control, fields
