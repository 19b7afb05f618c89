"""Custom exceptions for the PNL card service."""


class PnlCardError(Exception):
    """Base exception for the PNL card service."""

    pass


class NotFoundError(PnlCardError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: int | str):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(f"{resource_type} with id {resource_id} not found")


class ValidationError(PnlCardError):
    """Raised when card data fails schema validation."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class RenderError(PnlCardError):
    """Raised when the headless browser fails to produce a card image."""

    def __init__(self, message: str, original_error: Exception | None = None):
        self.original_error = original_error
        super().__init__(message)


class PriceFeedError(PnlCardError):
    """Raised when the live price stream cannot be used."""

    def __init__(self, message: str, symbol: str | None = None):
        self.symbol = symbol
        super().__init__(f"{symbol}: {message}" if symbol else message)
