"""
Error kinds raised by the pricing engine.

The engine never recovers from these: a calculation either prices every
item code or fails as a whole.
"""
from typing import Optional


class UnknownSku(LookupError):
    """A cart references an item code absent from the rule table."""

    def __init__(self, sku: str):
        self.sku = sku
        super().__init__(f"Unknown SKU: {sku}")

    def __str__(self) -> str:
        return self.args[0]


class InvalidRule(ValueError):
    """A pricing rule or promotion has an impossible shape."""

    def __init__(self, message: str, sku: Optional[str] = None):
        self.sku = sku
        if sku is not None:
            message = f"SKU {sku}: {message}"
        super().__init__(message)


class InvalidCart(ValueError):
    """A pre-tallied cart carries a quantity that is not a positive integer."""
