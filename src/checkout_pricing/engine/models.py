"""
Data models for the checkout pricing engine.

Uses frozen dataclasses so rule tables cannot change during a calculation.
A promotion is one of three variants (NoPromotion, BulkDiscount,
BuyXGetYFree) rather than a dict of optional keys.
"""
from dataclasses import dataclass, field
from typing import Mapping, Optional, Union

from .errors import InvalidRule


def _check_int(value, name: str, minimum: int):
    """Raise InvalidRule unless value is an int >= minimum (bools rejected)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRule(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise InvalidRule(f"{name} must be >= {minimum}, got {value}")


@dataclass(frozen=True)
class NoPromotion:
    """Every unit charged at the unit price."""

    def describe(self) -> str:
        return "no promotion"


@dataclass(frozen=True)
class BulkDiscount:
    """Every complete group of threshold_quantity units costs bundle_price."""
    threshold_quantity: int
    bundle_price: int

    def __post_init__(self):
        _check_int(self.threshold_quantity, "threshold_quantity", 1)
        _check_int(self.bundle_price, "bundle_price", 0)

    def describe(self) -> str:
        return f"{self.threshold_quantity} for {self.bundle_price}"


@dataclass(frozen=True)
class BuyXGetYFree:
    """Every complete group of paid + free units is charged for paid units only."""
    paid_quantity: int
    free_quantity: int

    def __post_init__(self):
        _check_int(self.paid_quantity, "paid_quantity", 1)
        _check_int(self.free_quantity, "free_quantity", 1)

    @property
    def group_size(self) -> int:
        return self.paid_quantity + self.free_quantity

    def describe(self) -> str:
        return f"buy {self.paid_quantity} get {self.free_quantity} free"


Promotion = Union[NoPromotion, BulkDiscount, BuyXGetYFree]


@dataclass(frozen=True)
class PricingRule:
    """Unit price (minor currency units) plus at most one promotion."""
    unit_price: int
    promotion: Promotion = field(default_factory=NoPromotion)

    def __post_init__(self):
        _check_int(self.unit_price, "unit_price", 0)
        if not isinstance(self.promotion, (NoPromotion, BulkDiscount, BuyXGetYFree)):
            raise InvalidRule(f"unsupported promotion {self.promotion!r}")


# Item code → rule
RuleTable = Mapping[str, PricingRule]


@dataclass
class TraceStep:
    """A single step in the pricing trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class LineItem:
    """Priced quantity of a single item code."""
    sku: str
    quantity: int
    unit_price: int
    promotion: str
    extended_price: int = 0
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace for this line item."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    @property
    def savings(self) -> int:
        """Amount taken off the undiscounted price by the promotion."""
        return self.quantity * self.unit_price - self.extended_price

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)


@dataclass
class Receipt:
    """Complete result of pricing one cart."""
    total: int
    lines: list[LineItem] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the receipt-level trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def get_trace_text(self) -> str:
        """Get human-readable receipt trace, followed by each line's trace."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        for line in self.lines:
            lines.append(f"[{line.sku}]")
            lines.append(line.get_trace_text())
        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Convert to a plain dict for JSON surfaces."""
        return {
            "total": self.total,
            "item_count": self.item_count,
            "lines": [
                {
                    "sku": line.sku,
                    "quantity": line.quantity,
                    "unit_price": line.unit_price,
                    "promotion": line.promotion,
                    "extended_price": line.extended_price,
                    "savings": line.savings,
                }
                for line in self.lines
            ],
        }
