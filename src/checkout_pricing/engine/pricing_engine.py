"""
Pricing Engine - tallies a cart and prices it against a rule table.

Pipeline:
1. Cart Tally: scanned item codes → quantity per code
2. Rule Lookup: item code → PricingRule (UnknownSku if absent)
3. Price Calculator: apply the rule's promotion per code, sum to a total

The module-level functions are pure; PricingEngine binds them to one rule
table and adds a per-line trace.
"""
import logging
from collections import Counter
from collections.abc import Mapping
from typing import Iterable, Optional, Union

from .errors import UnknownSku, InvalidCart
from .models import PricingRule, RuleTable, LineItem, Receipt
from .promotions import apply_promotion

logger = logging.getLogger(__name__)

# A scanned sequence of codes ("AABC" or ["A", "A", "B"]) or a ready tally
Cart = Union[Iterable[str], Mapping]


def tally_cart(cart: Cart) -> Counter:
    """
    Count occurrences of each item code.

    Unknown codes are counted too; they are reported later against the
    rule table. A Mapping is taken as an existing tally and validated.
    """
    if isinstance(cart, Mapping):
        tally = Counter()
        for sku, qty in cart.items():
            if isinstance(qty, bool) or not isinstance(qty, int) or qty < 1:
                raise InvalidCart(f"Quantity for {sku} must be a positive integer, got {qty!r}")
            tally[sku] = qty
        return tally
    return Counter(cart)


def lookup_rule(sku: str, rules: RuleTable) -> PricingRule:
    """Return the rule for sku, or raise UnknownSku."""
    try:
        return rules[sku]
    except KeyError:
        logger.warning("Unknown SKU %r (rule table has %d codes)", sku, len(rules), extra={"sku": sku})
        raise UnknownSku(sku) from None


def price_quantity(quantity: int, rule: PricingRule) -> int:
    """Price quantity units of one code under its rule."""
    price, _ = apply_promotion(quantity, rule)
    return price


def calculate_total(cart: Cart, rules: RuleTable) -> int:
    """
    Total price of cart under rules.

    Raises UnknownSku for the first code missing from rules; no partial
    total is ever returned.
    """
    total = 0
    for sku, qty in tally_cart(cart).items():
        total += price_quantity(qty, lookup_rule(sku, rules))
    return total


class PricingEngine:
    """
    Checkout pricing bound to a single rule table.

    The table is captured once at construction; pricing never mutates it,
    so one engine may serve any number of carts.
    """

    def __init__(self, rules: Optional[RuleTable] = None):
        if rules is None:
            from ..rules.default_rules import default_rules
            rules = default_rules()
        self.rules = rules

    def calculate_total(self, cart: Cart) -> int:
        """Total price of cart (see module-level calculate_total)."""
        return calculate_total(cart, self.rules)

    def calculate(self, cart: Cart) -> Receipt:
        """
        Price cart with full traceability.

        Returns a Receipt whose total equals calculate_total(cart).
        """
        tally = tally_cart(cart)
        receipt = Receipt(total=0)
        receipt.add_trace("Cart Tally", f"{sum(tally.values())} item(s), {len(tally)} distinct code(s)")

        # Resolve every rule before pricing so an unknown code fails the whole cart
        resolved = [(sku, qty, lookup_rule(sku, self.rules)) for sku, qty in tally.items()]

        for sku, qty, rule in resolved:
            line = self._calculate_line(sku, qty, rule)
            receipt.lines.append(line)
            receipt.total += line.extended_price

        receipt.add_trace("Total", "Sum of line prices", str(receipt.total))
        return receipt

    def _calculate_line(self, sku: str, qty: int, rule: PricingRule) -> LineItem:
        """Price a single item code with trace."""
        line = LineItem(
            sku=sku,
            quantity=qty,
            unit_price=rule.unit_price,
            promotion=rule.promotion.describe(),
        )
        line.add_trace("Rule Lookup", "Unit price", str(rule.unit_price))
        line.add_trace("Rule Lookup", "Promotion", line.promotion)

        price, traces = apply_promotion(qty, rule)
        for trace_msg in traces:
            line.add_trace("Promotion", trace_msg)

        line.extended_price = price
        line.add_trace("Extension", f"Quantity {qty}", str(price))
        logger.debug("Priced %s × %d = %d (%s)", sku, qty, price, line.promotion, extra={"sku": sku})
        return line
