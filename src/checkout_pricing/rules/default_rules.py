"""
Default rule table for the demo checkout.

Callers are free to ignore it and pass their own table to the engine.
"""
from types import MappingProxyType

from ..engine.models import PricingRule, BulkDiscount, BuyXGetYFree


def default_rules():
    """Return a fresh read-only rule table for codes A-D."""
    return MappingProxyType({
        'A': PricingRule(unit_price=50, promotion=BulkDiscount(threshold_quantity=3, bundle_price=130)),
        'B': PricingRule(unit_price=30, promotion=BulkDiscount(threshold_quantity=2, bundle_price=45)),
        'C': PricingRule(unit_price=20, promotion=BuyXGetYFree(paid_quantity=2, free_quantity=1)),
        'D': PricingRule(unit_price=15),
    })
