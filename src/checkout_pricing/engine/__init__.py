"""Engine subpackage - cart tally, rule lookup and price calculation."""
from .errors import UnknownSku, InvalidRule, InvalidCart
from .models import (
    NoPromotion,
    BulkDiscount,
    BuyXGetYFree,
    PricingRule,
    LineItem,
    Receipt,
)
from .pricing_engine import (
    PricingEngine,
    tally_cart,
    lookup_rule,
    price_quantity,
    calculate_total,
)

__all__ = [
    'UnknownSku', 'InvalidRule', 'InvalidCart',
    'NoPromotion', 'BulkDiscount', 'BuyXGetYFree', 'PricingRule',
    'LineItem', 'Receipt',
    'PricingEngine', 'tally_cart', 'lookup_rule', 'price_quantity', 'calculate_total',
]
