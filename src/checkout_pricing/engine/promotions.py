"""
Promotion policies - prices a quantity of one item code under its rule.

Used by the pricing engine once per distinct item code in the cart.
"""
from .models import PricingRule, NoPromotion, BulkDiscount, BuyXGetYFree


def apply_promotion(quantity: int, rule: PricingRule) -> tuple[int, list[str]]:
    """
    Price quantity units under rule.

    Returns (price, trace_messages).
    """
    promotion = rule.promotion
    unit = rule.unit_price
    traces = []

    if isinstance(promotion, NoPromotion):
        price = quantity * unit
        traces.append(f"No promotion: {quantity} × {unit}")

    elif isinstance(promotion, BulkDiscount):
        full_bundles, remainder = divmod(quantity, promotion.threshold_quantity)
        price = full_bundles * promotion.bundle_price + remainder * unit
        traces.append(
            f"{full_bundles} bundle(s) of {promotion.threshold_quantity} "
            f"at {promotion.bundle_price}"
        )
        if remainder:
            traces.append(f"{remainder} leftover unit(s) at {unit}")

    elif isinstance(promotion, BuyXGetYFree):
        full_groups, remainder = divmod(quantity, promotion.group_size)
        # Only complete groups earn free units; a partial trailing group is
        # charged in full even when it holds more than paid_quantity units.
        price = (full_groups * promotion.paid_quantity + remainder) * unit
        traces.append(
            f"{full_groups} group(s) of {promotion.group_size}, "
            f"{full_groups * promotion.free_quantity} unit(s) free"
        )
        if remainder:
            traces.append(f"{remainder} unit(s) outside a complete group at {unit}")

    else:
        raise TypeError(f"Unsupported promotion: {promotion!r}")

    return price, traces
