"""
Pricing engine internals - cart tally, rule lookup, rule validation and the
traceable receipt produced by PricingEngine.calculate.
"""
import logging
import pytest
import sys
import os
from collections import Counter

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from checkout_pricing.engine import (
    PricingEngine,
    PricingRule,
    NoPromotion,
    BulkDiscount,
    BuyXGetYFree,
    InvalidRule,
    InvalidCart,
    UnknownSku,
    tally_cart,
    lookup_rule,
    price_quantity,
)
from checkout_pricing.rules import default_rules


@pytest.fixture
def engine():
    return PricingEngine()


def test_tally_counts_every_code():
    assert tally_cart("ABCA") == Counter({'A': 2, 'B': 1, 'C': 1})
    assert tally_cart(['Z', 'Z']) == Counter({'Z': 2})
    assert tally_cart([]) == Counter()


def test_tally_accepts_existing_tally():
    assert tally_cart({'A': 3, 'B': 1}) == Counter({'A': 3, 'B': 1})


@pytest.mark.parametrize("qty", [0, -1, 1.5, True, "2"])
def test_tally_rejects_bad_quantities(qty):
    with pytest.raises(InvalidCart):
        tally_cart({'A': qty})


def test_lookup_rule():
    rules = default_rules()
    assert lookup_rule('D', rules) == PricingRule(unit_price=15)
    with pytest.raises(UnknownSku) as exc_info:
        lookup_rule('Q', rules)
    assert exc_info.value.sku == 'Q'


def test_price_quantity_without_promotion():
    assert price_quantity(7, PricingRule(unit_price=15)) == 105
    assert price_quantity(3, PricingRule(unit_price=0)) == 0


def test_rule_defaults_to_no_promotion():
    assert PricingRule(unit_price=10).promotion == NoPromotion()


@pytest.mark.parametrize("build", [
    lambda: PricingRule(unit_price=-1),
    lambda: PricingRule(unit_price=1.5),
    lambda: PricingRule(unit_price=True),
    lambda: BulkDiscount(threshold_quantity=0, bundle_price=10),
    lambda: BulkDiscount(threshold_quantity=2, bundle_price=-5),
    lambda: BuyXGetYFree(paid_quantity=0, free_quantity=1),
    lambda: BuyXGetYFree(paid_quantity=2, free_quantity=0),
    lambda: PricingRule(unit_price=10, promotion={"quantity": 3, "price": 130}),
])
def test_invalid_rules_rejected(build):
    with pytest.raises(InvalidRule):
        build()


def test_receipt_total_matches_calculate_total(engine):
    cart = 'A' * 4 + 'B' * 2 + 'C' + 'D'
    receipt = engine.calculate(cart)

    assert receipt.total == engine.calculate_total(cart) == 260
    assert receipt.item_count == 8
    assert {line.sku: line.extended_price for line in receipt.lines} == {
        'A': 180, 'B': 45, 'C': 20, 'D': 15,
    }


def test_receipt_lines_carry_savings(engine):
    receipt = engine.calculate('CCCAAA')
    lines = {line.sku: line for line in receipt.lines}

    assert lines['C'].promotion == "buy 2 get 1 free"
    assert lines['C'].savings == 20
    assert lines['A'].promotion == "3 for 130"
    assert lines['A'].savings == 20


def test_receipt_trace(engine):
    receipt = engine.calculate('AAAA')
    line = receipt.lines[0]
    steps = [t.step for t in line.trace]

    assert steps[0] == "Rule Lookup"
    assert "Promotion" in steps
    assert steps[-1] == "Extension"
    assert "1 leftover unit(s) at 50" in line.get_trace_text()
    assert "Total" in receipt.get_trace_text()


def test_unknown_sku_fails_whole_receipt(engine):
    with pytest.raises(UnknownSku, match="Unknown SKU: X"):
        engine.calculate('AAAX')


def test_engine_with_custom_rules():
    engine = PricingEngine({'X': PricingRule(unit_price=100)})
    assert engine.calculate_total('XX') == 200
    assert engine.calculate('').total == 0


def test_receipt_to_dict(engine):
    data = engine.calculate('BBB').to_dict()
    assert data == {
        "total": 75,
        "item_count": 3,
        "lines": [
            {
                "sku": "B",
                "quantity": 3,
                "unit_price": 30,
                "promotion": "2 for 45",
                "extended_price": 75,
                "savings": 15,
            }
        ],
    }


def test_unknown_sku_log_record_carries_sku(caplog):
    with caplog.at_level(logging.WARNING, logger="checkout_pricing.engine.pricing_engine"):
        with pytest.raises(UnknownSku):
            lookup_rule('Q', default_rules())
    assert [r.sku for r in caplog.records] == ['Q']
