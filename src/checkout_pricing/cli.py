"""
Command-line checkout: price a cart and print the total.
"""
import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from .config.log_setup import setup_logging
from .config.settings import get_settings, load_configured_rules
from .engine import PricingEngine, UnknownSku
from .rules.rule_loader import load_rule_table, RuleFileError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Price a checkout cart.")
    parser.add_argument(
        'cart', nargs='+',
        help="Item codes; a single argument is split into one-character codes",
    )
    parser.add_argument('--rules', type=Path, help="Rule table file (CSV, XLSX or JSON)")
    parser.add_argument('--trace', action='store_true', help="Print the pricing trace")
    parser.add_argument('--json', action='store_true', help="Print the receipt as JSON")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Run the CLI; returns the process exit status."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)

    try:
        rules = load_rule_table(args.rules) if args.rules else load_configured_rules(settings)
    except RuleFileError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    cart = list(args.cart[0]) if len(args.cart) == 1 else args.cart

    try:
        receipt = PricingEngine(rules).calculate(cart)
    except UnknownSku as e:
        print(str(e), file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(receipt.to_dict(), indent=2))
    else:
        for line in receipt.lines:
            print(f"{line.sku:<8} x{line.quantity:<4} {line.promotion:<24} {line.extended_price:>8}")
        print(f"{'TOTAL':<39} {receipt.total:>8}")

    if args.trace:
        print()
        print(receipt.get_trace_text())

    return 0
