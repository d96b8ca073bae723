"""
Checkout Pricing Package

A point-of-sale pricing engine for supermarket-style checkouts.
Tallies scanned item codes and prices them against a rule table of unit
prices and promotions (bulk discounts, buy-X-get-Y-free).
"""
from .engine import PricingEngine, calculate_total, UnknownSku
from .rules.default_rules import default_rules

__version__ = "1.0.0"

__all__ = ['PricingEngine', 'calculate_total', 'default_rules', 'UnknownSku']
