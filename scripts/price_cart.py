#!/usr/bin/env python
"""
Price a cart from the command line.

Usage:
    python scripts/price_cart.py AAAABBCD
    python scripts/price_cart.py A B C --rules my_rules.csv --trace
"""
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from checkout_pricing.cli import main


if __name__ == "__main__":
    sys.exit(main())
