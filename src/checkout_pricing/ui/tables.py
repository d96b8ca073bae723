"""
Table helpers for the Streamlit checkout page.
"""
import pandas as pd

from ..engine.models import Receipt, RuleTable
from ..rules.rule_loader import rule_table_to_dict

RECEIPT_COLUMNS = ['SKU', 'Quantity', 'Unit Price', 'Promotion', 'Total', 'Savings']


def receipt_frame(receipt: Receipt) -> pd.DataFrame:
    """Line breakdown of a receipt, one row per item code, sorted by SKU."""
    rows = [
        {
            'SKU': line.sku,
            'Quantity': line.quantity,
            'Unit Price': line.unit_price,
            'Promotion': line.promotion,
            'Total': line.extended_price,
            'Savings': line.savings,
        }
        for line in receipt.lines
    ]
    df = pd.DataFrame(rows, columns=RECEIPT_COLUMNS)
    return df.sort_values('SKU').reset_index(drop=True)


def rules_frame(rules: RuleTable) -> pd.DataFrame:
    """Rule table as a flat frame for display."""
    rows = []
    for sku, entry in rule_table_to_dict(rules).items():
        promotion = entry.get('promotion') or {}
        rows.append({
            'SKU': sku,
            'Unit Price': entry['unit_price'],
            'Promotion': rules[sku].promotion.describe(),
            'Type': promotion.get('type', ''),
        })
    return pd.DataFrame(rows, columns=['SKU', 'Unit Price', 'Promotion', 'Type'])


def parse_scan(text: str) -> list[str]:
    """Codes one per line, or a single line of one-character codes."""
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if len(lines) == 1:
        return list(lines[0].replace(" ", ""))
    return lines
