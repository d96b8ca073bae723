"""
Rule Loader - Validates rule tables from CSV, Excel or JSON files.

CSV/Excel columns:
    sku, unit_price, promotion_type, threshold_quantity, bundle_price,
    paid_quantity, free_quantity

promotion_type is empty (no promotion), "bulk_discount" or "buy_x_get_y_free".
JSON files hold {sku: {"unit_price": ..., "promotion": {...}}}, either as the
whole document or under a "rules" key (the compiled format).
"""
import json
from datetime import datetime
from pathlib import Path
from zipfile import BadZipFile
from types import MappingProxyType
from typing import Optional

import pandas as pd

from ..engine.errors import InvalidRule
from ..engine.models import PricingRule, RuleTable, NoPromotion, BulkDiscount, BuyXGetYFree


CSV_COLUMNS = [
    'sku', 'unit_price', 'promotion_type', 'threshold_quantity', 'bundle_price',
    'paid_quantity', 'free_quantity'
]

BULK_TYPES = {'bulk_discount', 'bulk'}
BXGY_TYPES = {'buy_x_get_y_free'}
NO_PROMO_TYPES = {'', 'none'}


class RuleFileError(ValueError):
    """A rule file could not be turned into a rule table."""

    def __init__(self, path, errors: list[str]):
        self.path = path
        self.errors = errors
        super().__init__(f"{path}: {len(errors)} error(s): " + "; ".join(errors))


def parse_optional_int(value: str) -> Optional[int]:
    """Parse optional integer (empty = None)."""
    if value is None or str(value).strip() == '':
        return None
    return int(str(value).strip())


def parse_optional_str(value: str) -> Optional[str]:
    """Parse optional string (empty = None)."""
    if value is None or str(value).strip() == '':
        return None
    return str(value).strip()


def _first_present(data: dict, *keys):
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def parse_promotion(data: Optional[dict]):
    """
    Build a promotion from a dict.

    Accepts canonical keys and the legacy ones
    ({"quantity", "price"} and {"type": "buy_x_get_y_free", "buy", "get"}).
    """
    if not data:
        return NoPromotion()
    if not isinstance(data, dict):
        raise InvalidRule(f"promotion must be an object, got {data!r}")

    promo_type = str(data.get('type') or '').strip().lower()
    if not promo_type and 'quantity' in data and 'price' in data:
        promo_type = 'bulk_discount'

    if promo_type in BULK_TYPES:
        threshold = _first_present(data, 'threshold_quantity', 'quantity')
        bundle = _first_present(data, 'bundle_price', 'price')
        if threshold is None or bundle is None:
            raise InvalidRule("bulk_discount needs threshold_quantity and bundle_price")
        return BulkDiscount(threshold_quantity=threshold, bundle_price=bundle)

    if promo_type in BXGY_TYPES:
        paid = _first_present(data, 'paid_quantity', 'buy')
        free = _first_present(data, 'free_quantity', 'get')
        if paid is None or free is None:
            raise InvalidRule("buy_x_get_y_free needs paid_quantity and free_quantity")
        return BuyXGetYFree(paid_quantity=paid, free_quantity=free)

    if promo_type in NO_PROMO_TYPES:
        return NoPromotion()

    raise InvalidRule(f"unknown promotion type '{promo_type}'")


def parse_rule(sku: str, data: dict) -> PricingRule:
    """Build a PricingRule from a dict, tagging errors with the sku."""
    if not isinstance(data, dict):
        raise InvalidRule(f"rule must be an object, got {data!r}", sku=sku)
    try:
        unit_price = _first_present(data, 'unit_price', 'unit')
        if unit_price is None:
            raise InvalidRule("unit_price is required")
        return PricingRule(unit_price=unit_price, promotion=parse_promotion(data.get('promotion')))
    except InvalidRule as e:
        if e.sku is not None:
            raise
        raise InvalidRule(str(e), sku=sku) from e


def rule_table_from_dict(data: dict) -> RuleTable:
    """Build a read-only rule table from {sku: rule_dict}."""
    if not isinstance(data, dict):
        raise InvalidRule(f"rule table must be an object, got {type(data).__name__}")
    return MappingProxyType({str(sku): parse_rule(str(sku), rule) for sku, rule in data.items()})


def promotion_to_dict(promotion) -> Optional[dict]:
    """Canonical dict for a promotion (None when there is none)."""
    if isinstance(promotion, BulkDiscount):
        return {
            "type": "bulk_discount",
            "threshold_quantity": promotion.threshold_quantity,
            "bundle_price": promotion.bundle_price,
        }
    if isinstance(promotion, BuyXGetYFree):
        return {
            "type": "buy_x_get_y_free",
            "paid_quantity": promotion.paid_quantity,
            "free_quantity": promotion.free_quantity,
        }
    return None


def rule_table_to_dict(rules: RuleTable) -> dict:
    """Canonical {sku: rule_dict} form of a rule table."""
    output = {}
    for sku, rule in rules.items():
        entry = {"unit_price": rule.unit_price}
        promotion = promotion_to_dict(rule.promotion)
        if promotion:
            entry["promotion"] = promotion
        output[sku] = entry
    return output


def validate_rule_row(row: dict, line_num: int) -> tuple[Optional[str], Optional[PricingRule], list[str]]:
    """
    Validate and parse a rule from a CSV/Excel row.

    Returns (sku, rule, errors) - rule is None if validation failed.
    """
    errors = []

    sku = parse_optional_str(row.get('sku', ''))
    if not sku:
        errors.append(f"Line {line_num}: sku is required")
        return None, None, errors

    numbers = {}
    for column in ('unit_price', 'threshold_quantity', 'bundle_price', 'paid_quantity', 'free_quantity'):
        try:
            numbers[column] = parse_optional_int(row.get(column, ''))
        except ValueError:
            errors.append(f"Line {line_num}: {column} must be an integer")
    if errors:
        return sku, None, errors

    if numbers['unit_price'] is None:
        errors.append(f"Line {line_num}: unit_price is required")
        return sku, None, errors

    promo_type = (parse_optional_str(row.get('promotion_type', '')) or '').lower()
    promotion = None
    if promo_type in BULK_TYPES:
        promotion = {
            "type": "bulk_discount",
            "threshold_quantity": numbers['threshold_quantity'],
            "bundle_price": numbers['bundle_price'],
        }
    elif promo_type in BXGY_TYPES:
        promotion = {
            "type": "buy_x_get_y_free",
            "paid_quantity": numbers['paid_quantity'],
            "free_quantity": numbers['free_quantity'],
        }
    elif promo_type not in NO_PROMO_TYPES:
        errors.append(
            f"Line {line_num}: invalid promotion_type '{promo_type}', "
            f"must be one of: bulk_discount, buy_x_get_y_free or empty"
        )
        return sku, None, errors

    try:
        rule = parse_rule(sku, {"unit_price": numbers['unit_price'], "promotion": promotion})
    except InvalidRule as e:
        errors.append(f"Line {line_num}: {e}")
        return sku, None, errors

    return sku, rule, []


def _read_rows(path: Path) -> list[dict]:
    """Read a CSV or Excel rule sheet as a list of string dicts."""
    if path.suffix.lower() in ('.xlsx', '.xls'):
        df = pd.read_excel(path, dtype=str).fillna('')
    else:
        # Blank lines stay as empty rows so row index maps to file line
        df = pd.read_csv(path, dtype=str, keep_default_na=False, skip_blank_lines=False).fillna('')

    df.columns = [str(c).strip().lower() for c in df.columns]
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()
    return df.to_dict(orient='records')


def read_rule_table(path: Path) -> tuple[dict, list[str]]:
    """
    Read and validate every rule in a file.

    Returns (rules, errors); rules holds only the rows that validated.
    """
    path = Path(path)
    if not path.exists():
        return {}, [f"Rules file not found: {path}"]

    if path.suffix.lower() == '.json':
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            return {}, [f"Invalid JSON: {e}"]
        except UnicodeDecodeError as e:
            return {}, [f"Unreadable rules file {path}: {e}"]
        if isinstance(data, dict) and isinstance(data.get('rules'), dict):
            data = data['rules']
        try:
            return dict(rule_table_from_dict(data)), []
        except InvalidRule as e:
            return {}, [str(e)]

    try:
        rows = _read_rows(path)
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError, ValueError, BadZipFile) as e:
        return {}, [f"Unreadable rules file {path}: {e}"]

    rules = {}
    all_errors = []
    for line_num, row in enumerate(rows, start=2):  # +2 for 1-indexed header row
        if not any(row.values()):
            continue
        sku, rule, errors = validate_rule_row(row, line_num)
        if errors:
            all_errors.extend(errors)
        elif sku in rules:
            all_errors.append(f"Line {line_num}: duplicate sku '{sku}'")
        else:
            rules[sku] = rule
    return rules, all_errors


def load_rule_table(path) -> RuleTable:
    """Load a read-only rule table, raising RuleFileError on any problem."""
    rules, errors = read_rule_table(path)
    if errors:
        raise RuleFileError(path, errors)
    return MappingProxyType(rules)


def compile_rules(
    source: Path,
    output_json: Path,
    verbose: bool = True
) -> tuple[bool, dict, list[str]]:
    """
    Validate a rule table and write it as canonical JSON.

    Returns (success, rules, errors).
    """
    source = Path(source)
    output_json = Path(output_json)
    rules, errors = read_rule_table(source)

    if errors:
        if verbose:
            print("Validation errors:")
            for err in errors:
                print(f"  ❌ {err}")
        return False, rules, errors

    output_data = {
        "compiled_at": datetime.now().isoformat(),
        "source_file": str(source),
        "total_rules": len(rules),
        "promoted_rules": sum(1 for r in rules.values() if not isinstance(r.promotion, NoPromotion)),
        "rules": rule_table_to_dict(rules),
    }

    output_json.parent.mkdir(parents=True, exist_ok=True)
    with open(output_json, 'w', encoding='utf-8') as f:
        json.dump(output_data, f, indent=2)

    if verbose:
        print(f"✅ Compiled {len(rules)} rules ({output_data['promoted_rules']} with promotions)")
        print(f"   Output: {output_json}")

    return True, rules, []


def main(argv: Optional[list[str]] = None):
    """CLI entry point: compile SOURCE into OUTPUT_JSON."""
    import sys

    args = sys.argv[1:] if argv is None else argv
    if len(args) != 2:
        print("Usage: python -m checkout_pricing.rules.rule_loader SOURCE OUTPUT_JSON")
        sys.exit(2)

    print("Compiling pricing rules...")
    success, _, errors = compile_rules(Path(args[0]), Path(args[1]))

    if not success:
        print(f"\n❌ Compilation failed with {len(errors)} errors")
        sys.exit(1)


if __name__ == "__main__":
    main()
