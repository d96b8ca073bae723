"""
Settings, logging setup, the command-line checkout and the Streamlit
table helpers.
"""
import json
import logging
import pytest
import sys
import os

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from checkout_pricing.cli import main
from checkout_pricing.config import settings as settings_module
from checkout_pricing.config.log_setup import JSONFormatter, setup_logging
from checkout_pricing.config.settings import Settings, get_settings, load_configured_rules
from checkout_pricing.engine import PricingEngine, PricingRule
from checkout_pricing.rules import default_rules
from checkout_pricing.ui.tables import parse_scan, receipt_frame, rules_frame


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    for name in ('CHECKOUT_RULES_FILE', 'CHECKOUT_LOG_LEVEL', 'CHECKOUT_LOG_FORMAT'):
        monkeypatch.delenv(name, raising=False)
    settings_module.reset_settings()
    yield
    settings_module.reset_settings()
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_checkout_handler", False):
            root.removeHandler(handler)
    root.setLevel(logging.WARNING)


@pytest.fixture
def custom_rules_file(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text(json.dumps({"X": {"unit_price": 100}}), encoding="utf-8")
    return path


def test_settings_defaults(tmp_path):
    settings = Settings.load(project_root=tmp_path)
    assert settings.rules_file is None
    assert settings.log_level == "INFO"
    assert dict(load_configured_rules(settings)) == dict(default_rules())


def test_settings_from_environment(monkeypatch, custom_rules_file):
    monkeypatch.setenv('CHECKOUT_RULES_FILE', str(custom_rules_file))
    monkeypatch.setenv('CHECKOUT_LOG_LEVEL', 'DEBUG')

    settings = get_settings()
    assert settings.rules_file == custom_rules_file
    assert settings.log_level == 'DEBUG'
    assert get_settings() is settings
    assert dict(load_configured_rules(settings)) == {"X": PricingRule(unit_price=100)}


def test_relative_rules_file_resolves_against_root(monkeypatch, tmp_path):
    monkeypatch.setenv('CHECKOUT_RULES_FILE', 'rules/table.csv')
    settings = Settings.load(project_root=tmp_path)
    assert settings.rules_file == tmp_path / 'rules' / 'table.csv'


def test_json_log_formatter():
    record = logging.LogRecord("checkout", logging.WARNING, __file__, 1, "Unknown SKU %r", ("Z",), None)
    record.sku = "Z"
    data = json.loads(JSONFormatter().format(record))
    assert data["level"] == "WARNING"
    assert data["message"] == "Unknown SKU 'Z'"
    assert data["sku"] == "Z"


def test_setup_logging_replaces_its_own_handler():
    root = logging.getLogger()
    first = setup_logging("WARNING")
    second = setup_logging("DEBUG", fmt="json")
    try:
        assert first not in root.handlers
        assert second in root.handlers
        assert root.level == logging.DEBUG
    finally:
        root.removeHandler(second)


def test_cli_prints_total(capsys):
    assert main(["AAAABBCD"]) == 0
    out = capsys.readouterr().out
    assert "TOTAL" in out
    assert out.strip().endswith("260")


def test_cli_json_output(capsys):
    assert main(["C", "C", "C", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["total"] == 40


def test_cli_unknown_sku(capsys):
    assert main(["ABZ"]) == 1
    assert "Unknown SKU: Z" in capsys.readouterr().err


def test_cli_custom_rules(capsys, custom_rules_file):
    assert main(["XX", "--rules", str(custom_rules_file), "--trace"]) == 0
    out = capsys.readouterr().out
    assert "200" in out
    assert "Rule Lookup" in out


def test_cli_bad_rules_file(capsys, tmp_path):
    assert main(["A", "--rules", str(tmp_path / "missing.csv")]) == 1
    assert "Rules file not found" in capsys.readouterr().err


def test_parse_scan():
    assert parse_scan("AAB C") == ['A', 'A', 'B', 'C']
    assert parse_scan("apple\n\npear\napple\n") == ['apple', 'pear', 'apple']
    assert parse_scan("") == []


def test_receipt_frame_sorted_by_sku():
    receipt = PricingEngine().calculate("DCBAAA")
    df = receipt_frame(receipt)
    assert df['SKU'].tolist() == ['A', 'B', 'C', 'D']
    assert df['Total'].sum() == receipt.total
    assert df.loc[df['SKU'] == 'A', 'Savings'].iloc[0] == 20


def test_rules_frame():
    df = rules_frame(default_rules())
    assert len(df) == 4
    assert df.loc[df['SKU'] == 'C', 'Promotion'].iloc[0] == "buy 2 get 1 free"
    assert df.loc[df['SKU'] == 'D', 'Type'].iloc[0] == ""


def test_cli_unreadable_rules_file(capsys, tmp_path):
    empty = tmp_path / "empty.csv"
    empty.write_text("", encoding="utf-8")
    assert main(["A", "--rules", str(empty)]) == 1
    assert "Unreadable rules file" in capsys.readouterr().err
