"""
Streamlit checkout page for the pricing engine.

Features:
- Scan item codes as a string ("AABCD") or one per line
- Total, savings and per-code breakdown
- Rule table view and optional rule file upload
- Pricing trace
"""
import streamlit as st
import sys
import tempfile
from pathlib import Path

# Add src to path for imports
src_path = Path(__file__).parent.parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from checkout_pricing.engine import PricingEngine, UnknownSku
from checkout_pricing.config.settings import get_settings, load_configured_rules
from checkout_pricing.config.log_setup import setup_logging
from checkout_pricing.rules.rule_loader import load_rule_table, RuleFileError
from checkout_pricing.ui.tables import parse_scan, receipt_frame, rules_frame


st.set_page_config(
    page_title="Checkout Pricing",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_engine():
    """Get cached engine bound to the configured rule table."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    return PricingEngine(load_configured_rules(settings))


try:
    engine = get_engine()
except Exception as e:
    st.error(f"System Error: {e}")
    st.stop()


# ============================================================================
# SIDEBAR: Rule table
# ============================================================================
with st.sidebar:
    st.header("Pricing Rules")

    uploaded = st.file_uploader("Rule file (CSV, XLSX or JSON)", type=["csv", "xlsx", "json"])
    if uploaded is not None:
        suffix = Path(uploaded.name).suffix
        with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp:
            tmp.write(uploaded.getvalue())
        try:
            engine = PricingEngine(load_rule_table(Path(tmp.name)))
            st.success(f"Loaded {len(engine.rules)} rules from {uploaded.name}")
        except RuleFileError as e:
            st.error("Rule file rejected")
            for err in e.errors:
                st.caption(err)
        finally:
            Path(tmp.name).unlink(missing_ok=True)

    st.dataframe(rules_frame(engine.rules), hide_index=True, use_container_width=True)


# ============================================================================
# MAIN: Scan and price
# ============================================================================
st.title("Checkout")

scan = st.text_area("Scanned items", value="AAAABBCD", height=100)
cart = parse_scan(scan)

try:
    receipt = engine.calculate(cart)
except UnknownSku as e:
    st.error(str(e))
    st.stop()

col1, col2, col3 = st.columns(3)
col1.metric("Total", receipt.total)
col2.metric("Items", receipt.item_count)
col3.metric("Savings", sum(line.savings for line in receipt.lines))

st.dataframe(receipt_frame(receipt), hide_index=True, use_container_width=True)

with st.expander("🔍 Pricing Trace"):
    st.code(receipt.get_trace_text())
