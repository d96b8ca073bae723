"""UI subpackage - Streamlit checkout page and its table helpers."""
