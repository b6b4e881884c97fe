"""
app.py
-------
Streamlit application entry point for the Recurring Payments dashboard.

Run from the project root:
    streamlit run ui/app.py

Architecture:
    - The transaction CSV is loaded once and cached via st.cache_data.
    - Detection is cached on (file, currency, fx rate, as-of date, ignored
      set). The engine is pure, so this cache is the only memoisation.
    - Sidebar handles the currency toggle, FX rate and as-of date.
"""

import sys
import os
from datetime import date

import streamlit as st
import pandas as pd

# Ensure project root is on path regardless of where streamlit is invoked
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from core.currency import supported_currencies
from core.preference_store import PreferenceStore
from core.recurring_payment_detector import detect
from config.config_loader import get_currency_config, get_preferences_config
from ui.recurring_view import render_recurring_view


# =============================================================================
# PAGE CONFIG
# =============================================================================

st.set_page_config(
    page_title="Recurring Payments",
    page_icon="🔁",
    layout="wide",
    initial_sidebar_state="expanded",
)


# =============================================================================
# CUSTOM CSS
# =============================================================================

st.markdown("""
<style>
    .stApp {
        font-family: 'Segoe UI', system-ui, sans-serif;
        background-color: #f4f6f9;
    }

    /* Main header */
    .main-header {
        background: linear-gradient(135deg, #1a2332 0%, #2c3e50 100%);
        color: white;
        padding: 20px 30px;
        border-radius: 12px;
        margin-bottom: 20px;
    }
    .main-header h1 { margin: 0; font-size: 24px; font-weight: 600; }
    .main-header p  { margin: 4px 0 0 0; opacity: 0.7; font-size: 13px; }

    /* KPI Cards */
    .kpi-card {
        background: white;
        border-radius: 10px;
        padding: 18px 20px;
        box-shadow: 0 2px 8px rgba(0,0,0,0.06);
        border-left: 4px solid #3498db;
    }
    .kpi-card.green  { border-left-color: #27ae60; }
    .kpi-card.orange { border-left-color: #e67e22; }
    .kpi-card.purple { border-left-color: #8e44ad; }
    .kpi-value { font-size: 24px; font-weight: 700; color: #1a2332; }
    .kpi-label {
        font-size: 12px;
        color: #7f8c8d;
        text-transform: uppercase;
        letter-spacing: 0.5px;
        margin-top: 4px;
    }

    .badge {
        display: inline-block;
        padding: 3px 10px;
        border-radius: 12px;
        font-size: 12px;
        font-weight: 600;
        text-transform: uppercase;
    }
    .badge-ignored { background: #f8d7da; color: #721c24; }

    /* Payment cards */
    .payment-card {
        background: white;
        border-radius: 10px;
        padding: 16px 18px;
        box-shadow: 0 2px 8px rgba(0,0,0,0.06);
        margin-bottom: 8px;
        border: 1px solid #edf1f4;
    }
    .payment-card-header {
        display: flex;
        justify-content: space-between;
        align-items: center;
        margin-bottom: 8px;
    }
    .payment-card-header h4 { margin: 0; color: #1a2332; font-size: 15px; }

    .section-title {
        font-size: 14px;
        font-weight: 600;
        color: #1a2332;
        text-transform: uppercase;
        letter-spacing: 0.8px;
        padding-bottom: 8px;
        border-bottom: 2px solid #edf1f4;
        margin-bottom: 12px;
    }
</style>
""", unsafe_allow_html=True)


# =============================================================================
# DATA LOADING & CACHING
# =============================================================================

@st.cache_data(show_spinner="Loading transactions...")
def load_transactions(input_path: str) -> pd.DataFrame:
    """Loads and caches the transaction CSV."""
    return pd.read_csv(input_path)


@st.cache_data(show_spinner="Detecting recurring payments...")
def run_detection(_transactions: pd.DataFrame, input_path: str, currency: str, fx_rate: float,
                  as_of: date, ignored: frozenset) -> list:
    """Cached on everything the engine depends on. The frame is keyed by its path."""
    return detect(_transactions, currency, fx_rate, today=as_of, ignored_patterns=ignored)


# =============================================================================
# SIDEBAR
# =============================================================================

def render_sidebar() -> dict:
    """Renders the sidebar controls and returns the selected settings."""
    currency_config = get_currency_config()

    st.sidebar.markdown("""
        <div style="padding: 10px 0 20px 0; text-align: center;">
            <div style="font-size: 22px; font-weight: 700; letter-spacing: -0.5px;">🔁 Recurring</div>
            <div style="font-size: 11px; color: #7f8c8d; margin-top: 2px;">Payment Detection</div>
        </div>
    """, unsafe_allow_html=True)

    input_path = st.sidebar.text_input(
        "Transactions CSV",
        value=os.path.join(PROJECT_ROOT, "transactions.csv"),
    )

    supported = list(supported_currencies())
    currency = st.sidebar.radio(
        "Currency",
        options=supported,
        index=supported.index(currency_config["default_display_currency"]),
        horizontal=True,
    )

    fx_rate = st.sidebar.number_input(
        "FX rate (USD per 1 GBP)",
        min_value=0.01,
        value=float(currency_config["default_fx_rate"]),
        step=0.01,
        format="%.4f",
    )

    as_of = st.sidebar.date_input("As of", value=date.today())

    return {"input_path": input_path, "currency": currency, "fx_rate": fx_rate, "as_of": as_of}


# =============================================================================
# MAIN APP
# =============================================================================

def main():
    settings = render_sidebar()

    input_path = settings["input_path"]
    if not os.path.exists(input_path):
        st.error(f"❌ Transactions file not found at: {input_path}")
        st.stop()

    transactions = load_transactions(input_path)

    store = PreferenceStore(os.path.join(PROJECT_ROOT, get_preferences_config()["store_path"]))
    try:
        ignored = frozenset(store.ignored_patterns())
    except (OSError, ValueError) as e:
        st.error(f"Failed to load preferences: {e}")
        st.stop()

    try:
        detections = run_detection(
            transactions, input_path, settings["currency"], settings["fx_rate"],
            settings["as_of"], ignored,
        )
    except ValueError as e:
        st.error(f"Detection failed: {e}")
        st.stop()

    render_recurring_view(detections, store, settings["currency"])


if __name__ == "__main__":
    main()
