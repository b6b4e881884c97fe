"""
recurring_view.py
-------------------
Recurring Payments view.

Layout:
    Header
    KPI row (active monthly total, active yearly total, counts)
    Upcoming payments timeline (active only)
    Monthly section  → payment cards, ignored ones faded at the end
    Yearly section   → same

Each card carries a "Not Recurring" / "Restore" action. The action writes
the preference store and reruns the app; detection itself never writes.
"""

import streamlit as st
import pandas as pd
import plotly.graph_objects as go

from core.models import DetectedRecurringPayment, Frequency
from core.preference_overlay import split_by_frequency
from core.preference_store import PreferenceStore


FREQUENCY_COLORS = {
    Frequency.MONTHLY: "#3498db",
    Frequency.YEARLY:  "#8e44ad",
}


def render_recurring_view(detections: list[DetectedRecurringPayment], store: PreferenceStore, currency: str):
    """Renders the full Recurring Payments page."""

    # --- Header ---
    st.markdown("""
        <div class="main-header">
            <h1>🔁 Recurring Payments</h1>
            <p>Subscriptions and annual commitments detected from the last 12 months of spending</p>
        </div>
    """, unsafe_allow_html=True)

    if not detections:
        st.info("No recurring payments detected. Try a different as-of date or check the input file.")
        return

    # --- KPI Row ---
    _render_kpis(detections, currency)

    # --- Timeline ---
    st.markdown('<div class="section-title" style="margin-top:24px;">Upcoming Payments</div>', unsafe_allow_html=True)
    _render_timeline(detections, currency)

    # --- Frequency Sections ---
    groups = split_by_frequency(detections)
    col_monthly, col_yearly = st.columns([1, 1], gap="medium")

    with col_monthly:
        _render_section("Monthly", groups[Frequency.MONTHLY], store, currency)

    with col_yearly:
        _render_section("Yearly", groups[Frequency.YEARLY], store, currency)


# =============================================================================
# KPI ROW
# =============================================================================

def _render_kpis(detections: list[DetectedRecurringPayment], currency: str):
    active = [d for d in detections if not d.is_ignored]
    monthly_total = sum(d.average_amount for d in active if d.frequency == Frequency.MONTHLY)
    yearly_total = sum(d.average_amount for d in active if d.frequency == Frequency.YEARLY)
    annualized = monthly_total * 12 + yearly_total

    cards = [
        ("", f"{monthly_total:,.0f} {currency}", "Active monthly"),
        ("purple", f"{yearly_total:,.0f} {currency}", "Active yearly"),
        ("green", f"{annualized:,.0f} {currency}", "Annualised run-rate"),
        ("orange", f"{len(active)} / {len(detections)}", "Active / detected"),
    ]

    cols = st.columns(len(cards))
    for col, (color, value, label) in zip(cols, cards):
        with col:
            st.markdown(f"""
                <div class="kpi-card {color}">
                    <div class="kpi-value">{value}</div>
                    <div class="kpi-label">{label}</div>
                </div>
            """, unsafe_allow_html=True)


# =============================================================================
# TIMELINE
# =============================================================================

def _render_timeline(detections: list[DetectedRecurringPayment], currency: str):
    active = [d for d in detections if not d.is_ignored]
    if not active:
        st.caption("All detected payments are ignored.")
        return

    df = pd.DataFrame([
        {
            "name": d.display_name,
            "date": d.next_expected_date,
            "amount": d.average_amount,
            "frequency": d.frequency,
        }
        for d in active
    ]).sort_values("date")

    fig = go.Figure()
    for frequency, color in FREQUENCY_COLORS.items():
        subset = df[df["frequency"] == frequency]
        if subset.empty:
            continue
        fig.add_trace(go.Scatter(
            x=subset["date"],
            y=subset["amount"],
            mode="markers+text",
            name=frequency.value,
            text=subset["name"],
            textposition="top center",
            marker=dict(size=12, color=color),
            hovertemplate=f"%{{text}}<br>%{{x|%d %b %Y}}<br>%{{y:,.2f}} {currency}<extra></extra>",
        ))

    fig.update_layout(
        height=300,
        margin=dict(l=40, r=20, t=10, b=40),
        plot_bgcolor="white",
        paper_bgcolor="#f8fafc",
        xaxis=dict(showgrid=True, gridcolor="#edf1f4", title_text=""),
        yaxis=dict(showgrid=True, gridcolor="#edf1f4", title_text=currency),
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
    )

    st.plotly_chart(fig, use_container_width=True, config={"displayModeBar": False})


# =============================================================================
# PAYMENT CARDS
# =============================================================================

def _render_section(title: str, payments: list[DetectedRecurringPayment], store: PreferenceStore, currency: str):
    st.markdown(f'<div class="section-title" style="margin-top:18px;">{title} ({len(payments)})</div>', unsafe_allow_html=True)

    if not payments:
        st.caption(f"No {title.lower()} payments detected.")
        return

    for payment in payments:
        _render_payment_card(payment, store, currency)


def _payment_card_html(payment: DetectedRecurringPayment, currency: str) -> str:
    opacity = "0.4" if payment.is_ignored else "1"
    ignored_badge = '<span class="badge badge-ignored">Ignored</span>' if payment.is_ignored else ""

    return f"""
        <div class="payment-card" style="opacity:{opacity};">
            <div class="payment-card-header">
                <h4>{payment.display_name}</h4>
                <span>{ignored_badge}</span>
            </div>
            <div style="font-size:12px; color:#5a6a7a; line-height:1.6;">
                <b>Amount:</b> {payment.average_amount:,.2f} {currency}<br>
                <b>Next Expected:</b> {payment.next_expected_date.strftime('%d %b %Y')}<br>
                <b>Transactions:</b> {payment.transaction_count} in last 12 months
            </div>
        </div>
    """


def _render_payment_card(payment: DetectedRecurringPayment, store: PreferenceStore, currency: str):
    """Renders a single detected payment with its ignore/restore action."""
    st.markdown(_payment_card_html(payment, currency), unsafe_allow_html=True)

    label = "Restore" if payment.is_ignored else "Not Recurring"
    if st.button(label, key=f"toggle_{payment.pattern_key}"):
        try:
            store.set_ignored(payment.pattern_key, not payment.is_ignored)
        except (OSError, ValueError) as e:
            st.error(f"Failed to update preference: {e}")
            return
        st.rerun()
