"""Streamlit entry point for the Digital Twin dashboard."""

from __future__ import annotations

from datetime import date
from functools import partial

import streamlit as st
from digital_twin import chat, config, identity, insights, utils, viz
from digital_twin.ledger import Ledger, TransactionForm
from digital_twin.logging_setup import configure_logging, get_logger
from digital_twin.models import CATEGORIES, InvalidTransaction, Transaction

logger = get_logger("digital_twin.app")

STYLE = """
<style>
:root {
    --slate-900: #0f172a;
    --slate-800: #1e293b;
    --slate-700: #334155;
    --slate-400: #94a3b8;
    --cyan-400: #22d3ee;
    --blue-400: #60a5fa;
}

[data-testid="stAppViewContainer"], [data-testid="stHeader"] {
    background: #000;
    color: #f3f4f6;
}

.twin-title {
    text-align: center;
    font-size: 3.4rem;
    font-weight: 800;
    background: linear-gradient(90deg, var(--blue-400), var(--cyan-400));
    -webkit-background-clip: text;
    background-clip: text;
    color: transparent;
    margin-bottom: 0;
}

.twin-subtitle {
    text-align: center;
    color: #d1d5db;
    margin-bottom: 1.5rem;
}

.vibe-card {
    background: var(--slate-800);
    border-radius: 1rem;
    padding: 1.5rem;
    text-align: center;
}

.vibe-ring {
    width: 8rem;
    height: 8rem;
    border-radius: 999px;
    margin: 1rem auto 0.75rem;
    display: flex;
    align-items: center;
    justify-content: center;
}

.vibe-ring--pulse {
    animation: vibe-pulse 1.6s ease-in-out infinite;
}

.vibe-face {
    width: 7rem;
    height: 7rem;
    border-radius: 999px;
    background: var(--slate-900);
    display: flex;
    align-items: center;
    justify-content: center;
    font-size: 2rem;
}

.vibe-meta {
    font-size: 0.75rem;
    color: var(--slate-400);
    margin-top: 0.5rem;
}

@keyframes vibe-pulse {
    50% { opacity: 0.55; }
}
</style>
"""

_FORM_AMOUNT = "form_amount"
_FORM_CATEGORY = "form_category"
_FORM_DATE = "form_date"


def _settings() -> config.Settings:
    if "settings" not in st.session_state:
        st.session_state.settings = config.load_settings()
    return st.session_state.settings


def _bootstrap() -> None:
    """Create per-session objects once; Streamlit reruns reuse them."""

    settings = _settings()
    configure_logging(settings.log_level)
    if "ledger" not in st.session_state:
        store = identity.open_store(settings)
        st.session_state.summary = insights.calculate_summary(store.transactions)
        store.subscribe(_on_transactions_changed)
        st.session_state.ledger = Ledger(store)
        _write_form_widgets(st.session_state.ledger.form)
        logger.info("Session ready for %s (%d transactions)", store.user_id, len(store.transactions))
    if "chat" not in st.session_state:
        st.session_state.chat = chat.ChatSession()


def _on_transactions_changed(transactions: list[Transaction]) -> None:
    st.session_state.summary = insights.calculate_summary(transactions)


def _write_form_widgets(form: TransactionForm) -> None:
    st.session_state[_FORM_AMOUNT] = form.amount
    st.session_state[_FORM_CATEGORY] = form.category
    st.session_state[_FORM_DATE] = utils.parse_date(form.date) or date.today()


def _submit_form() -> None:
    ledger: Ledger = st.session_state.ledger
    picked = st.session_state.get(_FORM_DATE)
    ledger.form = TransactionForm(
        amount=str(st.session_state.get(_FORM_AMOUNT, "")),
        category=st.session_state.get(_FORM_CATEGORY, CATEGORIES[0]),
        date=picked.isoformat() if isinstance(picked, date) else "",
    )
    try:
        outcome = ledger.submit()
    except InvalidTransaction as exc:
        st.session_state.form_error = str(exc)
        return
    st.session_state.pop("form_error", None)
    st.session_state.celebrate = outcome == "added"
    _write_form_widgets(ledger.form)


def _begin_edit(tx: Transaction) -> None:
    ledger: Ledger = st.session_state.ledger
    ledger.begin_edit(tx)
    _write_form_widgets(ledger.form)


def _cancel_edit() -> None:
    ledger: Ledger = st.session_state.ledger
    ledger.cancel_edit()
    st.session_state.pop("form_error", None)
    _write_form_widgets(ledger.form)


def _request_delete(tx_id: str) -> None:
    st.session_state.pending_delete = tx_id


def _confirm_delete() -> None:
    tx_id = st.session_state.pop("pending_delete", None)
    if tx_id:
        ledger: Ledger = st.session_state.ledger
        ledger.delete(tx_id)
        _write_form_widgets(ledger.form)


def _dismiss_delete() -> None:
    st.session_state.pop("pending_delete", None)


def _send_chat(question: str) -> None:
    session: chat.ChatSession = st.session_state.chat
    settings = _settings()
    session.send(question, partial(_relay, settings=settings))


def _relay(prompt: str, persona: str, *, settings: config.Settings) -> chat.Reply:
    with st.spinner("Thinking..."):
        return chat.ask_twin(prompt, persona, settings)


def _render_form(ledger: Ledger) -> None:
    st.subheader("Log a Transaction")
    with st.form("transaction_form", border=False):
        amount_col, category_col, date_col = st.columns(3)
        amount_col.text_input("Amount (£)", key=_FORM_AMOUNT, placeholder="Amount (£)")
        category_col.selectbox("Category", CATEGORIES, key=_FORM_CATEGORY)
        date_col.date_input("Date", key=_FORM_DATE, format="YYYY-MM-DD")
        st.form_submit_button(
            "Update" if ledger.is_editing else "Add Transaction",
            type="primary",
            on_click=_submit_form,
        )
    if ledger.is_editing:
        st.button("Cancel", on_click=_cancel_edit)

    error = st.session_state.get("form_error")
    if error:
        st.error(error)


def _render_history(ledger: Ledger) -> None:
    store = ledger.store
    title_col, refresh_col = st.columns([4, 1])
    title_col.subheader("Transaction History")
    if store.remote is not None:
        refresh_col.button("Refresh", on_click=store.load)

    pending = st.session_state.get("pending_delete")
    if pending:
        st.warning("Delete this transaction?")
        yes_col, no_col, _ = st.columns([1, 1, 4])
        yes_col.button("Delete", key="confirm_delete", type="primary", on_click=_confirm_delete)
        no_col.button("Keep", key="dismiss_delete", on_click=_dismiss_delete)

    rows = store.sorted_by_date()
    if not rows:
        st.caption("No transactions yet.")
        return

    with st.container(height=384):
        header = st.columns([2, 2, 3, 1, 1])
        for col, label in zip(header, ("Date", "Amount", "Category", "", "")):
            col.markdown(f"**{label}**" if label else "")
        for tx in rows:
            cols = st.columns([2, 2, 3, 1, 1])
            cols[0].write(tx.date)
            cols[1].write(utils.format_currency(tx.amount))
            cols[2].write(tx.category)
            cols[3].button("Edit", key=f"edit-{tx.id}", on_click=_begin_edit, args=(tx,))
            cols[4].button("Delete", key=f"delete-{tx.id}", on_click=_request_delete, args=(tx.id,))


def _render_vibe(summary: insights.SummaryPayload) -> None:
    badge = summary["risk_badge"]
    ring_class = "vibe-ring vibe-ring--pulse" if badge["pulse"] else "vibe-ring"
    st.markdown(
        f"""
        <div class="vibe-card">
            <h3>Your Twin's Vibe</h3>
            <div class="{ring_class}" style="background: {badge['gradient']}">
                <div class="vibe-face">{badge['emoji']}</div>
            </div>
            <strong>{badge['label']}</strong>
            <div class="vibe-meta">Based on last 30 days · {summary['risk_percentage']:.1f}% risky spend</div>
        </div>
        """,
        unsafe_allow_html=True,
    )


def _render_breakdown(summary: insights.SummaryPayload) -> None:
    st.subheader("Spending Breakdown")
    fig = viz.plot_category_pie(summary["category_totals"])
    st.plotly_chart(fig, use_container_width=True, config={"displayModeBar": False})


def _render_chat() -> None:
    session: chat.ChatSession = st.session_state.chat
    st.subheader("Talk to Your Twin")

    persona_cols = st.columns(len(chat.PERSONAS))
    for col, persona in zip(persona_cols, chat.PERSONAS):
        col.button(
            persona,
            key=f"persona-{persona}",
            type="primary" if persona == session.persona else "secondary",
            on_click=session.select_persona,
            args=(persona,),
            use_container_width=True,
        )

    preset_cols = st.columns(len(chat.PRESET_QUESTIONS))
    for col, question in zip(preset_cols, chat.PRESET_QUESTIONS):
        col.button(question, key=f"preset-{question}", on_click=_send_chat, args=(question,))

    with st.container(height=320):
        for message in session.history:
            with st.chat_message("user" if message.role == "user" else "assistant"):
                st.caption(message.persona_name)
                st.text(message.text)
                if message.sources:
                    links = "\n".join(f"- [{src.label}]({src.uri})" for src in message.sources if src.uri)
                    st.caption("Sources:")
                    st.markdown(links)

    with st.form("chat_form", clear_on_submit=True, border=False):
        input_col, send_col = st.columns([4, 1])
        question = input_col.text_input(
            "Message",
            placeholder=f"Ask your {session.persona}...",
            label_visibility="collapsed",
        )
        sent = send_col.form_submit_button("Send", disabled=session.is_loading)
    if sent:
        _send_chat(question)
        st.rerun()


def main() -> None:
    """Render the Digital Twin Streamlit application."""

    st.set_page_config(page_title="Digital Twin", page_icon="🪞", layout="wide")
    st.markdown(STYLE, unsafe_allow_html=True)

    _bootstrap()
    ledger: Ledger = st.session_state.ledger
    summary: insights.SummaryPayload = st.session_state.summary

    st.markdown('<h1 class="twin-title">Digital Twin</h1>', unsafe_allow_html=True)
    st.markdown('<p class="twin-subtitle">Personal financial dashboard • £ (GBP)</p>', unsafe_allow_html=True)

    if st.session_state.pop("celebrate", False):
        st.balloons()

    sidebar = st.sidebar
    sidebar.header("Session")
    sidebar.caption(f"User: {ledger.store.user_id}")
    sidebar.caption("Storage: DynamoDB" if ledger.store.remote is not None else "Storage: local file")
    sidebar.caption("Chat: Gemini" if _settings().gemini_api_key else "Chat: mock replies (no API key)")
    sidebar.metric("Logged total", utils.format_currency(summary["total_amount"]))
    sidebar.metric("Last 30 days", utils.format_currency(summary["recent_total"]))

    main_col, aside_col = st.columns([2, 1], gap="large")
    with main_col:
        with st.container(border=True):
            _render_form(ledger)
        with st.container(border=True):
            _render_history(ledger)

    with aside_col:
        _render_vibe(summary)
        with st.container(border=True):
            _render_breakdown(summary)
        with st.container(border=True):
            _render_chat()

    st.caption(
        "Data persisted to DynamoDB when configured, otherwise stored locally on this machine."
    )


if __name__ == "__main__":
    main()
