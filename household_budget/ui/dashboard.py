"""
dashboard.py - Streamlit page wiring

This module wires the Streamlit widgets to the ViewBinder and renders the
binder's ViewState. One store/binder pair lives in
st.session_state per browser session; every handler runs to completion with
asyncio.run before the page is drawn, so the page always shows the last
settled mutation.

Design notes:
 - Inputs and buttons are handled first, display regions are drawn after.
 - Rename/delete controls sit inside the drawn list, so they rerun the page
   once their action settles.
"""

import asyncio

import streamlit as st

from household_budget.store import AccountStore
from household_budget.ui import components
from household_budget.ui.binder import ViewBinder

BINDER_KEY = "household_binder"


def _trigger_rerun():
    # st.rerun replaced st.experimental_rerun in newer Streamlit releases
    if hasattr(st, "rerun"):
        st.rerun()
    else:
        st.experimental_rerun()


def _session_binder() -> ViewBinder:
    """Create, load and cache the binder for this session on first use."""
    binder = st.session_state.get(BINDER_KEY)
    if binder is None:
        binder = ViewBinder(AccountStore())
        asyncio.run(binder.start())
        st.session_state[BINDER_KEY] = binder
    return binder


def _show_storage_status(binder: ViewBinder):
    backend_name, backend_msg = binder.store.storage_status()
    if backend_name == "google_sheets":
        st.sidebar.success(backend_msg)
    else:
        st.sidebar.warning(backend_msg)
        st.sidebar.caption(
            "For cloud persistence, set GOOGLE_SHEET_ID and "
            "GOOGLE_SERVICE_ACCOUNT_JSON in Streamlit app Secrets."
        )


RESET_CONFIRM_KEY = "reset_confirm"


def _on_reset(binder: ViewBinder):
    """Reset only when ticked, then untick so the next reset asks again."""
    confirmed = bool(st.session_state.get(RESET_CONFIRM_KEY, False))
    asyncio.run(binder.reset(lambda: confirmed))
    st.session_state[RESET_CONFIRM_KEY] = False


def _handle_inputs(binder: ViewBinder):
    col_balance, col_category = st.columns(2)
    with col_balance:
        raw_balance = st.text_input("Initial balance", key="initial_balance_input")
        if st.button("Set balance", key="set_balance_btn"):
            asyncio.run(binder.set_balance(raw_balance))
    with col_category:
        new_category = st.text_input("New category", key="new_category_input")
        if st.button("Add category", key="add_category_btn"):
            asyncio.run(binder.add_category(new_category))

    col_amount, col_expense_cat = st.columns(2)
    with col_amount:
        raw_amount = st.text_input("Expense amount", key="expense_amount_input")
    with col_expense_cat:
        expense_category = st.text_input("Expense category", key="expense_category_input")
    if st.button("Add expense", key="add_expense_btn"):
        asyncio.run(binder.add_expense(raw_amount, expense_category))

    col_history, col_reset = st.columns(2)
    with col_history:
        if st.button("Show history", key="show_history_btn"):
            binder.show_history()
    with col_reset:
        st.checkbox("I confirm I want to reset all data", key=RESET_CONFIRM_KEY)
        st.button("Reset data", key="reset_btn", on_click=_on_reset, args=(binder,))


def main():
    """
    Streamlit page:
      - sidebar: storage backend status
      - inputs: balance, category, expense, history and reset actions
      - regions: balance, category totals (rename/delete), history
    """
    st.title("Household Budget")
    binder = _session_binder()
    _show_storage_status(binder)

    _handle_inputs(binder)

    state = binder.state
    components.display_balance(state.balance)

    def on_rename(current: str, new_name: str):
        if asyncio.run(binder.rename_category(current, new_name)):
            _trigger_rerun()

    def on_delete(name: str, confirm):
        if asyncio.run(binder.delete_category(name, confirm)):
            _trigger_rerun()

    components.display_category_totals(state.category_rows, on_rename=on_rename, on_delete=on_delete)
    components.display_category_chart(state.category_rows)
    components.display_history(state.history_rows)


if __name__ == "__main__":
    main()
