"""
components.py - render helpers and Streamlit displays

Pure helpers (no Streamlit, unit tested directly):
 - parse_int(text): leading-integer parsing used by every numeric input
 - category_totals(categories, history): per-category sums in stored order
 - history_rows(history): display rows for the history region

Streamlit displays used by the dashboard:
 - display_balance / display_category_totals / display_category_chart
 - display_history (table plus XLSX export)
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence
from io import BytesIO
import math
import re

import altair as alt
import pandas as pd
import streamlit as st

from household_budget.models import HistoryEntry

_LEADING_INT = re.compile(r"^\s*([+-]?[0-9]+)")


@dataclass
class CategoryRow:
    """One line of the category totals list."""
    name: str
    total: int

    @property
    def label(self) -> str:
        return f"{self.name}: {self.total}"


@dataclass
class HistoryRow:
    date: str
    category: str
    amount: int

    @property
    def label(self) -> str:
        return f"{self.date} - {self.category}: {self.amount}"


def parse_int(text) -> Optional[int]:
    """
    Parse the leading integer of an input value, ignoring leading whitespace
    and any trailing non-digit text ("12abc" -> 12, "3.7" -> 3).
    Only ASCII digits count. Returns None when the value does not start with
    an integer.
    """
    if text is None:
        return None
    if isinstance(text, bool):
        return None
    if isinstance(text, int):
        return text
    if isinstance(text, float):
        return int(text) if math.isfinite(text) else None
    m = _LEADING_INT.match(str(text))
    if not m:
        return None
    return int(m.group(1))


def category_totals(categories: Sequence[str], history: Sequence[HistoryEntry]) -> List[CategoryRow]:
    """
    Sum history amounts per known category.
    Categories without entries show 0; entries for unknown categories are ignored.
    """
    totals: Dict[str, int] = {c: 0 for c in categories}
    for entry in history:
        if entry.category in totals:
            totals[entry.category] += entry.amount
    return [CategoryRow(name=c, total=totals[c]) for c in categories]


def history_rows(history: Sequence[HistoryEntry]) -> List[HistoryRow]:
    return [HistoryRow(date=e.date, category=e.category, amount=e.amount) for e in history]


def display_balance(balance: int):
    st.metric("Current balance", f"{balance}")


def display_category_totals(
    rows: List[CategoryRow],
    on_rename: Callable[[str, str], None],
    on_delete: Callable[[str, Callable[[], bool]], None],
):
    """
    Show one line per category ("name: total") with rename and delete controls.

    Parameters:
      - on_rename: called with (current name, new name) when Rename is pressed
      - on_delete: called with (name, confirm) when Delete is pressed; confirm()
        reports whether the confirmation checkbox is ticked
    """
    st.header("Totals per Category")
    if not rows:
        st.write("No categories yet.")
        return

    for i, row in enumerate(rows):
        # index in the key keeps widgets distinct if a name is duplicated by a rename
        key = f"{i}_{row.name}"
        col_label, col_rename, col_delete = st.columns([3, 3, 2])
        with col_label:
            st.write(row.label)
        with col_rename:
            new_name = st.text_input("New category name", value=row.name, key=f"rename_input_{key}")
            if st.button("Rename", key=f"rename_btn_{key}"):
                on_rename(row.name, new_name)
        with col_delete:
            confirmed = st.checkbox(
                f"Delete '{row.name}' and its history",
                key=f"delete_confirm_{key}",
            )
            if st.button("Delete", key=f"delete_btn_{key}"):
                on_delete(row.name, lambda: confirmed)


def display_category_chart(rows: List[CategoryRow]):
    """Pie chart of category shares; skipped when nothing has been spent."""
    df = pd.DataFrame([{"category": r.name, "amount": r.total} for r in rows], columns=["category", "amount"])
    if df.empty or df["amount"].sum() <= 0:
        return
    total_amount = float(df["amount"].sum())
    df["percent"] = df["amount"] / total_amount * 100

    pie = alt.Chart(df).mark_arc(innerRadius=50).encode(
        theta=alt.Theta(field="amount", type="quantitative"),
        color=alt.Color(
            field="category",
            type="nominal",
            legend=alt.Legend(title="Category"),
            sort=[r.name for r in rows],
        ),
        tooltip=[
            alt.Tooltip("category:N", title="Category"),
            alt.Tooltip("amount:Q", title="Amount"),
            alt.Tooltip("percent:Q", title="Share", format=".1f"),
        ],
    ).properties(title="Category share")
    st.altair_chart(pie, use_container_width=True)


def history_to_xlsx(rows: List[HistoryRow]) -> bytes:
    """Export history rows to an XLSX workbook (sheet "history")."""
    df = pd.DataFrame(
        [{"date": r.date, "category": r.category, "amount": r.amount} for r in rows],
        columns=["date", "category", "amount"],
    )
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="history")
    buffer.seek(0)
    return buffer.getvalue()


def display_history(rows: Optional[List[HistoryRow]]):
    """
    Render the history region. None means the region is cleared (nothing
    shown until History is requested again).
    """
    st.header("History")
    if rows is None:
        return
    if not rows:
        st.write("No expenses recorded.")
        return
    for r in rows:
        st.write(r.label)

    st.download_button(
        label="Download as XLSX",
        data=history_to_xlsx(rows),
        file_name="history.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
