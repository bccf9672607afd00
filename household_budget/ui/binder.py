"""
binder.py - translate user actions into store calls and keep the view current

The ViewBinder owns a ViewState holding the three display regions as plain
data. Each handler validates its raw input, awaits the store mutation and
only then re-renders the regions the action affects. Invalid input is
ignored: the handler returns False and nothing changes.

Storage errors from the store are not caught here.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from household_budget.store import AccountStore
from household_budget.ui.components import (
    CategoryRow,
    HistoryRow,
    category_totals,
    history_rows,
    parse_int,
)


@dataclass
class ViewState:
    """What the page currently shows. history_rows is None while cleared."""
    balance: Optional[int] = None
    category_rows: List[CategoryRow] = field(default_factory=list)
    history_rows: Optional[List[HistoryRow]] = None


class ViewBinder:

    def __init__(self, store: AccountStore, state: Optional[ViewState] = None):
        self.store = store
        self.state = state if state is not None else ViewState()

    # -----------------------
    # Rendering
    # -----------------------
    def render_balance(self):
        self.state.balance = self.store.get_balance()

    def render_category_totals(self):
        self.state.category_rows = category_totals(self.store.get_categories(), self.store.get_history())

    def clear_history(self):
        self.state.history_rows = None

    # -----------------------
    # Actions
    # -----------------------
    async def start(self):
        await self.store.load()
        self.render_balance()
        self.render_category_totals()

    async def set_balance(self, raw) -> bool:
        value = parse_int(raw)
        if value is None or value < 0:
            return False
        await self.store.set_balance(value)
        self.render_balance()
        return True

    async def add_expense(self, raw_amount, category: str) -> bool:
        amount = parse_int(raw_amount)
        if amount is None or amount <= 0 or not category:
            return False
        await self.store.add_expense(amount, category)
        self.render_balance()
        self.render_category_totals()
        return True

    async def add_category(self, name: str) -> bool:
        if not name:
            return False
        await self.store.add_category(name)
        self.render_category_totals()
        return True

    async def rename_category(self, current: str, new_name: str) -> bool:
        """Rename unless new_name is empty, unchanged or already a category (exact match)."""
        if not new_name or new_name == current or new_name in self.store.get_categories():
            return False
        await self.store.rename_category(current, new_name)
        self.render_category_totals()
        return True

    async def delete_category(self, name: str, confirm: Callable[[], bool]) -> bool:
        """Delete after confirmation. The history region is cleared until shown again."""
        if not confirm():
            return False
        await self.store.delete_category(name)
        self.render_category_totals()
        self.clear_history()
        return True

    def show_history(self):
        self.state.history_rows = history_rows(self.store.get_history())

    async def reset(self, confirm: Callable[[], bool]) -> bool:
        if not confirm():
            return False
        await self.store.reset()
        self.render_balance()
        self.render_category_totals()
        self.clear_history()
        return True
