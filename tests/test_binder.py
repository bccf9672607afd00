import datetime

import pytest

from conftest import MemoryBackend
from household_budget.store import AccountStore
from household_budget.ui.binder import ViewBinder
from household_budget.ui.components import CategoryRow


def yes():
    return True


def no():
    return False


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def binder(backend):
    return ViewBinder(AccountStore(backend=backend, user_id="u1"))


@pytest.mark.asyncio
async def test_start_renders_balance_and_totals():
    backend = MemoryBackend({"u1": {
        "balance": 70,
        "categories": ["food"],
        "history": [{"date": "2024-01-01", "amount": 30, "category": "food"}],
    }})
    binder = ViewBinder(AccountStore(backend=backend, user_id="u1"))
    await binder.start()
    assert binder.state.balance == 70
    assert binder.state.category_rows == [CategoryRow("food", 30)]
    assert binder.state.history_rows is None


@pytest.mark.asyncio
async def test_set_balance_ignores_invalid_input(binder, backend):
    await binder.start()
    writes = len(backend.writes)
    for raw in ("", "abc", "-1", None):
        assert await binder.set_balance(raw) is False
    assert len(backend.writes) == writes
    assert await binder.set_balance("1000") is True
    assert binder.state.balance == 1000


@pytest.mark.asyncio
async def test_add_expense_validation(binder):
    await binder.start()
    assert await binder.add_expense("0", "food") is False
    assert await binder.add_expense("-3", "food") is False
    assert await binder.add_expense("x", "food") is False
    assert await binder.add_expense("10", "") is False
    assert binder.store.get_history() == []


@pytest.mark.asyncio
async def test_scenario_updates_regions(binder):
    await binder.start()
    await binder.set_balance("1000")
    await binder.add_category("food")
    assert binder.state.category_rows == [CategoryRow("food", 0)]
    await binder.add_expense("300", "food")

    assert binder.state.balance == 700
    assert binder.state.category_rows == [CategoryRow("food", 300)]
    binder.show_history()
    today = datetime.date.today().isoformat()
    assert [r.label for r in binder.state.history_rows] == [f"{today} - food: 300"]


@pytest.mark.asyncio
async def test_add_category_ignores_empty(binder):
    await binder.start()
    assert await binder.add_category("") is False
    assert binder.store.get_categories() == []


@pytest.mark.asyncio
async def test_rename_rules(binder):
    await binder.start()
    await binder.add_category("food")
    await binder.add_category("rent")
    await binder.add_expense("5", "food")

    assert await binder.rename_category("food", "") is False
    assert await binder.rename_category("food", "food") is False
    assert await binder.rename_category("food", "rent") is False
    assert await binder.rename_category("food", "Rent") is True
    assert binder.state.category_rows == [CategoryRow("Rent", 5), CategoryRow("rent", 0)]


@pytest.mark.asyncio
async def test_delete_needs_confirmation_and_clears_history(binder):
    await binder.start()
    await binder.add_category("food")
    await binder.add_expense("5", "food")
    binder.show_history()

    assert await binder.delete_category("food", no) is False
    assert binder.store.get_categories() == ["food"]
    assert binder.state.history_rows is not None

    assert await binder.delete_category("food", yes) is True
    assert binder.state.category_rows == []
    assert binder.state.history_rows is None
    assert binder.store.get_history() == []


@pytest.mark.asyncio
async def test_show_history_replaces_previous(binder):
    await binder.start()
    await binder.add_expense("1", "a")
    binder.show_history()
    await binder.add_expense("2", "b")
    assert len(binder.state.history_rows) == 1
    binder.show_history()
    assert [r.amount for r in binder.state.history_rows] == [1, 2]


@pytest.mark.asyncio
async def test_reset(binder):
    await binder.start()
    await binder.set_balance("50")
    await binder.add_category("food")
    binder.show_history()

    assert await binder.reset(no) is False
    assert binder.state.balance == 50

    assert await binder.reset(yes) is True
    assert binder.state.balance == 0
    assert binder.state.category_rows == []
    assert binder.state.history_rows is None
