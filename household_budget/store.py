"""
store.py - the account store: one AccountRecord, loaded and saved whole

Responsibilities:
 - keep the in-memory AccountRecord for one fixed user id
 - load it from / overwrite it in the document store (see storage.py)
 - provide the mutations consumed by the UI:
     set_balance, add_category, add_expense, rename_category,
     delete_category, reset

Every mutation changes the in-memory record first and then awaits a full
save. Backend calls run in a worker thread, so a second handler can mutate
the record while an earlier save is in flight; the later-settling write wins.
A failed save raises StorageError and the in-memory change is kept.
"""

from typing import List, Optional
import asyncio
import logging

from household_budget.models import AccountRecord, HistoryEntry, today_iso
from household_budget.storage import StorageError, build_backend, configured_user_id

logger = logging.getLogger(__name__)


class AccountStore:
    """
    Owns the single budgeting record. Create one per session, await load()
    before use and call close() when the session ends.
    """

    def __init__(self, backend=None, user_id: Optional[str] = None):
        self.backend = backend if backend is not None else build_backend()
        self.user_id = user_id or configured_user_id()
        self.record = AccountRecord.zero()
        self._closed = False

    def _check_open(self):
        if self._closed:
            raise RuntimeError("AccountStore is closed")

    async def load(self):
        """
        Fetch the stored record. If none exists yet, start from the zero
        state and persist it immediately.
        """
        self._check_open()
        logger.info("Loading account %s", self.user_id)
        exists, data = await asyncio.to_thread(self.backend.fetch, self.user_id)
        if exists:
            try:
                self.record = AccountRecord.from_dict(data)
            except (AttributeError, TypeError, ValueError) as exc:
                logger.exception("Stored account %s is malformed", self.user_id)
                raise StorageError(f"malformed document for {self.user_id}") from exc
        else:
            self.record = AccountRecord.zero()
            await self.save()

    async def save(self):
        """Overwrite the stored document with the current record."""
        self._check_open()
        # snapshot before yielding so the write reflects state at call time
        snapshot = self.record.to_dict()
        await asyncio.to_thread(self.backend.replace, self.user_id, snapshot)

    async def set_balance(self, amount: int):
        self._check_open()
        self.record.balance = amount
        await self.save()

    async def add_category(self, name: str) -> bool:
        """
        Append a category unless the exact name is already present.
        Returns True when a new category was added (and saved).
        """
        self._check_open()
        if name in self.record.categories:
            return False
        self.record.categories.append(name)
        await self.save()
        return True

    async def add_expense(self, amount: int, category: str) -> HistoryEntry:
        """
        Subtract amount from the balance and record it under category.
        The category does not have to exist and the balance may go negative.
        """
        self._check_open()
        self.record.balance -= amount
        entry = HistoryEntry(date=today_iso(), amount=amount, category=category)
        self.record.history.append(entry)
        await self.save()
        return entry

    async def rename_category(self, old: str, new: str):
        """
        Replace old with new in place and retag matching history entries.
        The caller checks that new is non-empty and not already used.
        """
        self._check_open()
        if old in self.record.categories:
            index = self.record.categories.index(old)
            self.record.categories[index] = new
        for entry in self.record.history:
            if entry.category == old:
                entry.category = new
        await self.save()

    async def delete_category(self, name: str):
        """Remove the category and every history entry tagged with it."""
        self._check_open()
        self.record.categories = [c for c in self.record.categories if c != name]
        self.record.history = [e for e in self.record.history if e.category != name]
        await self.save()

    async def reset(self):
        self._check_open()
        self.record = AccountRecord.zero()
        await self.save()

    def get_balance(self) -> int:
        return self.record.balance

    def get_categories(self) -> List[str]:
        return self.record.categories

    def get_history(self) -> List[HistoryEntry]:
        return self.record.history

    def storage_status(self):
        """Return (backend name, short diagnostic message) for the UI."""
        self._check_open()
        return self.backend.NAME, self.backend.describe()

    def close(self):
        self._closed = True
        self.backend = None
