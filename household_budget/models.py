"""
models.py - Data model definitions

This file defines the AccountRecord document and its HistoryEntry rows.
Both serialize to/from plain dicts so the whole record can be stored as one
JSON document per user.
"""

from dataclasses import dataclass, field
from typing import Any, List, Dict
import datetime
import re

_INT_TEXT = re.compile(r"\s*[+-]?[0-9]+\s*")


def _as_int(value: Any, name: str) -> int:
    """
    Read a stored whole number. Missing values count as 0; integral floats and
    digit strings are accepted; anything else raises ValueError.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and _INT_TEXT.fullmatch(value):
        return int(value)
    raise ValueError(f"{name} must be an integer, got {value!r}")


@dataclass
class HistoryEntry:
    """
    A single expense recorded against the balance.

    Fields:
      - date: ISO date string "YYYY-MM-DD" (local day the expense was added)
      - amount: positive integer amount
      - category: category name; not checked against the category list
    """
    date: str = ""
    amount: int = 0
    category: str = ""

    def to_dict(self) -> Dict:
        return {
            "date": self.date,
            "amount": self.amount,
            "category": self.category,
        }

    @staticmethod
    def from_dict(d: Dict) -> "HistoryEntry":
        return HistoryEntry(
            date=d.get("date", "") or "",
            amount=_as_int(d.get("amount"), "amount"),
            category=d.get("category", "") or "",
        )


@dataclass
class AccountRecord:
    """
    The single persisted budgeting document: balance, categories and history.

    The record is mutated in place by the store and written back whole.
    """
    balance: int = 0
    categories: List[str] = field(default_factory=list)
    history: List[HistoryEntry] = field(default_factory=list)

    @classmethod
    def zero(cls) -> "AccountRecord":
        """Fresh record with zero balance and empty lists."""
        return cls()

    def to_dict(self) -> Dict:
        """
        Convert to the stored document shape.
        Lists are copied so a snapshot taken before a save is not affected by
        later in-memory mutation.
        """
        return {
            "balance": self.balance,
            "categories": list(self.categories),
            "history": [e.to_dict() for e in self.history],
        }

    @staticmethod
    def from_dict(d: Dict) -> "AccountRecord":
        """
        Construct a record from a stored document (inverse of to_dict).
        Missing keys fall back to the zero state; non-integer numbers raise
        ValueError.
        """
        return AccountRecord(
            balance=_as_int(d.get("balance"), "balance"),
            categories=[str(c) for c in (d.get("categories", []) or [])],
            history=[HistoryEntry.from_dict(h) for h in (d.get("history", []) or [])],
        )


def today_iso() -> str:
    # local calendar day, no time component
    return datetime.date.today().isoformat()
