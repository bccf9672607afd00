"""
Pytest fixtures for household_budget tests.
"""

import threading

import pytest
import pytest_asyncio

from household_budget.storage import LocalJsonBackend, StorageError
from household_budget.store import AccountStore


class MemoryBackend:
    """In-memory document store that records every write."""

    NAME = "memory"

    def __init__(self, docs=None):
        self.docs = dict(docs or {})
        self.writes = []

    def fetch(self, user_id):
        if user_id not in self.docs:
            return False, {}
        return True, self.docs[user_id]

    def replace(self, user_id, data):
        self.writes.append(data)
        self.docs[user_id] = data

    def describe(self):
        return "in memory"


class FailingBackend(MemoryBackend):
    """Loads normally; every write fails."""

    def replace(self, user_id, data):
        raise StorageError("save failed")


class BlockingBackend(MemoryBackend):
    """Writes wait until release is set."""

    def __init__(self, docs=None):
        super().__init__(docs)
        self.release = threading.Event()

    def replace(self, user_id, data):
        self.release.wait(timeout=5)
        super().replace(user_id, data)


class GatedBackend(MemoryBackend):
    """Each write waits on the gate registered for the balance it carries."""

    def __init__(self, docs=None):
        super().__init__(docs)
        self.gates = {}

    def gate(self, balance):
        return self.gates.setdefault(balance, threading.Event())

    def replace(self, user_id, data):
        self.gates[data["balance"]].wait(timeout=5)
        super().replace(user_id, data)


@pytest.fixture
def memory_backend():
    return MemoryBackend()


@pytest.fixture
def json_backend(tmp_path):
    return LocalJsonBackend(str(tmp_path / "household_data.json"))


@pytest_asyncio.fixture
async def store(json_backend):
    s = AccountStore(backend=json_backend, user_id="testUser")
    await s.load()
    yield s
    s.close()
