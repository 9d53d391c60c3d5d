"""Shared pytest fixtures for the inventory widget tests.

Provides an in-memory document store, recorders for the alert and
confirmation callbacks, and a manager wired to them.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from core.inventory import InventoryManager
from core.models import Item
from stores.memory import MemoryStore


class Prompts:
    """Records alerts and answers confirmations with a preset value."""

    def __init__(self) -> None:
        self.alerts: list[str] = []
        self.questions: list[str] = []
        self.answer = True

    def alert(self, message: str) -> None:
        self.alerts.append(message)

    def confirm(self, message: str) -> bool:
        self.questions.append(message)
        return self.answer


@pytest.fixture
def store() -> MemoryStore:
    """Empty in-memory store."""
    return MemoryStore()


@pytest.fixture
def prompts() -> Prompts:
    return Prompts()


@pytest.fixture
def on_change() -> MagicMock:
    return MagicMock()


@pytest.fixture
def manager(store: MemoryStore, prompts: Prompts, on_change: MagicMock) -> InventoryManager:
    """Manager over the empty memory store."""
    return InventoryManager(
        store, alert=prompts.alert, confirm=prompts.confirm, on_change=on_change
    )


@pytest.fixture
def stocked_store() -> MemoryStore:
    """Store with three lines, in a known insertion order."""
    return MemoryStore(
        {
            "widget": {"quantity": 4, "price": 2.5},
            "bolt": {"quantity": 10, "price": 0.5},
            "Bolt Cutter": {"quantity": 1, "price": 24.99},
        }
    )


@pytest.fixture
def stocked(stocked_store: MemoryStore, prompts: Prompts) -> InventoryManager:
    """Manager over the stocked store, already loaded."""
    mgr = InventoryManager(stocked_store, alert=prompts.alert, confirm=prompts.confirm)
    mgr.load()
    return mgr


@pytest.fixture
def bolt() -> Item:
    return Item(name="bolt", quantity=10, price=0.5)
