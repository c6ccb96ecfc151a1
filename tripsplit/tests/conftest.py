"""
Pytest configuration and fixtures for tripsplit tests.
"""
import pytest
from decimal import Decimal
from typing import Dict, List

from fastapi.testclient import TestClient

from tripsplit.config import get_settings
from tripsplit.db.database import get_store
from tripsplit.db.memory_store import InMemoryGroupStore
from tripsplit.main import app
from tripsplit.schemas.expense_schema import Expense
from tripsplit.schemas.settlement_schema import Settlement


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are cached; drop the cache around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def overwrite_policy(monkeypatch):
    monkeypatch.setenv("TRIPSPLIT_SETTLED_FLAG_POLICY", "overwrite")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store():
    return InMemoryGroupStore()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def sample_expenses() -> List[Expense]:
    """Sample expenses with three-way splits that do not divide evenly."""
    return [
        Expense(payer="A", amount=Decimal("120"), participants=["A", "B", "C"]),
        Expense(payer="B", amount=Decimal("60"), participants=["B", "C"]),
        Expense(payer="C", amount=Decimal("40"), participants=["A", "C", "D"]),
    ]


@pytest.fixture
def sample_members() -> List[str]:
    return ["A", "B", "C", "D"]


def apply_settlements(balances: Dict[str, Decimal], settlements: List[Settlement]) -> Dict[str, Decimal]:
    """
    Balances left over after every settlement is paid.

    Paying reduces what the debtor owes (balance goes up) and what the creditor
    is owed (balance goes down).
    """
    remaining = dict(balances)
    for settlement in settlements:
        remaining[settlement.from_user] = remaining.get(settlement.from_user, Decimal("0")) + settlement.amount
        remaining[settlement.to_user] = remaining.get(settlement.to_user, Decimal("0")) - settlement.amount
    return remaining


@pytest.fixture
def settle_up():
    return apply_settlements
