"""Pytest configuration and shared fixtures."""

from typing import List

import pytest

from transaction_search.core.coordinator import SearchCoordinator
from transaction_search.models.transaction import Transaction, TransactionType

from tests.helpers import KeywordEmbeddingProvider, days_ago, make_transaction


@pytest.fixture
def sample_transactions() -> List[Transaction]:
    """Create sample transactions spread over the last month."""
    return [
        make_transaction(
            "Amazon Purchase",
            amount="-50.00",
            type=TransactionType.WITHDRAWAL,
            date=days_ago(2),
            category=["Shopping", "Online"],
            id="txn_amazon"
        ),
        make_transaction(
            "Salary Deposit",
            amount="3000.00",
            type=TransactionType.DEPOSIT,
            date=days_ago(2),
            category=["Income"],
            id="txn_salary"
        ),
        make_transaction(
            "Starbucks Coffee",
            amount="-4.50",
            type=TransactionType.WITHDRAWAL,
            date=days_ago(16),
            category=["Food & Drink", "Coffee"],
            id="txn_coffee"
        ),
        make_transaction(
            "Gym Membership Fee",
            amount="-50.00",
            type=TransactionType.WITHDRAWAL,
            date=days_ago(24),
            category=["Health", "Subscription"],
            id="txn_gym"
        ),
        make_transaction(
            "Cheque to landlord",
            amount="-1200.00",
            type=TransactionType.TRANSFER,
            date=days_ago(10),
            is_cheque=True,
            category=["Housing", "Bills"],
            id="txn_rent"
        ),
    ]


@pytest.fixture
def keyword_provider() -> KeywordEmbeddingProvider:
    """Deterministic embedding provider backed by a lookup table."""
    return KeywordEmbeddingProvider()


@pytest.fixture
async def coordinator(keyword_provider, sample_transactions):
    """Create a coordinator seeded with the sample transactions."""
    coordinator = SearchCoordinator(
        keyword_provider,
        transactions=sample_transactions,
        debounce_ms=20,
        max_workers=2
    )
    yield coordinator
    await coordinator.close()
