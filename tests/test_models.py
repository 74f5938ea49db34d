"""Test data models and validation."""

from datetime import date, datetime, timedelta
from decimal import Decimal

import numpy as np
import pytest
from pydantic import ValidationError as PydanticValidationError

from transaction_search.core.exceptions import EmbeddingError
from transaction_search.models.criteria import (
    FilterCriteria,
    FilterCriteriaModel,
    parse_amount_bound,
)
from transaction_search.models.result import RankedTransaction, SearchMode, SearchResult
from transaction_search.models.transaction import (
    Transaction,
    TransactionModel,
    TransactionType,
)

from tests.helpers import make_transaction


class TestTransaction:
    """Test Transaction model."""

    def test_valid_transaction_creation(self):
        """Test creating a valid transaction."""
        txn = Transaction(
            date=datetime(2025, 2, 20, 9, 30),
            title="Amazon Purchase",
            type=TransactionType.WITHDRAWAL,
            amount=Decimal("-50.00"),
            category=("Shopping", "Online")
        )

        assert txn.title == "Amazon Purchase"
        assert txn.type == TransactionType.WITHDRAWAL
        assert txn.amount == Decimal("-50.00")
        assert txn.category == ("Shopping", "Online")
        assert txn.is_cheque is False
        assert txn.id
        assert txn.embedding_vector is None

    def test_ids_are_unique(self):
        """Test that generated IDs differ between transactions."""
        a = make_transaction()
        b = make_transaction()
        assert a.id != b.id

    def test_identity_is_nominal(self):
        """Test that identical content does not make transactions equal."""
        when = datetime(2025, 2, 20)
        a = make_transaction("Coffee", date=when, id="same")
        b = make_transaction("Coffee", date=when, id="same")

        assert a != b
        assert a == a
        assert len({a, b}) == 2

    def test_fields_are_immutable(self):
        """Test that fields cannot be reassigned."""
        txn = make_transaction()
        with pytest.raises(AttributeError):
            txn.title = "Something else"

    def test_empty_title_validation(self):
        """Test validation for empty title."""
        with pytest.raises(ValueError, match="Transaction title cannot be empty"):
            make_transaction("   ")

    def test_all_type_rejected(self):
        """Test that the ALL wildcard cannot be a transaction's type."""
        with pytest.raises(ValueError, match="only valid as a filter"):
            make_transaction(type=TransactionType.ALL)

    def test_invalid_type_validation(self):
        """Test validation for invalid transaction type."""
        with pytest.raises(ValueError, match="Invalid transaction type"):
            Transaction(
                date=datetime.now(),
                title="Test",
                type="withdrawal",  # type: ignore
                amount=Decimal("1")
            )

    def test_date_is_promoted_to_datetime(self):
        """Test that a plain date becomes midnight of that day."""
        txn = Transaction(
            date=date(2025, 1, 30),
            title="Gym Membership Fee",
            type=TransactionType.WITHDRAWAL,
            amount=Decimal("-50")
        )
        assert txn.date == datetime(2025, 1, 30, 0, 0)

    def test_amount_is_converted_to_decimal(self):
        """Test that float and string amounts become exact decimals."""
        from_float = Transaction(
            date=datetime.now(), title="Coffee", type=TransactionType.WITHDRAWAL, amount=-4.5
        )
        from_string = Transaction(
            date=datetime.now(), title="Coffee", type=TransactionType.WITHDRAWAL, amount="-4.50"
        )

        assert from_float.amount == Decimal("-4.5")
        assert from_string.amount == Decimal("-4.50")

    def test_non_finite_amount_rejected(self):
        """Test that NaN and infinite amounts are rejected."""
        with pytest.raises(ValueError):
            make_transaction(amount="NaN")
        with pytest.raises(ValueError):
            make_transaction(amount="abc")

    def test_categories_are_deduplicated_in_order(self):
        """Test category de-duplication keeps first occurrence order."""
        txn = make_transaction(category=["Food", "Coffee", "Food"])
        assert txn.category == ("Food", "Coffee")

    def test_embedding_is_write_once(self):
        """Test that the embedding can only be set once."""
        txn = make_transaction()
        txn.set_embedding([0.1, 0.2, 0.3])

        assert txn.has_embedding
        np.testing.assert_allclose(txn.embedding_vector, [0.1, 0.2, 0.3], rtol=1e-6)

        with pytest.raises(EmbeddingError, match="already set"):
            txn.set_embedding([1.0, 0.0, 0.0])

    def test_embedding_is_read_only(self):
        """Test that the cached vector cannot be mutated in place."""
        txn = make_transaction(embedding=[1.0, 2.0])
        with pytest.raises(ValueError):
            txn.embedding_vector[0] = 5.0

    def test_embedding_is_copied(self):
        """Test that later changes to the source list do not leak in."""
        source = [1.0, 2.0]
        txn = make_transaction(embedding=source)
        source[0] = 99.0
        assert txn.embedding_vector[0] == pytest.approx(1.0)

    def test_malformed_embedding_rejected(self):
        """Test that empty or 2-D embeddings are rejected."""
        with pytest.raises(EmbeddingError):
            make_transaction(embedding=[])
        with pytest.raises(EmbeddingError):
            make_transaction(embedding=[[1.0, 2.0], [3.0, 4.0]])

    def test_to_dict(self):
        """Test serialization."""
        txn = make_transaction("Starbucks Coffee", amount="-4.50", id="txn_1", category=["Coffee"])
        data = txn.to_dict()

        assert data["id"] == "txn_1"
        assert data["title"] == "Starbucks Coffee"
        assert data["type"] == "withdrawal"
        assert data["amount"] == "-4.50"
        assert data["category"] == ["Coffee"]
        assert data["has_embedding"] is False


class TestTransactionModel:
    """Test TransactionModel pydantic validation."""

    def test_valid_transaction_model(self):
        """Test valid model converts to a Transaction."""
        model = TransactionModel(
            id="txn_001",
            date="2025-02-20T00:00:00",
            title="  Salary Deposit ",
            type="deposit",
            amount="3000.00",
            category=["Income"]
        )

        txn = model.to_transaction()
        assert isinstance(txn, Transaction)
        assert txn.id == "txn_001"
        assert txn.title == "Salary Deposit"
        assert txn.type == TransactionType.DEPOSIT
        assert txn.amount == Decimal("3000.00")

    def test_id_generated_when_missing(self):
        """Test that a missing ID is generated."""
        model = TransactionModel(
            date=datetime.now(), title="Coffee", type="withdrawal", amount=-4.5
        )
        assert model.to_transaction().id

    def test_whitespace_title_validation(self):
        """Test validation for whitespace-only title."""
        with pytest.raises(PydanticValidationError, match="Title cannot be empty"):
            TransactionModel(date=datetime.now(), title="   ", type="withdrawal", amount=1)

    def test_all_type_rejected(self):
        """Test that the filter wildcard is rejected."""
        with pytest.raises(PydanticValidationError, match="only valid as a filter"):
            TransactionModel(date=datetime.now(), title="Test", type="all", amount=1)


class TestParseAmountBound:
    """Test amount bound parsing."""

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", "12,50", "NaN", "inf", "-Infinity"])
    def test_unrestricted_inputs(self, value):
        """Test that empty, unparsable and non-finite input is unrestricted."""
        assert parse_amount_bound(value) is None

    @pytest.mark.parametrize("value,expected", [
        ("10", Decimal("10")),
        (" -4.50 ", Decimal("-4.50")),
        (25, Decimal("25")),
        (Decimal("3.14"), Decimal("3.14")),
        ("1e3", Decimal("1000")),
    ])
    def test_numeric_inputs(self, value, expected):
        """Test that numeric input is parsed."""
        assert parse_amount_bound(value) == expected


class TestFilterCriteria:
    """Test FilterCriteria model."""

    def test_defaults_are_unrestricted(self):
        """Test that a bare criteria object restricts nothing."""
        criteria = FilterCriteria()

        assert criteria.start_date is None
        assert criteria.end_date is None
        assert criteria.min_amount_value is None
        assert criteria.max_amount_value is None
        assert criteria.selected_type == TransactionType.ALL
        assert criteria.selected_categories == frozenset()
        assert criteria.semantic_enabled is True

    def test_default_window(self):
        """Test the default 30 day window ending today."""
        today = date(2025, 2, 20)
        criteria = FilterCriteria.default(today=today)

        assert criteria.start_date == today - timedelta(days=30)
        assert criteria.end_date == today
        assert criteria.search_text == ""

    def test_categories_become_frozenset(self):
        """Test that categories are stored as a frozenset."""
        criteria = FilterCriteria(selected_categories=["Income", "Income", "Bills"])
        assert criteria.selected_categories == frozenset({"Income", "Bills"})

    def test_type_string_is_converted(self):
        """Test that the type can be given by value."""
        assert FilterCriteria(selected_type="deposit").selected_type == TransactionType.DEPOSIT

    def test_criteria_is_immutable(self):
        """Test that criteria are snapshots."""
        criteria = FilterCriteria()
        with pytest.raises(AttributeError):
            criteria.search_text = "coffee"

    def test_replace(self):
        """Test replace returns a modified copy."""
        criteria = FilterCriteria(search_text="coffee")
        changed = criteria.replace(semantic_enabled=False)

        assert changed.search_text == "coffee"
        assert changed.semantic_enabled is False
        assert criteria.semantic_enabled is True

    def test_toggle_category(self):
        """Test toggling categories on and off."""
        criteria = FilterCriteria().toggle_category("Income")
        assert criteria.selected_categories == {"Income"}

        criteria = criteria.toggle_category("Bills").toggle_category("Income")
        assert criteria.selected_categories == {"Bills"}

    def test_query_strips_whitespace(self):
        """Test the normalized query text."""
        assert FilterCriteria(search_text="  coffee \n").query == "coffee"
        assert FilterCriteria(search_text="   ").query == ""


class TestFilterCriteriaModel:
    """Test FilterCriteriaModel pydantic validation."""

    def test_to_criteria(self):
        """Test conversion from dict-shaped input."""
        model = FilterCriteriaModel(
            start_date="2025-01-01T00:00:00",
            min_amount=-100,
            max_amount="abc",
            selected_type="withdrawal",
            selected_categories=["Shopping"],
            search_text="amazon",
            semantic_enabled=False
        )
        criteria = model.to_criteria()

        assert criteria.start_date == datetime(2025, 1, 1)
        assert criteria.min_amount_value == Decimal("-100")
        assert criteria.max_amount_value is None
        assert criteria.selected_type == TransactionType.WITHDRAWAL
        assert criteria.selected_categories == {"Shopping"}
        assert criteria.semantic_enabled is False

    def test_invalid_type(self):
        """Test that an unknown type is rejected."""
        with pytest.raises(PydanticValidationError):
            FilterCriteriaModel(selected_type="refund")


class TestSearchResult:
    """Test SearchResult and RankedTransaction models."""

    def test_rank_must_be_positive(self):
        """Test rank validation."""
        with pytest.raises(ValueError, match="Rank must be positive"):
            RankedTransaction(transaction=make_transaction(), rank=0)

    def test_score_range(self):
        """Test score validation."""
        with pytest.raises(ValueError, match="Score must be between"):
            RankedTransaction(transaction=make_transaction(), rank=1, score=1.5)

    def test_from_transactions_keeps_order(self):
        """Test wrapping an unscored sequence."""
        txns = [make_transaction("A"), make_transaction("B"), make_transaction("C")]
        result = SearchResult.from_transactions(txns, SearchMode.TEXT, "x")

        assert result.transactions == txns
        assert [m.rank for m in result] == [1, 2, 3]
        assert result.scores == [None, None, None]
        assert result.mode == SearchMode.TEXT
        assert len(result) == 3

    def test_empty_result_is_falsy(self):
        """Test truthiness."""
        assert not SearchResult()
        assert SearchResult.from_transactions([make_transaction()])

    def test_to_dict(self):
        """Test serialization."""
        txn = make_transaction("Starbucks Coffee", id="txn_coffee")
        result = SearchResult(
            matches=[RankedTransaction(transaction=txn, rank=1, score=0.987654)],
            mode=SearchMode.SEMANTIC,
            query="coffee"
        )
        data = result.to_dict()

        assert data["mode"] == "semantic"
        assert data["query"] == "coffee"
        assert data["total"] == 1
        assert data["results"][0]["score"] == 0.9877
        assert data["results"][0]["transaction"]["id"] == "txn_coffee"
