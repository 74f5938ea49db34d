"""Input validation utilities."""

from datetime import date, datetime
from decimal import Decimal
from typing import Collection, Sequence

from ..core.exceptions import ValidationError
from ..models.criteria import FilterCriteria
from ..models.transaction import Transaction, TransactionType


def validate_transaction(transaction: Transaction) -> None:
    """
    Validate transaction object.

    Args:
        transaction: Transaction to validate

    Raises:
        ValidationError: If transaction is invalid
    """
    if not isinstance(transaction, Transaction):
        raise ValidationError(f"Expected Transaction, got {type(transaction).__name__}")

    if not transaction.id or not transaction.id.strip():
        raise ValidationError("Transaction ID is required")

    if not transaction.title or not transaction.title.strip():
        raise ValidationError("Transaction title is required")

    if not isinstance(transaction.type, TransactionType) or transaction.type is TransactionType.ALL:
        raise ValidationError(f"Invalid transaction type: {transaction.type}")

    if not isinstance(transaction.date, datetime):
        raise ValidationError("Transaction date must be a datetime object")

    if not isinstance(transaction.amount, Decimal) or not transaction.amount.is_finite():
        raise ValidationError(f"Invalid transaction amount: {transaction.amount}")


def validate_transactions_batch(
    transactions: Sequence[Transaction],
    existing_ids: Collection[str] = ()
) -> None:
    """
    Validate a batch of transactions.

    Args:
        transactions: Transactions to validate
        existing_ids: IDs already present in the store

    Raises:
        ValidationError: If any transaction is invalid or an ID repeats
    """
    if not transactions:
        raise ValidationError("Transaction list cannot be empty")

    seen_ids = set()
    for transaction in transactions:
        validate_transaction(transaction)

        if transaction.id in seen_ids or transaction.id in existing_ids:
            raise ValidationError(f"Duplicate transaction ID found: {transaction.id}")
        seen_ids.add(transaction.id)


def validate_threshold(threshold: float) -> None:
    """
    Validate a similarity threshold.

    Raises:
        ValidationError: If threshold is outside [-1.0, 1.0]
    """
    if not -1.0 <= threshold <= 1.0:
        raise ValidationError("Similarity threshold must be between -1.0 and 1.0")


def validate_criteria(criteria: FilterCriteria) -> None:
    """
    Validate criteria object.

    Amount bounds are not checked: unparsable bounds mean "unrestricted".

    Raises:
        ValidationError: If criteria is not usable
    """
    if not isinstance(criteria, FilterCriteria):
        raise ValidationError(f"Expected FilterCriteria, got {type(criteria).__name__}")

    if not isinstance(criteria.selected_type, TransactionType):
        raise ValidationError(f"Invalid transaction type in filter: {criteria.selected_type}")

    for name in ("start_date", "end_date"):
        value = getattr(criteria, name)
        if value is not None and not isinstance(value, date):
            raise ValidationError(f"Invalid {name} in filter: {value!r}")

    for category in criteria.selected_categories:
        if not isinstance(category, str):
            raise ValidationError(f"Invalid category in filter: {category!r}")
