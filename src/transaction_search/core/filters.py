"""Deterministic structured filtering of transactions."""

import logging
from datetime import date as date_type, datetime, time
from typing import Iterable, List, Optional, Union

from ..models.criteria import FilterCriteria
from ..models.transaction import Transaction, TransactionType
from ..utils.text_processing import format_amount

logger = logging.getLogger(__name__)

END_OF_DAY = time(23, 59, 59)


def start_of_day(value: Union[datetime, date_type]) -> datetime:
    """Midnight at the start of the value's calendar day."""
    if isinstance(value, datetime):
        return datetime.combine(value.date(), time.min, tzinfo=value.tzinfo)
    return datetime.combine(value, time.min)


def end_of_day(value: Union[datetime, date_type]) -> datetime:
    """23:59:59 on the value's calendar day."""
    if isinstance(value, datetime):
        return datetime.combine(value.date(), END_OF_DAY, tzinfo=value.tzinfo)
    return datetime.combine(value, END_OF_DAY)


def _day(value: Union[datetime, date_type]) -> date_type:
    return value.date() if isinstance(value, datetime) else value


def matches_text(transaction: Transaction, text: str) -> bool:
    """
    Plain-text match used when semantic search is off.

    Case-insensitive substring of the title, or substring of the amount
    formatted with two decimals.
    """
    if not text:
        return True
    return (
        text.lower() in transaction.title.lower()
        or text in format_amount(transaction.amount)
    )


class FilterEngine:
    """
    Applies FilterCriteria to a collection of transactions.

    Filtering is pure and keeps the input order. Clauses are combined with
    AND: date window, amount range, type, cheque flag and categories.
    """

    def apply(
        self,
        transactions: Iterable[Transaction],
        criteria: FilterCriteria
    ) -> List[Transaction]:
        """
        Return the transactions that satisfy every clause of ``criteria``.

        Args:
            transactions: Transactions to filter
            criteria: Filter snapshot

        Returns:
            Matching transactions in input order
        """
        # Calendar days are compared, which is what comparing
        # start_of_day(transaction) to [start_of_day(start), end_of_day(end)] reduces to
        first_day = _day(criteria.start_date) if criteria.start_date is not None else None
        last_day = _day(criteria.end_date) if criteria.end_date is not None else None
        min_amount = criteria.min_amount_value
        max_amount = criteria.max_amount_value

        matched = [
            t for t in transactions
            if self._matches_date(t, first_day, last_day)
            and (min_amount is None or t.amount >= min_amount)
            and (max_amount is None or t.amount <= max_amount)
            and self._matches_type(t, criteria.selected_type)
            and (not criteria.cheques_only or t.is_cheque)
            and self._matches_category(t, criteria)
        ]

        logger.debug(f"Filter kept {len(matched)} transactions")
        return matched

    @staticmethod
    def _matches_date(
        transaction: Transaction,
        first_day: Optional[date_type],
        last_day: Optional[date_type]
    ) -> bool:
        day = transaction.date.date()
        if first_day is not None and day < first_day:
            return False
        if last_day is not None and day > last_day:
            return False
        return True

    @staticmethod
    def _matches_type(transaction: Transaction, selected_type: TransactionType) -> bool:
        return selected_type is TransactionType.ALL or transaction.type is selected_type

    @staticmethod
    def _matches_category(transaction: Transaction, criteria: FilterCriteria) -> bool:
        if not criteria.selected_categories:
            return True
        return not criteria.selected_categories.isdisjoint(transaction.category)

    def search_text(
        self,
        transactions: Iterable[Transaction],
        text: str
    ) -> List[Transaction]:
        """Narrow ``transactions`` with the plain-text match, keeping order."""
        return [t for t in transactions if matches_text(t, text)]
