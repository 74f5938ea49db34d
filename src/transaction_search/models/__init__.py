"""Data models for transaction search system."""

from .transaction import Transaction, TransactionType, TransactionModel
from .criteria import FilterCriteria, FilterCriteriaModel, parse_amount_bound
from .result import SearchResult, RankedTransaction, SearchMode

__all__ = [
    "Transaction",
    "TransactionType",
    "TransactionModel",
    "FilterCriteria",
    "FilterCriteriaModel",
    "parse_amount_bound",
    "SearchResult",
    "RankedTransaction",
    "SearchMode",
]
