"""Utility modules for transaction search."""

from .text_processing import clean_text, tokenize, format_amount
from .validators import validate_transaction, validate_transactions_batch, validate_criteria
from .logging_config import setup_logging, resolve_level, StructuredLogger
from .debounce import Debouncer

__all__ = [
    "clean_text",
    "tokenize",
    "format_amount",
    "validate_transaction",
    "validate_transactions_batch",
    "validate_criteria",
    "setup_logging",
    "resolve_level",
    "StructuredLogger",
    "Debouncer",
]
