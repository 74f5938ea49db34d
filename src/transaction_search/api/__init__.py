"""Service API for transaction search."""

from .service import TransactionSearchService

__all__ = ["TransactionSearchService"]
