"""Custom exceptions for transaction search system."""


class TransactionSearchError(Exception):
    """Base exception for transaction search operations."""
    pass


class ValidationError(TransactionSearchError):
    """Exception raised during input validation."""
    pass


class EmbeddingError(TransactionSearchError):
    """Exception raised when an embedding vector cannot be stored or used."""
    pass


class ModelUnavailableError(TransactionSearchError):
    """Exception raised when an embedding model fails to load."""
    pass


class SearchError(TransactionSearchError):
    """Exception raised during search operations."""
    pass


class ConfigurationError(TransactionSearchError):
    """Exception raised for configuration issues."""
    pass
