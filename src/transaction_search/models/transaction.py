"""Transaction data model with validation."""

import uuid
from dataclasses import InitVar, dataclass, field
from datetime import date as date_type, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
from pydantic import BaseModel, Field, field_validator

from ..core.exceptions import EmbeddingError


class TransactionType(str, Enum):
    """Transaction kinds. ``ALL`` is a filter wildcard only."""
    ALL = "all"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"


def to_decimal(value: Union[Decimal, float, int, str]) -> Decimal:
    """Convert a numeric value to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}")


def as_embedding_vector(values: Sequence[float]) -> np.ndarray:
    """Copy values into a read-only 1-D float32 array."""
    vector = np.array(values, dtype=np.float32)
    if vector.ndim != 1 or vector.size == 0:
        raise EmbeddingError(f"Embedding must be a non-empty 1-D vector, got shape {vector.shape}")
    vector.setflags(write=False)
    return vector


@dataclass(frozen=True, eq=False)
class Transaction:
    """
    Account transaction that can be filtered and semantically searched.

    Identity is nominal: two transactions with identical fields are still
    distinct objects, and equality/hashing are by identity.

    Attributes:
        date: When the transaction happened (day granularity is used for filtering)
        title: Display text, also the source text for the embedding
        type: Deposit, withdrawal or transfer
        amount: Signed amount, negative for debits
        is_cheque: Whether the transaction was paid by cheque
        category: Ordered category labels, duplicates removed
        id: Unique identifier, generated when not supplied
        embedding: Optional precomputed embedding (write-once)
    """
    date: datetime
    title: str
    type: TransactionType
    amount: Decimal
    is_cheque: bool = False
    category: Tuple[str, ...] = ()
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    embedding: InitVar[Optional[Sequence[float]]] = None

    def __post_init__(self, embedding: Optional[Sequence[float]]) -> None:
        """Validate and normalize fields after initialization."""
        if not self.id or not str(self.id).strip():
            raise ValueError("Transaction ID cannot be empty")
        if not isinstance(self.title, str) or not self.title.strip():
            raise ValueError("Transaction title cannot be empty")
        if not isinstance(self.type, TransactionType):
            raise ValueError(f"Invalid transaction type: {self.type}")
        if self.type is TransactionType.ALL:
            raise ValueError("Transaction type ALL is only valid as a filter")

        if isinstance(self.date, datetime):
            pass
        elif isinstance(self.date, date_type):
            object.__setattr__(self, "date", datetime.combine(self.date, datetime.min.time()))
        else:
            raise ValueError(f"Transaction date must be a date or datetime, got {type(self.date).__name__}")

        amount = to_decimal(self.amount)
        if not amount.is_finite():
            raise ValueError(f"Transaction amount must be finite, got {amount}")
        object.__setattr__(self, "amount", amount)

        categories: List[str] = []
        for label in self.category:
            if label not in categories:
                categories.append(label)
        object.__setattr__(self, "category", tuple(categories))
        object.__setattr__(self, "is_cheque", bool(self.is_cheque))

        object.__setattr__(self, "_embedding", None)
        if embedding is not None:
            self.set_embedding(embedding)

    @property
    def embedding_vector(self) -> Optional[np.ndarray]:
        """Cached embedding of the title, or None if not computed."""
        return self._embedding

    @property
    def has_embedding(self) -> bool:
        return self._embedding is not None

    def set_embedding(self, vector: Sequence[float]) -> None:
        """
        Store the title embedding. Can only be done once.

        Raises:
            EmbeddingError: If an embedding is already set or the vector is malformed
        """
        if self._embedding is not None:
            raise EmbeddingError(f"Embedding already set for transaction {self.id}")
        object.__setattr__(self, "_embedding", as_embedding_vector(vector))

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "title": self.title,
            "type": self.type.value,
            "amount": str(self.amount),
            "is_cheque": self.is_cheque,
            "category": list(self.category),
            "has_embedding": self.has_embedding,
        }


class TransactionModel(BaseModel):
    """Pydantic model for transaction validation at ingestion."""

    id: Optional[str] = Field(None, description="Transaction identifier, generated if omitted")
    date: datetime = Field(..., description="Transaction date")
    title: str = Field(..., min_length=1, description="Transaction title")
    type: TransactionType = Field(..., description="Transaction type")
    amount: Decimal = Field(..., description="Signed transaction amount")
    is_cheque: bool = Field(False, description="Paid by cheque")
    category: List[str] = Field(default_factory=list, description="Category labels")

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Ensure title is not just whitespace."""
        if not v.strip():
            raise ValueError('Title cannot be empty or whitespace only')
        return v.strip()

    @field_validator('type')
    @classmethod
    def validate_type(cls, v: TransactionType) -> TransactionType:
        """Reject the filter-only wildcard."""
        if v is TransactionType.ALL:
            raise ValueError('Transaction type ALL is only valid as a filter')
        return v

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError('Amount must be a finite number')
        return v

    def to_transaction(self) -> Transaction:
        """Convert to Transaction dataclass."""
        kwargs = {}
        if self.id:
            kwargs["id"] = self.id
        return Transaction(
            date=self.date,
            title=self.title,
            type=self.type,
            amount=self.amount,
            is_cheque=self.is_cheque,
            category=tuple(self.category),
            **kwargs
        )
