"""Filter criteria model for transaction search."""

from dataclasses import dataclass, field, replace
from datetime import date as date_type, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import FrozenSet, Iterable, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .transaction import TransactionType

AmountInput = Union[str, int, float, Decimal, None]
DateInput = Union[datetime, date_type, None]


def parse_amount_bound(value: AmountInput) -> Optional[Decimal]:
    """
    Parse a min/max amount as typed by a user.

    Empty, unparsable and non-finite input all mean "no bound" and yield
    None rather than an error.

    Args:
        value: Raw bound value

    Returns:
        Parsed bound, or None when the bound is unrestricted
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        parsed = value
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return None
    if not parsed.is_finite():
        return None
    return parsed


@dataclass(frozen=True)
class FilterCriteria:
    """
    Snapshot of every filter and search option.

    Attributes:
        start_date: First calendar day included (None = open)
        end_date: Last calendar day included (None = open)
        min_amount: Lower amount bound as entered; bad input means unrestricted
        max_amount: Upper amount bound as entered; bad input means unrestricted
        selected_type: Transaction type, ``ALL`` matches every type
        cheques_only: Only keep cheque transactions
        selected_categories: Keep transactions sharing at least one label
        search_text: Free-text query
        semantic_enabled: Rank by embedding similarity instead of substring match
    """
    start_date: DateInput = None
    end_date: DateInput = None
    min_amount: AmountInput = None
    max_amount: AmountInput = None
    selected_type: TransactionType = TransactionType.ALL
    cheques_only: bool = False
    selected_categories: FrozenSet[str] = field(default_factory=frozenset)
    search_text: str = ""
    semantic_enabled: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.selected_type, TransactionType):
            object.__setattr__(self, "selected_type", TransactionType(self.selected_type))
        if not isinstance(self.selected_categories, frozenset):
            object.__setattr__(self, "selected_categories", frozenset(self.selected_categories))
        if self.search_text is None:
            object.__setattr__(self, "search_text", "")

    @classmethod
    def default(cls, today: Optional[date_type] = None, window_days: int = 30) -> "FilterCriteria":
        """Criteria a fresh filter screen starts with: the last ``window_days`` days."""
        today = today or date_type.today()
        return cls(start_date=today - timedelta(days=window_days), end_date=today)

    @property
    def min_amount_value(self) -> Optional[Decimal]:
        return parse_amount_bound(self.min_amount)

    @property
    def max_amount_value(self) -> Optional[Decimal]:
        return parse_amount_bound(self.max_amount)

    @property
    def query(self) -> str:
        """Search text with surrounding whitespace removed."""
        return (self.search_text or "").strip()

    def replace(self, **changes) -> "FilterCriteria":
        """Return a copy with the given fields changed."""
        return replace(self, **changes)

    def with_categories(self, categories: Iterable[str]) -> "FilterCriteria":
        return replace(self, selected_categories=frozenset(categories))

    def toggle_category(self, category: str) -> "FilterCriteria":
        """Add the category if absent, otherwise remove it."""
        if category in self.selected_categories:
            return self.with_categories(self.selected_categories - {category})
        return self.with_categories(self.selected_categories | {category})


class FilterCriteriaModel(BaseModel):
    """Pydantic model for criteria coming from dict/JSON input."""

    start_date: Optional[datetime] = Field(None, description="First day included")
    end_date: Optional[datetime] = Field(None, description="Last day included")
    min_amount: Optional[str] = Field(None, description="Minimum amount as entered")
    max_amount: Optional[str] = Field(None, description="Maximum amount as entered")
    selected_type: TransactionType = Field(TransactionType.ALL, description="Transaction type filter")
    cheques_only: bool = Field(False, description="Only cheque transactions")
    selected_categories: FrozenSet[str] = Field(default_factory=frozenset, description="Category filter")
    search_text: str = Field("", description="Search query")
    semantic_enabled: bool = Field(True, description="Use semantic ranking")

    @field_validator('min_amount', 'max_amount', mode='before')
    @classmethod
    def stringify_amount(cls, v):
        """Keep amounts as entered; parsing happens when filtering."""
        if v is None:
            return None
        return str(v)

    def to_criteria(self) -> FilterCriteria:
        """Convert to FilterCriteria dataclass."""
        return FilterCriteria(
            start_date=self.start_date,
            end_date=self.end_date,
            min_amount=self.min_amount,
            max_amount=self.max_amount,
            selected_type=self.selected_type,
            cheques_only=self.cheques_only,
            selected_categories=self.selected_categories,
            search_text=self.search_text,
            semantic_enabled=self.semantic_enabled
        )
