"""Search result data model."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence

from .transaction import Transaction


class SearchMode(str, Enum):
    """How a result set was produced."""
    FILTER = "filter"
    TEXT = "text"
    SEMANTIC = "semantic"
    SEMANTIC_FALLBACK = "semantic_fallback"
    SIMILAR = "similar"


@dataclass
class RankedTransaction:
    """
    A transaction at a position in a result list.

    Attributes:
        transaction: The matched transaction
        rank: Result position (1-based)
        score: Cosine similarity to the query, None for non-semantic results
    """
    transaction: Transaction
    rank: int
    score: Optional[float] = None

    def __post_init__(self) -> None:
        """Validate ranked transaction."""
        if self.rank <= 0:
            raise ValueError("Rank must be positive")
        if self.score is not None and not -1.0 <= self.score <= 1.0:
            raise ValueError("Score must be between -1.0 and 1.0")


@dataclass
class SearchResult:
    """
    Ordered result of a search; position is rank.

    Attributes:
        matches: Ranked transactions, best first
        mode: What produced the ordering
        query: Query text the result was computed for
    """
    matches: List[RankedTransaction] = field(default_factory=list)
    mode: SearchMode = SearchMode.FILTER
    query: str = ""

    @classmethod
    def from_transactions(
        cls,
        transactions: Sequence[Transaction],
        mode: SearchMode = SearchMode.FILTER,
        query: str = ""
    ) -> "SearchResult":
        """Wrap an unscored sequence, keeping its order."""
        matches = [
            RankedTransaction(transaction=t, rank=i)
            for i, t in enumerate(transactions, 1)
        ]
        return cls(matches=matches, mode=mode, query=query)

    @property
    def transactions(self) -> List[Transaction]:
        return [m.transaction for m in self.matches]

    @property
    def scores(self) -> List[Optional[float]]:
        return [m.score for m in self.matches]

    def __len__(self) -> int:
        return len(self.matches)

    def __iter__(self) -> Iterator[RankedTransaction]:
        return iter(self.matches)

    def __bool__(self) -> bool:
        return bool(self.matches)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "mode": self.mode.value,
            "query": self.query,
            "total": len(self.matches),
            "results": [
                {
                    "transaction": m.transaction.to_dict(),
                    "score": None if m.score is None else round(m.score, 4),
                    "rank": m.rank,
                }
                for m in self.matches
            ],
        }
