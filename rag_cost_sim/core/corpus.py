"""
Simulated retrieval corpus.

A static set of rental listings with precomputed similarity scores, queried
by the pipeline's search and rank stages. No vectors are computed.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .errors import InvalidArgument

RELEVANCE_THRESHOLD = 0.5


@dataclass(frozen=True)
class Record:
    """A candidate retrieval item."""
    id: str
    type: str
    bedrooms: int
    bathrooms: int
    address: str
    price: int  # Weekly rent
    features: Tuple[str, ...]
    description: str
    similarity: float

    def __post_init__(self):
        """Validate similarity is within [0, 1]."""
        if not 0.0 <= self.similarity <= 1.0:
            raise ValueError(f"similarity for {self.id} must be between 0 and 1")


class CorpusIndex:
    """Immutable in-memory index over a fixed list of records."""

    def __init__(self, records: Iterable[Record], threshold: float = RELEVANCE_THRESHOLD):
        self._records: Tuple[Record, ...] = tuple(records)
        self.threshold = threshold

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> Tuple[Record, ...]:
        return self._records

    def search(self, query: str, top_k: Optional[int] = None) -> List[Record]:
        """Return records above the relevance threshold, best first.

        Scores are precomputed, so the query does not change the ranking.
        Equal scores keep registration order.

        Args:
            query: User query text
            top_k: Optional cap on the number of results

        Returns:
            Records with similarity > threshold sorted by descending similarity
        """
        if top_k is not None and top_k < 0:
            raise InvalidArgument("top_k cannot be negative")
        matches = [r for r in self._records if r.similarity > self.threshold]
        matches.sort(key=lambda r: r.similarity, reverse=True)
        if top_k is not None:
            matches = matches[:top_k]
        return matches


DEFAULT_CORPUS = CorpusIndex([
    Record(
        id="prop1",
        type="Apartment",
        bedrooms=2,
        bathrooms=1,
        address="42 Beach Rd, St Kilda",
        price=450,
        features=("near beach", "pool", "parking"),
        description=(
            "Cozy 2-bedroom apartment just steps from St Kilda beach. Features include "
            "a swimming pool, secure parking, and modern appliances."
        ),
        similarity=0.92,
    ),
    Record(
        id="prop2",
        type="Apartment",
        bedrooms=2,
        bathrooms=2,
        address="15 Acland St, St Kilda",
        price=520,
        features=("renovated", "near beach", "balcony"),
        description=(
            "Newly renovated 2-bedroom apartment with large balcony offering partial ocean "
            "views. Walking distance to shops and cafes on Acland Street."
        ),
        similarity=0.87,
    ),
    Record(
        id="prop3",
        type="Apartment",
        bedrooms=1,
        bathrooms=1,
        address="78 Carlisle St, St Kilda",
        price=380,
        features=("gym", "parking", "public transport"),
        description=(
            "Modern 1-bedroom apartment with access to building gym. Close to trams and "
            "trains for easy commute to CBD."
        ),
        similarity=0.68,
    ),
    Record(
        id="prop4",
        type="House",
        bedrooms=3,
        bathrooms=2,
        address="22 Tennyson St, Elwood",
        price=750,
        features=("backyard", "near beach", "renovated kitchen"),
        description=(
            "Charming 3-bedroom house with backyard, perfect for entertaining. Recently "
            "renovated kitchen and bathrooms. Short walk to Elwood beach."
        ),
        similarity=0.55,
    ),
])
