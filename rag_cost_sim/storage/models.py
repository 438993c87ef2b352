"""
Data models for the session storage layer.

Defines transcript messages, ledger entries, and running totals.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from rag_cost_sim.core.errors import InvalidArgument

ZERO = Decimal("0")


class MessageRole(Enum):
    """Author of a transcript message."""
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """Immutable transcript message with its token and cost estimate."""
    role: MessageRole
    content: str
    tokens: int
    cost: Decimal
    embedding_cost: Optional[Decimal] = None


@dataclass(frozen=True)
class LedgerEntry:
    """Immutable record of one completed turn.

    Append-only entries form the session's cost history.
    """
    timestamp: datetime
    input_tokens: int
    output_tokens: int
    input_cost: Decimal
    output_cost: Decimal
    total_cost: Decimal
    embedding_tokens: Optional[int] = None
    embedding_cost: Optional[Decimal] = None

    def __post_init__(self):
        """Validate counts and the cost sum."""
        for name in ("input_tokens", "output_tokens"):
            if getattr(self, name) < 0:
                raise InvalidArgument(f"{name} cannot be negative")
        if self.embedding_tokens is not None and self.embedding_tokens < 0:
            raise InvalidArgument("embedding_tokens cannot be negative")
        for name in ("input_cost", "output_cost", "total_cost"):
            if getattr(self, name) < 0:
                raise InvalidArgument(f"{name} cannot be negative")
        if self.embedding_cost is not None and self.embedding_cost < 0:
            raise InvalidArgument("embedding_cost cannot be negative")
        if self.total_cost != self.input_cost + self.output_cost + (self.embedding_cost or ZERO):
            raise ValueError("total_cost must equal input_cost + output_cost + embedding_cost")


@dataclass(frozen=True)
class SessionTotals:
    """Running sums over all ledger entries of a session."""
    input_tokens: int = 0
    output_tokens: int = 0
    embedding_tokens: int = 0
    input_cost: Decimal = ZERO
    output_cost: Decimal = ZERO
    embedding_cost: Decimal = ZERO
    total_cost: Decimal = ZERO
    turns: int = 0

    @property
    def session_tokens(self) -> int:
        """All tokens billed in the session."""
        return self.input_tokens + self.output_tokens + self.embedding_tokens

    def add(self, entry: LedgerEntry) -> "SessionTotals":
        """Return new totals with the entry added."""
        return SessionTotals(
            input_tokens=self.input_tokens + entry.input_tokens,
            output_tokens=self.output_tokens + entry.output_tokens,
            embedding_tokens=self.embedding_tokens + (entry.embedding_tokens or 0),
            input_cost=self.input_cost + entry.input_cost,
            output_cost=self.output_cost + entry.output_cost,
            embedding_cost=self.embedding_cost + (entry.embedding_cost or ZERO),
            total_cost=self.total_cost + entry.total_cost,
            turns=self.turns + 1,
        )
