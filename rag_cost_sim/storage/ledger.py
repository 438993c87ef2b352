"""
Append-only session ledger.

Keeps the ordered turn history and incrementally maintained totals.
"""

from functools import reduce
from typing import List, Tuple

from rag_cost_sim.config.logging_config import get_logger

from .models import LedgerEntry, SessionTotals

logger = get_logger(__name__)


class SessionLedger:
    """In-memory ledger of completed turns for one session.

    Entries are never modified or removed. Totals are updated by addition
    on each record and always equal a fold over the history.
    """

    def __init__(self):
        self._history: List[LedgerEntry] = []
        self._totals = SessionTotals()

    def record(self, entry: LedgerEntry) -> SessionTotals:
        """Append an entry and update the running totals.

        The new totals are computed before anything is stored, so a failure
        leaves both history and totals unchanged.

        Args:
            entry: Completed turn to record

        Returns:
            Totals after the entry was added
        """
        if not isinstance(entry, LedgerEntry):
            raise TypeError(f"expected LedgerEntry, got {type(entry).__name__}")
        new_totals = self._totals.add(entry)
        self._history.append(entry)
        self._totals = new_totals
        logger.debug(
            "Recorded turn %d: %d in / %d out tokens, total $%s",
            new_totals.turns, entry.input_tokens, entry.output_tokens, entry.total_cost,
        )
        return new_totals

    def totals(self) -> SessionTotals:
        return self._totals

    @property
    def history(self) -> Tuple[LedgerEntry, ...]:
        return tuple(self._history)

    def fold(self) -> SessionTotals:
        """Recompute totals from scratch over the history."""
        return reduce(lambda totals, entry: totals.add(entry), self._history, SessionTotals())

    def __len__(self) -> int:
        return len(self._history)
