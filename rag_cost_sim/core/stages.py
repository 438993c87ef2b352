"""
Pipeline stage records and their status lifecycle.

Each stage kind is its own dataclass carrying only the detail fields it
produces. Status only moves forward: waiting -> processing -> completed,
or processing -> error.
"""

from dataclasses import dataclass, fields
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional

from .errors import InvalidStageTransition


class StageId(Enum):
    """Pipeline stages in execution order."""
    EMBED = "embed"
    SEARCH = "search"
    RANK = "rank"
    PROMPT = "prompt"
    GENERATE = "generate"


class StageStatus(Enum):
    """Lifecycle status of a stage within one run."""
    WAITING = "waiting"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


_ALLOWED_TRANSITIONS = {
    StageStatus.WAITING: {StageStatus.PROCESSING},
    StageStatus.PROCESSING: {StageStatus.COMPLETED, StageStatus.ERROR},
    StageStatus.COMPLETED: set(),
    StageStatus.ERROR: set(),
}


@dataclass
class Stage:
    """Base stage record shared by every stage kind."""
    stage_id: ClassVar[StageId]
    title: ClassVar[str]
    description: ClassVar[str]

    status: StageStatus = StageStatus.WAITING
    tokens: Optional[int] = None
    cost: Optional[Decimal] = None
    error: Optional[str] = None

    def start(self) -> StageStatus:
        return self._transition(StageStatus.PROCESSING)

    def complete(self) -> StageStatus:
        return self._transition(StageStatus.COMPLETED)

    def fail(self, message: str) -> StageStatus:
        previous = self._transition(StageStatus.ERROR)
        self.error = message
        return previous

    def _transition(self, new_status: StageStatus) -> StageStatus:
        """Move to new_status and return the previous status.

        Raises:
            InvalidStageTransition: If the move would regress or skip a step
        """
        if new_status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidStageTransition(
                f"Stage '{self.stage_id.value}' cannot move from "
                f"{self.status.value} to {new_status.value}"
            )
        previous = self.status
        self.status = new_status
        return previous

    @property
    def details(self) -> Dict[str, Any]:
        """Stage-specific detail fields that have been filled in."""
        base = {f.name for f in fields(Stage)}
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in base and getattr(self, f.name) is not None
        }


@dataclass
class EmbedStage(Stage):
    stage_id: ClassVar[StageId] = StageId.EMBED
    title: ClassVar[str] = "Embedding Query"
    description: ClassVar[str] = "Converting query text into vector embeddings"

    model: Optional[str] = None
    dimensions: Optional[int] = None


@dataclass
class SearchStage(Stage):
    stage_id: ClassVar[StageId] = StageId.SEARCH
    title: ClassVar[str] = "Vector Database Search"
    description: ClassVar[str] = "Searching for relevant property matches"

    db_type: Optional[str] = None
    namespace: Optional[str] = None
    total_items: Optional[int] = None
    top_k: Optional[int] = None
    include_metadata: Optional[bool] = None


@dataclass
class RankStage(Stage):
    stage_id: ClassVar[StageId] = StageId.RANK
    title: ClassVar[str] = "Ranking Results"
    description: ClassVar[str] = "Sorting results by relevance score"

    score_threshold: Optional[float] = None
    re_ranker: Optional[str] = None
    results_found: Optional[int] = None


@dataclass
class PromptStage(Stage):
    stage_id: ClassVar[StageId] = StageId.PROMPT
    title: ClassVar[str] = "Building RAG Prompt"
    description: ClassVar[str] = "Combining query with retrieved context"

    context_size: Optional[int] = None
    record_count: Optional[int] = None


@dataclass
class GenerateStage(Stage):
    stage_id: ClassVar[StageId] = StageId.GENERATE
    title: ClassVar[str] = "Generating Response"
    description: ClassVar[str] = "Using LLM to create final answer"

    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


RETRIEVAL_STAGES = (EmbedStage, SearchStage, RankStage, PromptStage, GenerateStage)


def build_stages(include_retrieval: bool = True) -> List[Stage]:
    """Create a fresh, all-waiting stage list for one run.

    Without retrieval only the generate stage runs.
    """
    if include_retrieval:
        return [stage_cls() for stage_cls in RETRIEVAL_STAGES]
    return [GenerateStage()]
