"""
Staged RAG pipeline simulation.

Runs one user turn through embed -> search -> rank -> prompt -> generate,
advancing each stage through its status lifecycle and recording the turn's
tokens and costs in the session ledger.

Execution model:
1. Stages run strictly in order; each stage's outputs are final before the
   next stage starts
2. Simulated latency is applied through an injectable sleep callable, so
   tests can run the whole pipeline with zero delay
3. At most one run per session is in flight; there is no cancellation
4. The ledger is only touched once, after the last stage completes
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple, Union

from rag_cost_sim.config.loader import SimulationConfig
from rag_cost_sim.config.logging_config import get_logger
from rag_cost_sim.storage.ledger import SessionLedger
from rag_cost_sim.storage.models import LedgerEntry, Message, MessageRole, SessionTotals

from .corpus import DEFAULT_CORPUS, CorpusIndex, Record
from .cost import CostBreakdown, calculate_cost, calculate_embedding_cost
from .errors import PipelineBusy, StageFailed
from .pricing import (
    PRICING_TABLE,
    EmbeddingModel,
    GenerativeModel,
    PricingTable,
    resolve_embedding_model,
    resolve_generative_model,
)
from .responses import build_context, build_prompt, select_response
from .stages import (
    EmbedStage,
    GenerateStage,
    PromptStage,
    RankStage,
    SearchStage,
    Stage,
    StageId,
    StageStatus,
    build_stages,
)
from .token_counter import estimate_tokens

logger = get_logger(__name__)

TransitionCallback = Callable[[Stage, StageStatus, StageStatus], None]

SIMULATED_DB_TYPE = "Vector DB (simulated)"
RE_RANKER = "Semantic"


@dataclass
class SessionSettings:
    """User-selected options read at the start of each turn."""
    model: Union[GenerativeModel, str]
    embedding_model: Union[EmbeddingModel, str]
    include_embedding: bool = True


@dataclass
class SessionContext:
    """All state of one chat session, owned by the caller and passed explicitly."""
    settings: SessionSettings
    ledger: SessionLedger = field(default_factory=SessionLedger)
    messages: List[Message] = field(default_factory=list)
    stages: List[Stage] = field(default_factory=list)
    matched_records: List[Record] = field(default_factory=list)
    rag_prompt: str = ""
    busy: bool = False

    def totals(self) -> SessionTotals:
        return self.ledger.totals()

    @property
    def history(self) -> Tuple[LedgerEntry, ...]:
        return self.ledger.history


@dataclass(frozen=True)
class TurnResult:
    """Outcome of one completed turn."""
    user_message: Message
    assistant_message: Message
    entry: LedgerEntry
    stages: Tuple[Stage, ...]
    matched_records: Tuple[Record, ...]
    prompt: str


@dataclass
class _RunState:
    """Values handed from one stage to the next within a run."""
    query: str
    query_tokens: int
    model: GenerativeModel
    embedding_model: EmbeddingModel
    input_tokens: int
    embedding_tokens: Optional[int] = None
    matches: List[Record] = field(default_factory=list)
    response: str = ""
    output_tokens: int = 0
    breakdown: Optional[CostBreakdown] = None


class PipelineStageMachine:
    """Drives simulated RAG turns against a SessionContext."""

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        corpus: CorpusIndex = DEFAULT_CORPUS,
        pricing_table: PricingTable = PRICING_TABLE,
        sleep: Callable[[float], None] = time.sleep,
        on_transition: Optional[TransitionCallback] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config or SimulationConfig()
        self.corpus = corpus
        self.pricing_table = pricing_table
        self._sleep = sleep
        self._on_transition = on_transition
        self._clock = clock
        self._handlers: Dict[StageId, Callable[[Stage, _RunState, SessionContext], None]] = {
            StageId.EMBED: self._embed,
            StageId.SEARCH: self._search,
            StageId.RANK: self._rank,
            StageId.PROMPT: self._prompt,
            StageId.GENERATE: self._generate,
        }

    def new_session(self) -> SessionContext:
        """Create a session using the configured default models."""
        models = self.config.models
        return SessionContext(
            settings=SessionSettings(
                model=models.generative,
                embedding_model=models.embedding,
                include_embedding=models.include_embedding,
            )
        )

    def submit(self, session: SessionContext, text: str) -> Optional[TurnResult]:
        """Run one user turn.

        Args:
            session: Session to read settings from and record results into
            text: Raw user message

        Returns:
            TurnResult, or None when the message is blank (no turn started)

        Raises:
            PipelineBusy: If a run is already in flight for the session
            UnknownModel: If a selected model is not in the pricing catalog
            StageFailed: If a stage raised; earlier stages keep their results
        """
        if not text or not text.strip():
            return None
        if session.busy:
            raise PipelineBusy("A pipeline run is already in progress")

        # Resolve everything that can fail before touching the session
        settings = session.settings
        model = resolve_generative_model(settings.model)
        embedding_model = resolve_embedding_model(settings.embedding_model)
        self.pricing_table.get_pricing(model)
        self.pricing_table.get_embedding_pricing(embedding_model)

        query_tokens = estimate_tokens(text)
        user_cost = calculate_cost(query_tokens, 0, model, pricing_table=self.pricing_table)
        user_message = Message(
            role=MessageRole.USER,
            content=text,
            tokens=query_tokens,
            cost=user_cost.input_cost,
        )

        session.busy = True
        try:
            session.messages.append(user_message)
            session.stages = build_stages(settings.include_embedding)
            session.matched_records = []
            session.rag_prompt = ""

            run = _RunState(
                query=text,
                query_tokens=query_tokens,
                model=model,
                embedding_model=embedding_model,
                input_tokens=query_tokens,
            )
            for stage in session.stages:
                self._run_stage(stage, run, session)

            return self._finish(session, run, user_message)
        finally:
            session.busy = False

    def _run_stage(self, stage: Stage, run: _RunState, session: SessionContext) -> None:
        self._advance(stage, stage.start)
        try:
            self._handlers[stage.stage_id](stage, run, session)
            self._sleep(self.config.delays.for_stage(stage.stage_id))
        except Exception as exc:
            logger.exception("Stage '%s' failed", stage.stage_id.value)
            try:
                self._advance(stage, lambda: stage.fail(str(exc)))
            except Exception:
                # The stage error is what the caller needs to see
                logger.exception("Transition callback failed for stage '%s'", stage.stage_id.value)
            raise StageFailed(
                f"Stage '{stage.stage_id.value}' failed: {exc}", stage.stage_id.value
            ) from exc
        self._advance(stage, stage.complete)

    def _advance(self, stage: Stage, transition: Callable[[], StageStatus]) -> None:
        previous = transition()
        logger.debug(
            "Stage '%s': %s -> %s", stage.stage_id.value, previous.value, stage.status.value
        )
        if self._on_transition is not None:
            self._on_transition(stage, previous, stage.status)

    def _embed(self, stage: EmbedStage, run: _RunState, session: SessionContext) -> None:
        pricing = self.pricing_table.get_embedding_pricing(run.embedding_model)
        stage.model = run.embedding_model.value
        stage.dimensions = pricing.dimensions
        stage.tokens = run.query_tokens
        stage.cost = calculate_embedding_cost(
            run.query_tokens, run.embedding_model, self.pricing_table
        )
        run.embedding_tokens = run.query_tokens

    def _search(self, stage: SearchStage, run: _RunState, session: SessionContext) -> None:
        retrieval = self.config.retrieval
        stage.db_type = SIMULATED_DB_TYPE
        stage.namespace = retrieval.namespace
        stage.total_items = len(self.corpus)
        stage.top_k = retrieval.top_k
        stage.include_metadata = True
        run.matches = self.corpus.search(run.query, top_k=retrieval.top_k)

    def _rank(self, stage: RankStage, run: _RunState, session: SessionContext) -> None:
        # Search already applied the threshold and ordering; rank publishes it
        stage.score_threshold = self.corpus.threshold
        stage.re_ranker = RE_RANKER
        stage.results_found = len(run.matches)
        session.matched_records = list(run.matches)

    def _prompt(self, stage: PromptStage, run: _RunState, session: SessionContext) -> None:
        context = build_context(run.matches)
        prompt = build_prompt(run.query, context)
        stage.tokens = estimate_tokens(prompt)
        stage.context_size = len(context)
        stage.record_count = len(run.matches)
        session.rag_prompt = prompt
        run.input_tokens = stage.tokens

    def _generate(self, stage: GenerateStage, run: _RunState, session: SessionContext) -> None:
        generation = self.config.generation
        stage.model = run.model.value
        stage.temperature = generation.temperature
        stage.max_tokens = generation.max_tokens

        run.response = select_response(run.query)
        run.output_tokens = estimate_tokens(run.response)
        include_embedding = run.embedding_tokens is not None
        run.breakdown = calculate_cost(
            run.input_tokens,
            run.output_tokens,
            run.model,
            embedding_tokens=run.embedding_tokens or 0,
            embedding_model=run.embedding_model,
            include_embedding=include_embedding,
            pricing_table=self.pricing_table,
        )
        stage.tokens = run.output_tokens
        stage.cost = run.breakdown.output_cost

    def _finish(self, session: SessionContext, run: _RunState, user_message: Message) -> TurnResult:
        breakdown = run.breakdown
        include_embedding = run.embedding_tokens is not None
        entry = LedgerEntry(
            timestamp=self._clock(),
            input_tokens=run.input_tokens,
            output_tokens=run.output_tokens,
            embedding_tokens=run.embedding_tokens,
            input_cost=breakdown.input_cost,
            output_cost=breakdown.output_cost,
            embedding_cost=breakdown.embedding_cost,
            total_cost=breakdown.total_cost,
        )
        assistant_message = Message(
            role=MessageRole.ASSISTANT,
            content=run.response,
            tokens=run.output_tokens,
            cost=breakdown.output_cost,
            embedding_cost=breakdown.embedding_cost if include_embedding else None,
        )

        totals = session.ledger.record(entry)
        session.messages.append(assistant_message)
        logger.info(
            "Turn %d complete with %s: %d input, %d output tokens, $%s",
            totals.turns, run.model.value, entry.input_tokens, entry.output_tokens, entry.total_cost,
        )

        return TurnResult(
            user_message=user_message,
            assistant_message=assistant_message,
            entry=entry,
            stages=tuple(session.stages),
            matched_records=tuple(session.matched_records),
            prompt=session.rag_prompt,
        )
