"""
Cost calculations for generative and embedding model usage.

Combines token counts with pricing catalog rates into cost breakdowns.
All amounts are Decimal USD without rounding, so component costs always
sum exactly to the total.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Union

from .errors import InvalidArgument
from .pricing import (
    PRICING_TABLE,
    TOKENS_PER_MILLION,
    EmbeddingModel,
    GenerativeModel,
    PricingTable,
    resolve_embedding_model,
)
from .token_counter import TokenUsage, validate_token_count

ZERO = Decimal("0")


@dataclass(frozen=True)
class CostBreakdown:
    """Cost of one request split by billing component."""
    input_cost: Decimal
    output_cost: Decimal
    embedding_cost: Decimal
    total_cost: Decimal


def calculate_embedding_cost(
    tokens: int,
    embedding_model: Union[EmbeddingModel, str],
    pricing_table: PricingTable = PRICING_TABLE,
) -> Decimal:
    """Cost of embedding the given number of tokens.

    Raises:
        UnknownModel: If the embedding model is not supported
        InvalidArgument: If tokens is negative or non-finite
    """
    tokens = validate_token_count(tokens, "embedding_tokens")
    pricing = pricing_table.get_embedding_pricing(embedding_model)
    return Decimal(tokens) / TOKENS_PER_MILLION * pricing.cost_per_1m


def calculate_cost(
    input_tokens: int,
    output_tokens: int,
    model: Union[GenerativeModel, str],
    embedding_tokens: int = 0,
    embedding_model: Optional[Union[EmbeddingModel, str]] = None,
    include_embedding: bool = False,
    pricing_table: PricingTable = PRICING_TABLE,
) -> CostBreakdown:
    """Calculate the cost breakdown for a request.

    Args:
        input_tokens: Tokens billed at the model's input rate
        output_tokens: Tokens billed at the model's output rate
        model: Generative model identifier
        embedding_tokens: Tokens billed at the embedding rate
        embedding_model: Embedding model identifier (required with include_embedding)
        include_embedding: Whether the embedding component is billed
        pricing_table: Catalog to price against

    Returns:
        CostBreakdown whose total is the exact sum of its components

    Raises:
        UnknownModel: If a model is not supported
        InvalidArgument: If a token count is negative or non-finite
    """
    usage = TokenUsage(
        prompt_tokens=input_tokens,
        completion_tokens=output_tokens,
        embedding_tokens=embedding_tokens,
    )
    return calculate_usage_cost(
        usage,
        model,
        embedding_model=embedding_model,
        include_embedding=include_embedding,
        pricing_table=pricing_table,
    )


def calculate_usage_cost(
    usage: TokenUsage,
    model: Union[GenerativeModel, str],
    embedding_model: Optional[Union[EmbeddingModel, str]] = None,
    include_embedding: bool = False,
    pricing_table: PricingTable = PRICING_TABLE,
) -> CostBreakdown:
    """Calculate the cost breakdown for a validated TokenUsage."""
    pricing = pricing_table.get_pricing(model)

    input_cost = Decimal(usage.prompt_tokens) / TOKENS_PER_MILLION * pricing.input_cost_per_1m
    output_cost = Decimal(usage.completion_tokens) / TOKENS_PER_MILLION * pricing.output_cost_per_1m

    embedding_cost = ZERO
    if include_embedding:
        if embedding_model is None:
            raise InvalidArgument("embedding_model is required when include_embedding is set")
        embedding_cost = calculate_embedding_cost(usage.embedding_tokens, embedding_model, pricing_table)

    return CostBreakdown(
        input_cost=input_cost,
        output_cost=output_cost,
        embedding_cost=embedding_cost,
        total_cost=input_cost + output_cost + embedding_cost,
    )


def compare_model_costs(
    input_tokens: int,
    output_tokens: int,
    pricing_table: PricingTable = PRICING_TABLE,
) -> Dict[GenerativeModel, CostBreakdown]:
    """Cost of the same request priced against every generative model."""
    return {
        model: calculate_cost(input_tokens, output_tokens, model, pricing_table=pricing_table)
        for model in pricing_table.prices
    }


class EmbeddingScenario(Enum):
    """What is being embedded in a bulk estimate."""
    PROPERTY = "property"  # Listing database, embedded once
    QUERY = "query"  # User search queries, embedded per request


@dataclass(frozen=True)
class BulkEmbeddingEstimate:
    """Estimated cost of embedding many items of similar size."""
    scenario: EmbeddingScenario
    embedding_model: EmbeddingModel
    tokens_per_item: int
    item_count: int
    total_tokens: int
    million_tokens: Decimal
    cost: Decimal


def estimate_bulk_embedding_cost(
    tokens_per_item: int = 180,
    item_count: int = 4000,
    embedding_model: Union[EmbeddingModel, str] = EmbeddingModel.TEXT_EMBEDDING_3_SMALL,
    scenario: EmbeddingScenario = EmbeddingScenario.PROPERTY,
    pricing_table: PricingTable = PRICING_TABLE,
) -> BulkEmbeddingEstimate:
    """Estimate the cost of embedding a database or a stream of queries.

    Both scenarios use the same arithmetic; the scenario only labels the result.

    Raises:
        InvalidArgument: If either count is below 1
        UnknownModel: If the embedding model is not supported
    """
    tokens_per_item = validate_token_count(tokens_per_item, "tokens_per_item")
    item_count = validate_token_count(item_count, "item_count")
    if tokens_per_item < 1:
        raise InvalidArgument("tokens_per_item must be >= 1")
    if item_count < 1:
        raise InvalidArgument("item_count must be >= 1")

    pricing = pricing_table.get_embedding_pricing(embedding_model)
    total_tokens = tokens_per_item * item_count
    million_tokens = Decimal(total_tokens) / TOKENS_PER_MILLION

    return BulkEmbeddingEstimate(
        scenario=scenario,
        embedding_model=resolve_embedding_model(embedding_model),
        tokens_per_item=tokens_per_item,
        item_count=item_count,
        total_tokens=total_tokens,
        million_tokens=million_tokens,
        cost=million_tokens * pricing.cost_per_1m,
    )
