"""
Pricing catalog for generative and embedding models.

Rates are static configuration, expressed in USD per 1M tokens.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Union

from .errors import UnknownModel


class GenerativeModel(Enum):
    """Supported generative (chat) models."""
    GPT_4_1106 = "gpt-4-1106"
    GPT_4O = "gpt-4o"
    GPT_4O_MINI = "gpt-4o-mini"
    GPT_35_TURBO = "gpt-3.5-turbo"
    O1_MINI = "o1-mini"
    O1 = "o1"
    CLAUDE_35_SONNET = "claude-3.5-sonnet"
    CLAUDE_37_SONNET = "claude-3.7-sonnet"


class EmbeddingModel(Enum):
    """Supported embedding models."""
    TEXT_EMBEDDING_3_SMALL = "text-embedding-3-small"
    TEXT_EMBEDDING_3_LARGE = "text-embedding-3-large"
    TEXT_EMBEDDING_ADA_002 = "text-embedding-ada-002"


DEFAULT_GENERATIVE_MODEL = GenerativeModel.GPT_4O
DEFAULT_EMBEDDING_MODEL = EmbeddingModel.TEXT_EMBEDDING_3_SMALL

TOKENS_PER_MILLION = Decimal("1000000")


@dataclass(frozen=True)
class ModelPricing:
    """Per-token pricing for a generative model."""
    input_cost_per_1m: Decimal  # Cost per 1M input (prompt) tokens
    output_cost_per_1m: Decimal  # Cost per 1M output (completion) tokens


@dataclass(frozen=True)
class EmbeddingPricing:
    """Per-token pricing for an embedding model."""
    cost_per_1m: Decimal
    dimensions: int


def resolve_generative_model(model: Union[GenerativeModel, str]) -> GenerativeModel:
    """Map a model id to its enum member.

    Raises:
        UnknownModel: If the id is not a registered generative model
    """
    if isinstance(model, GenerativeModel):
        return model
    try:
        return GenerativeModel(model)
    except ValueError:
        raise UnknownModel(str(model)) from None


def resolve_embedding_model(model: Union[EmbeddingModel, str]) -> EmbeddingModel:
    """Map an embedding model id to its enum member.

    Raises:
        UnknownModel: If the id is not a registered embedding model
    """
    if isinstance(model, EmbeddingModel):
        return model
    try:
        return EmbeddingModel(model)
    except ValueError:
        raise UnknownModel(str(model)) from None


@dataclass(frozen=True)
class PricingTable:
    """Fixed pricing table for supported models."""
    prices: Dict[GenerativeModel, ModelPricing]
    embedding_prices: Dict[EmbeddingModel, EmbeddingPricing]

    def get_pricing(self, model: Union[GenerativeModel, str]) -> ModelPricing:
        """Get pricing for a generative model.

        Args:
            model: Model enum member or identifier

        Returns:
            ModelPricing for the model

        Raises:
            UnknownModel: If model is not supported
        """
        key = resolve_generative_model(model)
        if key not in self.prices:
            raise UnknownModel(key.value)
        return self.prices[key]

    def get_embedding_pricing(self, model: Union[EmbeddingModel, str]) -> EmbeddingPricing:
        """Get pricing for an embedding model.

        Raises:
            UnknownModel: If model is not supported
        """
        key = resolve_embedding_model(model)
        if key not in self.embedding_prices:
            raise UnknownModel(key.value)
        return self.embedding_prices[key]


# Fixed pricing table - no dynamic fetching
PRICING_TABLE = PricingTable(
    prices={
        GenerativeModel.GPT_4_1106: ModelPricing(Decimal("10.00"), Decimal("30.00")),
        GenerativeModel.GPT_4O: ModelPricing(Decimal("5.00"), Decimal("15.00")),
        GenerativeModel.GPT_4O_MINI: ModelPricing(Decimal("0.15"), Decimal("0.60")),
        GenerativeModel.GPT_35_TURBO: ModelPricing(Decimal("0.50"), Decimal("1.50")),
        GenerativeModel.O1_MINI: ModelPricing(Decimal("1.10"), Decimal("4.40")),
        GenerativeModel.O1: ModelPricing(Decimal("15.00"), Decimal("60.00")),
        GenerativeModel.CLAUDE_35_SONNET: ModelPricing(Decimal("3.00"), Decimal("15.00")),
        GenerativeModel.CLAUDE_37_SONNET: ModelPricing(Decimal("3.50"), Decimal("18.00")),
    },
    embedding_prices={
        EmbeddingModel.TEXT_EMBEDDING_3_SMALL: EmbeddingPricing(Decimal("0.02"), dimensions=1536),
        EmbeddingModel.TEXT_EMBEDDING_3_LARGE: EmbeddingPricing(Decimal("0.13"), dimensions=3072),
        EmbeddingModel.TEXT_EMBEDDING_ADA_002: EmbeddingPricing(Decimal("0.10"), dimensions=1536),
    },
)
