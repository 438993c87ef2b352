"""
Configuration management and loading.

Handles simulation settings: default models, stage latencies, generation
parameters, and retrieval parameters.
"""

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from rag_cost_sim.core.pricing import (
    DEFAULT_EMBEDDING_MODEL,
    DEFAULT_GENERATIVE_MODEL,
    EmbeddingModel,
    GenerativeModel,
    resolve_embedding_model,
    resolve_generative_model,
)
from rag_cost_sim.core.stages import StageId


@dataclass(frozen=True)
class ModelSettings:
    """Models selected for a session."""
    generative: GenerativeModel = DEFAULT_GENERATIVE_MODEL
    embedding: EmbeddingModel = DEFAULT_EMBEDDING_MODEL
    include_embedding: bool = True


@dataclass(frozen=True)
class StageDelays:
    """Simulated latency per stage, in seconds."""
    embed: float = 1.2
    search: float = 0.8
    rank: float = 0.6
    prompt: float = 0.7
    generate: float = 1.5

    def __post_init__(self):
        """Validate delays are finite and non-negative."""
        for stage_id in StageId:
            value = getattr(self, stage_id.value)
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise ValueError(f"delay for '{stage_id.value}' must be a number")
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"delay for '{stage_id.value}' must be >= 0")

    def for_stage(self, stage_id: StageId) -> float:
        return getattr(self, stage_id.value)

    @classmethod
    def zero(cls) -> "StageDelays":
        """Delays for running the pipeline without waiting."""
        return cls(embed=0.0, search=0.0, rank=0.0, prompt=0.0, generate=0.0)


@dataclass(frozen=True)
class GenerationSettings:
    """Parameters reported by the generate stage."""
    temperature: float = 0.7
    max_tokens: int = 800

    def __post_init__(self):
        """Validate generation parameters."""
        if not 0 <= self.temperature <= 2:
            raise ValueError("temperature must be between 0 and 2")
        if self.max_tokens <= 0:
            raise ValueError("max_tokens must be > 0")


@dataclass(frozen=True)
class RetrievalSettings:
    """Parameters reported by the search stage."""
    top_k: int = 5
    namespace: str = "properties"

    def __post_init__(self):
        """Validate retrieval parameters."""
        if self.top_k <= 0:
            raise ValueError("top_k must be > 0")
        if not self.namespace:
            raise ValueError("namespace cannot be empty")


@dataclass(frozen=True)
class SimulationConfig:
    """Complete simulation configuration."""
    models: ModelSettings = field(default_factory=ModelSettings)
    delays: StageDelays = field(default_factory=StageDelays)
    generation: GenerationSettings = field(default_factory=GenerationSettings)
    retrieval: RetrievalSettings = field(default_factory=RetrievalSettings)


def load_simulation_config(path: str) -> SimulationConfig:
    """Load and validate simulation configuration from a YAML file.

    Every section is optional; missing values fall back to defaults.
    Unknown keys are rejected so typos do not silently fall back.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated SimulationConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
        UnknownModel: If a model id is not in the pricing catalog
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Simulation config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if raw_config is None:
        return SimulationConfig()
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a mapping")

    allowed_top_keys = {'models', 'delays', 'generation', 'retrieval'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    return SimulationConfig(
        models=_parse_models(_section(raw_config, 'models')),
        delays=_parse_delays(_section(raw_config, 'delays')),
        generation=_parse_generation(_section(raw_config, 'generation')),
        retrieval=_parse_retrieval(_section(raw_config, 'retrieval')),
    )


def _section(raw_config: Dict, name: str) -> Optional[Dict]:
    data = raw_config.get(name)
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")
    return data


def _check_keys(data: Dict, allowed: set, path: str) -> None:
    unknown_keys = set(data.keys()) - allowed
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")


def _parse_models(data: Optional[Dict]) -> ModelSettings:
    if data is None:
        return ModelSettings()
    _check_keys(data, {'generative', 'embedding', 'include_embedding'}, "models")

    defaults = ModelSettings()
    include_embedding = data.get('include_embedding', defaults.include_embedding)
    if not isinstance(include_embedding, bool):
        raise ValueError("'include_embedding' in models must be true or false")

    return ModelSettings(
        generative=resolve_generative_model(data.get('generative', defaults.generative)),
        embedding=resolve_embedding_model(data.get('embedding', defaults.embedding)),
        include_embedding=include_embedding,
    )


def _parse_delays(data: Optional[Dict]) -> StageDelays:
    if data is None:
        return StageDelays()
    _check_keys(data, {stage_id.value for stage_id in StageId}, "delays")

    values: Dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"'{key}' in delays must be a number")
        values[key] = float(value)
    return StageDelays(**values)


def _parse_generation(data: Optional[Dict]) -> GenerationSettings:
    if data is None:
        return GenerationSettings()
    _check_keys(data, {'temperature', 'max_tokens'}, "generation")

    defaults = GenerationSettings()
    temperature = data.get('temperature', defaults.temperature)
    if isinstance(temperature, bool) or not isinstance(temperature, (int, float)):
        raise ValueError("'temperature' in generation must be a number")
    max_tokens = data.get('max_tokens', defaults.max_tokens)
    if isinstance(max_tokens, bool) or not isinstance(max_tokens, int):
        raise ValueError("'max_tokens' in generation must be an integer")

    return GenerationSettings(temperature=float(temperature), max_tokens=max_tokens)


def _parse_retrieval(data: Optional[Dict]) -> RetrievalSettings:
    if data is None:
        return RetrievalSettings()
    _check_keys(data, {'top_k', 'namespace'}, "retrieval")

    defaults = RetrievalSettings()
    top_k = data.get('top_k', defaults.top_k)
    if isinstance(top_k, bool) or not isinstance(top_k, int):
        raise ValueError("'top_k' in retrieval must be an integer")
    namespace = data.get('namespace', defaults.namespace)
    if not isinstance(namespace, str):
        raise ValueError("'namespace' in retrieval must be a string")

    return RetrievalSettings(top_k=top_k, namespace=namespace)
