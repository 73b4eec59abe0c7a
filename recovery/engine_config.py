"""
Engine Configuration
====================

Immutable run configuration for the recovery engine plus the seed range it
searches. Setters never mutate a config; they build a new validated one.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

import prng_registry
from recovery.errors import ConfigurationError

DEFAULT_DEPTH = 1000
DEFAULT_MIN_CONFIDENCE = 100.0
DEFAULT_BATCH_SIZE = 4096


def _host_parallelism() -> int:
    return os.cpu_count() or 1


class EngineConfig(BaseModel):
    """Validated settings for one recovery session."""

    model_config = ConfigDict(frozen=True, extra='forbid')

    depth: int = Field(DEFAULT_DEPTH, ge=1, description="Outputs generated per candidate seed")
    threads: int = Field(default_factory=_host_parallelism, ge=1, description="Worker threads")
    min_confidence: float = Field(DEFAULT_MIN_CONFIDENCE, gt=0.0, le=100.0,
                                  description="Lowest confidence percentage reported")
    prng: str = Field(default_factory=prng_registry.default_prng)
    batch_size: int = Field(DEFAULT_BATCH_SIZE, ge=1, description="Seeds per batch kernel call")

    @field_validator('prng')
    @classmethod
    def _known_prng(cls, value: str) -> str:
        if not prng_registry.is_supported(value):
            raise ValueError(f"PRNG '{value}' is not supported, choose from {prng_registry.list_available_prngs()}")
        return value

    @classmethod
    def build(cls, **values: Any) -> "EngineConfig":
        """Construct a config, reporting validation failures as ConfigurationError."""
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(_describe(e)) from e

    def replace(self, **changes: Any) -> "EngineConfig":
        return EngineConfig.build(**{**self.model_dump(), **changes})

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "EngineConfig":
        with open(path) as f:
            values = json.load(f)
        if not isinstance(values, dict):
            raise ConfigurationError(f"{path}: expected a JSON object of settings")
        return cls.build(**values)


def _describe(error: ValidationError) -> str:
    parts = []
    for issue in error.errors():
        field = '.'.join(str(p) for p in issue['loc']) or 'config'
        parts.append(f"{field}: {issue['msg']}")
    return '; '.join(parts)


class SearchRange(BaseModel):
    """Half-open seed interval [lower, upper), upper capped at 2**32."""

    model_config = ConfigDict(frozen=True)

    lower: int = Field(0, ge=0)
    upper: int = Field(prng_registry.SEED_SPACE_END, ge=0)

    @field_validator('upper')
    @classmethod
    def _cap_upper(cls, value: int) -> int:
        return min(value, prng_registry.SEED_SPACE_END)

    @classmethod
    def build(cls, lower: int, upper: int) -> "SearchRange":
        try:
            return cls(lower=lower, upper=upper)
        except ValidationError as e:
            raise ConfigurationError(_describe(e)) from e

    def __len__(self) -> int:
        return max(0, self.upper - self.lower)

    @property
    def is_empty(self) -> bool:
        return self.upper <= self.lower

    def partition(self, parts: int) -> List[Tuple[int, int]]:
        """
        Split into `parts` contiguous sub-ranges covering the range exactly once.

        Sub-ranges have size len // parts; the last one absorbs the remainder.
        An empty range yields no sub-ranges.
        """
        if parts < 1:
            raise ConfigurationError(f"Cannot partition into {parts} parts")
        if self.is_empty:
            return []
        chunk = len(self) // parts
        bounds = []
        start = self.lower
        for i in range(parts):
            end = self.upper if i == parts - 1 else start + chunk
            bounds.append((start, end))
            start = end
        assert bounds[0][0] == self.lower and bounds[-1][1] == self.upper
        return bounds

    def to_dict(self) -> Dict[str, int]:
        return {'lower': self.lower, 'upper': self.upper}
