"""Strategy configuration models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class StrategyWeights(BaseModel):
    model_config = ConfigDict(frozen=True)

    coverage: float
    excess: float
    role_count: float


class StrategyConfig(BaseModel):
    """A fixed point on the coverage/excess trade-off curve."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    weights: StrategyWeights
    threshold: float
