"""Strategy catalog.

Three fixed weight/threshold configurations steering the search toward
more coverage, less excess, or a balance. Not user-tunable.
"""

from __future__ import annotations

from ..models.strategy import StrategyConfig, StrategyWeights

MAX_COVERAGE = StrategyConfig(
    name="Max Coverage",
    description="Prioritizes covering all permissions, even if it means granting some excess access.",
    weights=StrategyWeights(coverage=10.0, excess=0.05, role_count=2.0),
    threshold=-100,
)

MINIMIZE_EXCESS = StrategyConfig(
    name="Minimize Excess",
    description="Strictly avoids excess permissions. May leave gaps if no clean role exists.",
    weights=StrategyWeights(coverage=2.0, excess=5.0, role_count=1.0),
    threshold=0.1,
)

BALANCED = StrategyConfig(
    name="Balanced",
    description="A middle ground that seeks coverage while avoiding large security risks.",
    weights=StrategyWeights(coverage=5.0, excess=1.0, role_count=1.5),
    threshold=0,
)

STRATEGIES: tuple[StrategyConfig, ...] = (MAX_COVERAGE, MINIMIZE_EXCESS, BALANCED)

STRATEGY_NAMES = [s.name for s in STRATEGIES]


def get_strategy(name: str) -> StrategyConfig:
    """Look up a strategy by name, case-insensitively."""
    wanted = name.strip().lower()
    for strategy in STRATEGIES:
        if strategy.name.lower() == wanted:
            return strategy
    raise KeyError(f"Unknown strategy: {name}")
