"""Combination search engine.

Finds the combination of roles maximizing a strategy-weighted score:

    score = w.coverage * |U covered| - w.excess * |U excess| - w.role_count * (n - 1)

Coverage and excess are unions across the combination, so two roles
granting the same action are not double counted.
"""

from __future__ import annotations

import itertools
import math
from typing import Iterator, NamedTuple, Optional, Sequence

from ..models.mapping import PermissionTable
from ..models.recommendation import NO_MATCH, Recommendation, RoleBreakdown, SearchStats
from ..models.role import RoleDefinition
from ..models.strategy import StrategyConfig, StrategyWeights
from .config import EngineSettings
from .confidence import calculate_confidence
from .coverage import calculate_coverage


class Candidate(NamedTuple):
    role: RoleDefinition
    covered: frozenset[str]
    excess: frozenset[str]  # lower-cased


def find_useful_roles(
    required: Sequence[str],
    roles: Sequence[RoleDefinition],
    table: PermissionTable,
    settings: EngineSettings,
) -> list[Candidate]:
    """Roles covering at least one required action, in input order."""
    useful: list[Candidate] = []
    for role in roles:
        cov = calculate_coverage(required, role, table, settings)
        if cov.covered:
            useful.append(Candidate(
                role=role,
                covered=frozenset(cov.covered),
                excess=frozenset(a.lower() for a in cov.excess),
            ))
    return useful


def combination_size_bound(useful_count: int, settings: EngineSettings) -> tuple[int, bool]:
    """Return (max combination size, whether the bound was reduced)."""
    if useful_count > settings.large_pool_threshold:
        return settings.reduced_combination_size, True
    return settings.max_combination_size, False


def iter_combinations(n: int, max_size: int) -> Iterator[tuple[int, ...]]:
    """Every non-empty index subset of size <= max_size, smallest first, lexicographic."""
    for size in range(1, min(max_size, n) + 1):
        yield from itertools.combinations(range(n), size)


def score_combination(covered: int, excess: int, size: int, weights: StrategyWeights) -> float:
    return (
        weights.coverage * covered
        - weights.excess * excess
        - weights.role_count * (size - 1)
    )


def no_match(
    required: Sequence[str],
    strategy: StrategyConfig,
    stats: SearchStats,
) -> Recommendation:
    return Recommendation(
        strategy=strategy.name,
        role_name=NO_MATCH,
        role_names=[],
        confidence=0,
        reasoning=f'Could not find roles fitting the "{strategy.name}" criteria.',
        covered_permissions=[],
        missing_permissions=list(required),
        excess_permissions=[],
        role_breakdown=[],
        stats=stats,
    )


def build_recommendation(
    required: Sequence[str],
    selected: Sequence[RoleDefinition],
    strategy: StrategyConfig,
    table: PermissionTable,
    settings: EngineSettings,
    stats: SearchStats,
) -> Recommendation:
    """Assemble a recommendation for a chosen role combination.

    The per-role breakdown is computed against the full required set, so
    each role's excess reflects its true over-grant.
    """
    breakdown: list[RoleBreakdown] = []
    covered: set[str] = set()
    excess: dict[str, str] = {}

    for role in selected:
        cov = calculate_coverage(required, role, table, settings)
        breakdown.append(RoleBreakdown(role_name=role.role_name, covered=cov.covered, excess=cov.excess))
        covered.update(cov.covered)
        for action in cov.excess:
            excess.setdefault(action.lower(), action)

    covered_list = [a for a in required if a in covered]
    missing = [a for a in required if a not in covered]
    role_names = [r.role_name for r in selected]

    return Recommendation(
        strategy=strategy.name,
        role_name=" + ".join(role_names),
        role_names=role_names,
        confidence=calculate_confidence(len(required), len(covered_list), len(excess)),
        reasoning=strategy.description,
        score=score_combination(len(covered_list), len(excess), len(selected), strategy.weights),
        covered_permissions=covered_list,
        missing_permissions=missing,
        excess_permissions=list(excess.values()),
        role_breakdown=breakdown,
        stats=stats,
    )


def search_combinations(
    required: Sequence[str],
    roles: Sequence[RoleDefinition],
    strategy: StrategyConfig,
    table: PermissionTable,
    settings: Optional[EngineSettings] = None,
) -> Recommendation:
    """Recommend the best-scoring role combination for one strategy."""
    settings = settings or EngineSettings()
    if settings.search == "greedy":
        return greedy_search(required, roles, strategy, table, settings)

    useful = find_useful_roles(required, roles, table, settings)
    max_size, capped = combination_size_bound(len(useful), settings)

    best_combo: Optional[tuple[int, ...]] = None
    best_score = -math.inf
    evaluated = 0

    for combo in iter_combinations(len(useful), max_size):
        evaluated += 1
        covered = frozenset().union(*(useful[i].covered for i in combo))
        excess = frozenset().union(*(useful[i].excess for i in combo))
        score = score_combination(len(covered), len(excess), len(combo), strategy.weights)
        # Strictly greater: earlier (smaller, lexicographically first) combos win ties
        if score > best_score:
            best_score = score
            best_combo = combo

    stats = SearchStats(
        mode="exhaustive",
        candidate_roles=len(roles),
        useful_roles=len(useful),
        max_combination_size=max_size,
        capped=capped,
        evaluated=evaluated,
    )

    if best_combo is None or best_score < strategy.threshold:
        return no_match(required, strategy, stats)

    selected = [useful[i].role for i in best_combo]
    return build_recommendation(required, selected, strategy, table, settings, stats)


def greedy_search(
    required: Sequence[str],
    roles: Sequence[RoleDefinition],
    strategy: StrategyConfig,
    table: PermissionTable,
    settings: EngineSettings,
) -> Recommendation:
    """Iterative greedy approximation: pick the best marginal role per round.

    Each round scores roles against the still-uncovered actions only and
    ignores the role-count weight. Results may differ from the exhaustive
    search for the same input.
    """
    weights = strategy.weights
    remaining = list(required)
    selected: list[RoleDefinition] = []
    evaluated = 0

    for _ in range(settings.greedy_rounds):
        if not remaining:
            break

        best_role: Optional[RoleDefinition] = None
        best_score = -math.inf
        best_covered: list[str] = []

        for role in roles:
            cov = calculate_coverage(remaining, role, table, settings)
            evaluated += 1
            if not cov.covered:
                continue
            score = len(cov.covered) * weights.coverage - len(cov.excess) * weights.excess
            if score > best_score:
                best_score = score
                best_role = role
                best_covered = cov.covered

        if best_role is None or best_score < strategy.threshold:
            break

        selected.append(best_role)
        newly = set(best_covered)
        remaining = [a for a in remaining if a not in newly]

    stats = SearchStats(
        mode="greedy",
        candidate_roles=len(roles),
        useful_roles=len(find_useful_roles(required, roles, table, settings)),
        max_combination_size=settings.greedy_rounds,
        capped=False,
        evaluated=evaluated,
    )

    if not selected:
        return no_match(required, strategy, stats)
    return build_recommendation(required, selected, strategy, table, settings, stats)
