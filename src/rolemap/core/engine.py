"""Engine entry points.

The permission table is loaded once by the caller and passed in; every
function here is pure over its inputs.
"""

from __future__ import annotations

from typing import Optional, Sequence

from ..models.grant import LegacyGrant
from ..models.mapping import PermissionTable
from ..models.recommendation import ExistingCoverageResult, GrantAnalysis
from ..models.role import RoleAssignment, RoleDefinition
from .config import EngineSettings
from .coverage import is_relevant_role
from .existing import evaluate_existing_coverage
from .resolver import get_required_actions
from .search import search_combinations
from .strategies import STRATEGIES


def candidate_roles(roles: Sequence[RoleDefinition], settings: EngineSettings) -> list[RoleDefinition]:
    """Roles granting at least one data action in the migrated namespace."""
    return [r for r in roles if is_relevant_role(r, settings.namespace)]


def analyze_grant(
    grant: LegacyGrant,
    roles: Sequence[RoleDefinition],
    table: PermissionTable,
    settings: Optional[EngineSettings] = None,
    assignments: Optional[Sequence[RoleAssignment]] = None,
) -> GrantAnalysis:
    """Run every strategy for one grant. ``roles`` should be pre-filtered candidates."""
    settings = settings or EngineSettings()
    required = get_required_actions(grant, table)

    recommendations = [
        search_combinations(required, roles, strategy, table, settings)
        for strategy in STRATEGIES
    ]

    existing = None
    if assignments is not None:
        existing = evaluate_existing_coverage(
            required, grant.object_id, assignments, roles, table, settings
        )

    return GrantAnalysis(
        grant=grant,
        required_actions=required,
        recommendations=recommendations,
        existing_coverage=existing,
    )


def analyze_grants(
    grants: Sequence[LegacyGrant],
    roles: Sequence[RoleDefinition],
    table: PermissionTable,
    settings: Optional[EngineSettings] = None,
    assignments: Optional[Sequence[RoleAssignment]] = None,
) -> list[GrantAnalysis]:
    """Recommend roles for every grant under all three strategies."""
    settings = settings or EngineSettings()
    candidates = candidate_roles(roles, settings)
    return [
        analyze_grant(grant, candidates, table, settings, assignments)
        for grant in grants
    ]


def analyze_existing_coverage(
    grant: LegacyGrant,
    assignments: Sequence[RoleAssignment],
    roles: Sequence[RoleDefinition],
    table: PermissionTable,
    settings: Optional[EngineSettings] = None,
) -> ExistingCoverageResult:
    """Report what a grant's identity already holds through assigned roles."""
    required = get_required_actions(grant, table)
    return evaluate_existing_coverage(required, grant.object_id, assignments, roles, table, settings)
