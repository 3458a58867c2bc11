"""Existing-coverage analysis: what does an identity already hold via RBAC?

Independent of strategies and of the combination search.
"""

from __future__ import annotations

from typing import Optional, Sequence

from ..models.mapping import PermissionTable
from ..models.recommendation import ExistingCoverageResult, RoleBreakdown
from ..models.role import RoleAssignment, RoleDefinition
from .config import EngineSettings
from .coverage import calculate_coverage


def assigned_roles(
    principal_id: str,
    assignments: Sequence[RoleAssignment],
    roles: Sequence[RoleDefinition],
) -> list[RoleDefinition]:
    """Resolve a principal's assignments to distinct role definitions.

    A role assigned at several scopes is returned once. Assignments whose
    role definition is not in ``roles`` are skipped.
    """
    by_name = {r.name: r for r in roles}
    seen: set[str] = set()
    result: list[RoleDefinition] = []

    for assignment in assignments:
        if assignment.principal_id != principal_id:
            continue
        role = by_name.get(assignment.role_definition_name)
        if role is None or role.role_name in seen:
            continue
        seen.add(role.role_name)
        result.append(role)

    return result


def evaluate_existing_coverage(
    required: Sequence[str],
    principal_id: str,
    assignments: Sequence[RoleAssignment],
    roles: Sequence[RoleDefinition],
    table: PermissionTable,
    settings: Optional[EngineSettings] = None,
) -> ExistingCoverageResult:
    """Evaluate a principal's current role grants against a required-action set."""
    covered: set[str] = set()
    excess: dict[str, str] = {}
    role_matches: list[RoleBreakdown] = []

    for role in assigned_roles(principal_id, assignments, roles):
        cov = calculate_coverage(required, role, table, settings)
        covered.update(cov.covered)
        for action in cov.excess:
            excess.setdefault(action.lower(), action)
        if cov.covered:
            role_matches.append(RoleBreakdown(role_name=role.role_name, covered=cov.covered, excess=cov.excess))

    missing = [a for a in required if a not in covered]

    return ExistingCoverageResult(
        is_fully_covered=not missing,
        covered_permissions=[a for a in required if a in covered],
        missing_permissions=missing,
        excess_permissions=list(excess.values()),
        role_matches=role_matches,
    )
