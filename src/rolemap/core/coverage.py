"""Coverage calculation for one role against a required-action set."""

from __future__ import annotations

from typing import Optional, Sequence

from ..models.mapping import PermissionTable
from ..models.recommendation import CoverageResult
from ..models.role import RoleDefinition
from .config import EngineSettings
from .matcher import action_matches


def is_relevant(data_action: str, namespace: str) -> bool:
    """Check if a data action belongs to the resource provider under migration."""
    return namespace.lower() in data_action.lower()


def is_relevant_role(role: RoleDefinition, namespace: str) -> bool:
    return any(is_relevant(da, namespace) for da in role.data_actions)


def calculate_coverage(
    required: Sequence[str],
    role: RoleDefinition,
    table: PermissionTable,
    settings: Optional[EngineSettings] = None,
) -> CoverageResult:
    """Partition a role's relevant data actions into covered and excess.

    Wildcard patterns are expanded against the table's known actions. A
    literal action that is not required counts as excess only when it is a
    known action or ends with the action suffix, so unrecognized strings are
    not reported. Covered and excess never overlap.
    """
    settings = settings or EngineSettings()
    suffix = settings.action_suffix.lower()

    required_index: dict[str, str] = {}
    for action in required:
        required_index.setdefault(action.lower(), action)

    covered: set[str] = set()
    excess: dict[str, str] = {}  # lower -> first-seen spelling

    for data_action in role.data_actions:
        if not is_relevant(data_action, settings.namespace):
            continue

        if "*" in data_action:
            for known in table.known_actions:
                if not action_matches(data_action, known):
                    continue
                canonical = required_index.get(known.lower())
                if canonical is not None:
                    covered.add(canonical)
                else:
                    excess.setdefault(known.lower(), known)
        else:
            canonical = required_index.get(data_action.lower())
            if canonical is not None:
                covered.add(canonical)
            elif table.is_known(data_action) or data_action.lower().endswith(suffix):
                excess.setdefault(data_action.lower(), data_action)

    return CoverageResult(
        covered=[a for a in required_index.values() if a in covered],
        excess=list(excess.values()),
    )
