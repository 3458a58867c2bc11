"""Required-action resolution: legacy grant -> target data actions."""

from __future__ import annotations

from ..models.grant import LegacyGrant
from ..models.mapping import PermissionTable

WILDCARD_TOKENS = frozenset({"all", "*"})


def get_required_actions(grant: LegacyGrant, table: PermissionTable) -> list[str]:
    """Convert an access-policy grant into the data actions it requires.

    Unknown categories and actions are skipped. The result is unique and in
    first-seen order.
    """
    actions: dict[str, None] = {}

    for category, perms in grant.permissions.items():
        if not perms:
            continue
        category_map = table.category(category)
        if not category_map:
            continue

        for perm in perms:
            perm_key = perm.lower()
            if perm_key in WILDCARD_TOKENS:
                for mapped in category_map.values():
                    for action in mapped:
                        actions.setdefault(action, None)
            else:
                for action in category_map.get(perm_key, []):
                    actions.setdefault(action, None)

    return list(actions)
