"""Permission mapping table loading.

Parses the access-policy -> RBAC data action CSV into a PermissionTable.
Each data line reads ``<Category> <Action>,<DataAction1>;<DataAction2>;...``.
"""

from __future__ import annotations

from importlib import resources
from pathlib import Path
from typing import Optional

from ..models.grant import PermissionCategory
from ..models.mapping import PermissionTable

BUNDLED_MAPPING = "access_policy_rbac_mapping.csv"

CATEGORY_ALIASES: dict[str, str] = {
    "key": PermissionCategory.KEYS.value,
    "secret": PermissionCategory.SECRETS.value,
    "certificate": PermissionCategory.CERTIFICATES.value,
    "storage": PermissionCategory.STORAGE.value,
}


class MappingError(ValueError):
    """An explicitly requested mapping file could not be read."""


def normalize_category(token: str) -> str:
    """Map a singular category token (``Key``) to its canonical key (``keys``)."""
    raw = token.strip().lower()
    return CATEGORY_ALIASES.get(raw, raw)


def parse_permission_table(csv_text: str) -> PermissionTable:
    """Parse mapping CSV text. Malformed lines are skipped."""
    categories: dict[str, dict[str, list[str]]] = {c.value: {} for c in PermissionCategory}

    lines = csv_text.strip().splitlines()
    for line in lines[1:]:  # header
        columns = line.split(",")
        if len(columns) < 2:
            continue
        policy_perm = columns[0].strip()
        rbac_actions = columns[1].strip()
        if not policy_perm or not rbac_actions:
            continue

        parts = policy_perm.split()
        if len(parts) < 2:
            continue

        category = normalize_category(parts[0])
        # Multi-word actions collapse: "Manage Contacts" -> "managecontacts"
        action_key = "".join(parts[1:]).lower()

        actions = [a.strip() for a in rbac_actions.split(";") if a.strip()]
        if not actions:
            continue
        categories.setdefault(category, {})[action_key] = actions

    return PermissionTable.from_categories(categories)


def load_permission_table(path: Optional[Path] = None) -> PermissionTable:
    """Load the mapping table from a CSV file, or the bundled one if no path is given."""
    if path is None:
        data_pkg = resources.files("rolemap.data")
        text = (data_pkg / BUNDLED_MAPPING).read_text(encoding="utf-8")
        return parse_permission_table(text)

    path = Path(path)
    if not path.is_file():
        raise MappingError(f"Mapping file not found: {path}")
    return parse_permission_table(path.read_text(encoding="utf-8-sig"))
