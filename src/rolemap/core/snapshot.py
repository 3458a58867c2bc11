"""Snapshot loading: already-fetched JSON exports of grants, roles and assignments.

Accepts the shapes the control-plane REST API returns: a bare list, an ARM
list envelope ``{"value": [...]}``, or (for grants) a vault resource with
``properties.accessPolicies``. Nothing here performs network calls.
"""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Optional, TypeVar

from pydantic import BaseModel, ValidationError

from ..models.grant import LegacyGrant
from ..models.role import RoleAssignment, RoleDefinition

BUNDLED_ROLES = "builtin_roles.json"

ModelT = TypeVar("ModelT", bound=BaseModel)


class SnapshotError(ValueError):
    """A snapshot file could not be read or did not match the expected shape."""


def _read_json(path: Path) -> object:
    path = Path(path)
    if not path.is_file():
        raise SnapshotError(f"Snapshot file not found: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8-sig"))
    except (OSError, json.JSONDecodeError) as e:
        raise SnapshotError(f"Invalid JSON in {path.name}: {e}") from e


def _unwrap_items(data: object, source: str) -> list:
    """Extract the item list from a bare list or an ARM envelope."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        if isinstance(data.get("value"), list):
            return data["value"]
        policies = (data.get("properties") or {}).get("accessPolicies")
        if isinstance(policies, list):
            return policies
        if isinstance(data.get("accessPolicies"), list):
            return data["accessPolicies"]
    raise SnapshotError(f"{source}: expected a list, a 'value' envelope or accessPolicies")


def _validate_items(items: list, model: type[ModelT], source: str) -> list[ModelT]:
    result: list[ModelT] = []
    for idx, item in enumerate(items):
        try:
            result.append(model.model_validate(item))
        except ValidationError as e:
            raise SnapshotError(
                f"{source}: item {idx} is not a valid {model.__name__} "
                f"({e.error_count()} error(s))"
            ) from e
    return result


def parse_grants(data: object, source: str = "grants") -> list[LegacyGrant]:
    return _validate_items(_unwrap_items(data, source), LegacyGrant, source)


def parse_roles(data: object, source: str = "roles") -> list[RoleDefinition]:
    return _validate_items(_unwrap_items(data, source), RoleDefinition, source)


def parse_assignments(data: object, source: str = "assignments") -> list[RoleAssignment]:
    return _validate_items(_unwrap_items(data, source), RoleAssignment, source)


def load_grants(path: Path) -> list[LegacyGrant]:
    """Load access-policy grants from a vault export or a policy list."""
    return parse_grants(_read_json(path), Path(path).name)


def load_roles(path: Optional[Path] = None) -> list[RoleDefinition]:
    """Load role definitions; with no path, the bundled built-in Key Vault roles."""
    if path is None:
        data_pkg = resources.files("rolemap.data")
        data = json.loads((data_pkg / BUNDLED_ROLES).read_text(encoding="utf-8"))
        return parse_roles(data, BUNDLED_ROLES)
    return parse_roles(_read_json(path), Path(path).name)


def load_assignments(path: Path) -> list[RoleAssignment]:
    return parse_assignments(_read_json(path), Path(path).name)


def load_identity_names(path: Path) -> dict[str, dict]:
    """Load resolved identity names: ``{objectId: {"name": ..., "type": ...}}``.

    A plain string value is taken as the display name.
    """
    data = _read_json(path)
    if not isinstance(data, dict):
        raise SnapshotError(f"{Path(path).name}: expected an object keyed by object id")
    names: dict[str, dict] = {}
    for object_id, info in data.items():
        if isinstance(info, str):
            names[object_id] = {"name": info}
        elif isinstance(info, dict):
            names[object_id] = info
    return names


def apply_identity_names(grants: list[LegacyGrant], names: dict[str, dict]) -> list[LegacyGrant]:
    """Return grants with display name and type filled from resolved names."""
    result: list[LegacyGrant] = []
    for grant in grants:
        info = names.get(grant.object_id)
        if not info:
            result.append(grant)
            continue
        update: dict = {}
        if info.get("name"):
            update["display_name"] = info["name"]
        if info.get("type"):
            update["type"] = info["type"]
        result.append(grant.model_copy(update=update))
    return result
