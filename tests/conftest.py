"""Shared fixtures for rolemap tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, Optional

import pytest

from rolemap.mapping.loader import parse_permission_table
from rolemap.models.grant import LegacyGrant
from rolemap.models.mapping import PermissionTable
from rolemap.models.recommendation import (
    NO_MATCH,
    ExistingCoverageResult,
    GrantAnalysis,
    Recommendation,
    RoleBreakdown,
    SearchStats,
)
from rolemap.models.role import RoleAssignment, RoleDefinition

SAMPLE_MAPPING_CSV = """Access Policy Permission,RBAC Data Actions
Key Get,Microsoft.KeyVault/vaults/keys/read
Key List,Microsoft.KeyVault/vaults/keys/read
Key Sign,Microsoft.KeyVault/vaults/keys/sign/action
Key Encrypt,Microsoft.KeyVault/vaults/keys/encrypt/action
Secret Get,Microsoft.KeyVault/vaults/secrets/getSecret/action
Secret List,Microsoft.KeyVault/vaults/secrets/readMetadata/action
Secret Set,Microsoft.KeyVault/vaults/secrets/setSecret/action
Secret Delete,Microsoft.KeyVault/vaults/secrets/delete
Certificate Get,Microsoft.KeyVault/vaults/certificates/read
Certificate Manage Contacts,Microsoft.KeyVault/vaults/certificatecontacts/write
"""


@pytest.fixture
def mapping_csv() -> str:
    return SAMPLE_MAPPING_CSV


@pytest.fixture
def table() -> PermissionTable:
    """Small mapping table with nine distinct data actions."""
    return parse_permission_table(SAMPLE_MAPPING_CSV)


@pytest.fixture
def make_role() -> Callable[..., RoleDefinition]:
    """Factory for role definitions granting the given data actions."""

    def _make(role_name: str, data_actions: list[str], guid: Optional[str] = None) -> RoleDefinition:
        guid = guid or role_name.lower().replace(" ", "-")
        return RoleDefinition.model_validate({
            "id": f"/providers/Microsoft.Authorization/roleDefinitions/{guid}",
            "name": guid,
            "properties": {
                "roleName": role_name,
                "permissions": [{"actions": [], "dataActions": data_actions}],
            },
        })

    return _make


@pytest.fixture
def make_assignment() -> Callable[..., RoleAssignment]:
    def _make(principal_id: str, role_guid: str, scope: str = "/subscriptions/sub-1") -> RoleAssignment:
        return RoleAssignment.model_validate({
            "id": f"{scope}/providers/Microsoft.Authorization/roleAssignments/{principal_id}-{role_guid}",
            "name": f"{principal_id}-{role_guid}",
            "properties": {
                "roleDefinitionId": f"/subscriptions/sub-1/providers/Microsoft.Authorization/roleDefinitions/{role_guid}",
                "principalId": principal_id,
                "principalType": "User",
                "scope": scope,
            },
        })

    return _make


@pytest.fixture
def secrets_reader_grant() -> LegacyGrant:
    return LegacyGrant.model_validate({
        "tenantId": "tenant-1",
        "objectId": "user-1",
        "displayName": "App Reader",
        "permissions": {"secrets": ["Get", "List"]},
    })


@pytest.fixture
def vault_export() -> dict:
    """A vault resource as returned by the ARM API."""
    return {
        "id": "/subscriptions/sub-1/resourceGroups/rg/providers/Microsoft.KeyVault/vaults/kv-test",
        "name": "kv-test",
        "properties": {
            "tenantId": "tenant-1",
            "accessPolicies": [
                {
                    "tenantId": "tenant-1",
                    "objectId": "user-1",
                    "permissions": {"secrets": ["get", "list"]},
                },
                {
                    "tenantId": "tenant-1",
                    "objectId": "app-1",
                    "applicationId": "client-1",
                    "permissions": {"keys": ["get", "wrapKey", "unwrapKey"], "secrets": []},
                },
                {
                    "tenantId": "tenant-1",
                    "objectId": "admin-1",
                    "permissions": {"keys": ["all"], "secrets": ["all"], "certificates": ["all"]},
                },
            ],
        },
    }


@pytest.fixture
def assignments_export() -> dict:
    return {
        "value": [
            {
                "id": "/subscriptions/sub-1/providers/Microsoft.Authorization/roleAssignments/a1",
                "name": "a1",
                "properties": {
                    "roleDefinitionId": "/subscriptions/sub-1/providers/Microsoft.Authorization/roleDefinitions/4633458b-17de-408a-b874-0445c86b69e6",
                    "principalId": "user-1",
                    "principalType": "User",
                    "scope": "/subscriptions/sub-1",
                },
            },
        ],
    }


@pytest.fixture
def snapshot_files(tmp_path: Path, vault_export: dict, assignments_export: dict) -> dict[str, Path]:
    """Vault, assignments and names snapshots written to disk."""
    grants = tmp_path / "vault.json"
    grants.write_text(json.dumps(vault_export), encoding="utf-8")
    assignments = tmp_path / "assignments.json"
    assignments.write_text(json.dumps(assignments_export), encoding="utf-8")
    names = tmp_path / "names.json"
    names.write_text(
        json.dumps({"user-1": {"name": "Alice", "type": "User"}, "app-1": "billing-api"}),
        encoding="utf-8",
    )
    return {"grants": grants, "assignments": assignments, "names": names}


SECRET_GET = "Microsoft.KeyVault/vaults/secrets/getSecret/action"
SECRET_LIST = "Microsoft.KeyVault/vaults/secrets/readMetadata/action"
KEYS_READ = "Microsoft.KeyVault/vaults/keys/read"
KEYS_SIGN = "Microsoft.KeyVault/vaults/keys/sign/action"


def _rec(strategy: str, roles: list[str], covered: list[str], missing: tuple = (),
         excess: tuple = (), confidence: int = 100, capped: bool = False) -> Recommendation:
    return Recommendation(
        strategy=strategy,
        role_name=" + ".join(roles) if roles else NO_MATCH,
        role_names=roles,
        confidence=confidence if roles else 0,
        covered_permissions=covered,
        missing_permissions=list(missing),
        excess_permissions=list(excess),
        role_breakdown=[RoleBreakdown(role_name=r, covered=covered) for r in roles],
        stats=SearchStats(useful_roles=25 if capped else 2, max_combination_size=3 if capped else 5, capped=capped),
    )


@pytest.fixture
def full_match_analysis() -> GrantAnalysis:
    """Alice: every strategy recommends an exact role; already covered by RBAC."""
    grant = LegacyGrant(object_id="user-1", display_name="Alice", type="User",
                        permissions={"secrets": ["get", "list"]})
    required = [SECRET_GET, SECRET_LIST]
    return GrantAnalysis(
        grant=grant,
        required_actions=required,
        recommendations=[
            _rec(name, ["Key Vault Secrets User"], required)
            for name in ("Max Coverage", "Minimize Excess", "Balanced")
        ],
        existing_coverage=ExistingCoverageResult(is_fully_covered=True, covered_permissions=required),
    )


@pytest.fixture
def mixed_analysis() -> GrantAnalysis:
    """billing-api: broad match, partial match and no match across strategies."""
    grant = LegacyGrant(object_id="app-1", display_name="billing-api",
                        permissions={"keys": ["get", "sign"], "secrets": ["get"]})
    required = [KEYS_READ, KEYS_SIGN, SECRET_GET]
    return GrantAnalysis(
        grant=grant,
        required_actions=required,
        recommendations=[
            _rec("Max Coverage", ["Key Vault Administrator"], required,
                 excess=[SECRET_LIST], confidence=95, capped=True),
            _rec("Minimize Excess", [], []),
            _rec("Balanced", ["Key Vault Crypto User"], [KEYS_READ, KEYS_SIGN],
                 missing=[SECRET_GET], confidence=67),
        ],
    )
