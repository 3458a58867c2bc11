"""CSV, JSON and PowerShell exports of analysis results.

Each export uses one recommendation per identity: the selected strategy,
or the first strategy when none is given.
"""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime, timezone
from typing import Optional, Sequence

from ..models.recommendation import GrantAnalysis

CSV_HEADERS = [
    "Identity Name",
    "Object ID",
    "Type",
    "Strategy",
    "Recommended Role",
    "Confidence",
    "Missing Permissions",
    "Excess Permissions",
]


def export_csv(analyses: Sequence[GrantAnalysis], strategy: Optional[str] = None) -> str:
    """One row per identity with the selected recommendation. Data cells are always quoted."""
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(CSV_HEADERS)
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for analysis in analyses:
        rec = analysis.selected(strategy)
        grant = analysis.grant
        writer.writerow([
            grant.label,
            grant.object_id,
            grant.type or "Unknown",
            rec.strategy,
            rec.role_name,
            f"{rec.confidence}%",
            len(rec.missing_permissions),
            len(rec.excess_permissions),
        ])
    return buffer.getvalue().rstrip("\n")


def export_json(analyses: Sequence[GrantAnalysis], strategy: Optional[str] = None) -> str:
    """Identity, original permissions and selected recommendation per grant."""
    data: list[dict] = []
    for analysis in analyses:
        rec = analysis.selected(strategy)
        grant = analysis.grant
        entry = {
            "identity": {
                "objectId": grant.object_id,
                "name": grant.label,
                "type": grant.type or "Unknown",
                "applicationId": grant.application_id,
            },
            "originalPermissions": grant.permissions,
            "recommendation": {
                "strategy": rec.strategy,
                "roleName": rec.role_name,
                "roleNames": rec.role_names,
                "confidence": rec.confidence,
                "coveredPermissions": rec.covered_permissions,
                "missingPermissions": rec.missing_permissions,
                "excessPermissions": rec.excess_permissions,
                "roleBreakdown": [
                    {"roleName": b.role_name, "covered": b.covered, "excess": b.excess}
                    for b in rec.role_breakdown
                ],
            },
        }
        if analysis.existing_coverage is not None:
            existing = analysis.existing_coverage
            entry["existingCoverage"] = {
                "isFullyCovered": existing.is_fully_covered,
                "coveredPermissions": existing.covered_permissions,
                "missingPermissions": existing.missing_permissions,
                "excessPermissions": existing.excess_permissions,
                "roleMatches": [
                    {"roleName": m.role_name, "covered": m.covered, "excess": m.excess}
                    for m in existing.role_matches
                ],
            }
        data.append(entry)
    return json.dumps(data, indent=2)


# PowerShell also treats the typographic single quotes as quote characters
_PS_SINGLE_QUOTES = ("'", "‘", "’", "‚", "‛")


def _ps_string(value: str) -> str:
    """Render a value as a single-quoted PowerShell literal."""
    text = str(value)
    for quote in _PS_SINGLE_QUOTES:
        text = text.replace(quote, quote * 2)
    return f"'{text}'"


def _ps_comment(value: str) -> str:
    """Flatten a value onto one line so it stays inside a ``#`` comment."""
    return " ".join(str(value).splitlines())


def export_powershell(
    analyses: Sequence[GrantAnalysis],
    vault_name: str,
    subscription_id: str = "",
    strategy: Optional[str] = None,
) -> str:
    """Generate a review-before-run Az PowerShell script of role assignments.

    The script is text only; nothing is executed. Identity and role names
    come from snapshot files, so they are only ever emitted as quoted
    literals or flattened comments.
    """
    generated = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    lines: list[str] = [
        "# Azure Key Vault RBAC Migration Script",
        f"# Generated: {generated}",
        f"# Vault: {_ps_comment(vault_name)}",
        f"# Subscription: {_ps_comment(subscription_id)}",
        "",
        "# WARNING: Review this script carefully before running!",
        "# This script will create role assignments for the Key Vault.",
        "",
        f"$vaultName = {_ps_string(vault_name)}",
        f"$subscriptionId = {_ps_string(subscription_id)}",
        "",
        "# Get the Key Vault resource",
        "$vault = Get-AzKeyVault -VaultName $vaultName",
        "",
        'Write-Host "Starting RBAC migration for Key Vault: $vaultName" -ForegroundColor Green',
        'Write-Host ""',
        "",
    ]

    for analysis in analyses:
        rec = analysis.selected(strategy)
        grant = analysis.grant

        lines.append(f"# {_ps_comment(grant.label)} ({_ps_comment(grant.object_id)})")
        lines.append(f"# Strategy: {_ps_comment(rec.strategy)} | Confidence: {rec.confidence}%")

        if rec.role_names:
            for role_name in rec.role_names:
                lines.append("New-AzRoleAssignment `")
                lines.append(f"  -ObjectId {_ps_string(grant.object_id)} `")
                lines.append(f"  -RoleDefinitionName {_ps_string(role_name)} `")
                lines.append("  -Scope $vault.ResourceId")
        else:
            lines.append("# No matching role found for this identity")

        if rec.missing_permissions:
            lines.append(f"# WARNING: {len(rec.missing_permissions)} permissions will NOT be covered")
        if rec.excess_permissions:
            lines.append(f"# NOTE: {len(rec.excess_permissions)} additional permissions will be granted")
        lines.append("")

    lines.append('Write-Host "Migration script completed" -ForegroundColor Green')
    return "\n".join(lines)
