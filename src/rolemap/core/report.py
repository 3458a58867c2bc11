"""Migration readiness verdict and markdown report generation."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from .. import __version__
from ..models.recommendation import GrantAnalysis
from ..models.report import Verdict


def calculate_verdict(analyses: Sequence[GrantAnalysis], strategy: Optional[str] = None) -> Verdict:
    """Calculate migration readiness for the selected strategy.

    - BLOCKED: a grant that requires actions has no matching role
    - PARTIAL: some recommendation leaves permissions missing
    - READY: everything else
    """
    partial = False
    for analysis in analyses:
        if not analysis.recommendations or not analysis.required_actions:
            continue
        rec = analysis.selected(strategy)
        if not rec.is_match:
            return Verdict.BLOCKED
        if rec.missing_permissions:
            partial = True

    return Verdict.PARTIAL if partial else Verdict.READY


def get_exit_code(verdict: Verdict, config: Optional[dict] = None) -> int:
    """Map verdict to exit code."""
    codes = ((config or {}).get("ci") or {}).get("exit_codes") or {}
    defaults = {Verdict.READY: 0, Verdict.PARTIAL: 2, Verdict.BLOCKED: 1}
    return int(codes.get(verdict.value.lower(), defaults[verdict]))


def _default_strategy(analyses: Sequence[GrantAnalysis]) -> str:
    for analysis in analyses:
        if analysis.recommendations:
            return analysis.recommendations[0].strategy
    return "-"


def _existing_label(analysis: GrantAnalysis) -> str:
    existing = analysis.existing_coverage
    if existing is None:
        return "-"
    if existing.is_fully_covered:
        return "Fully covered"
    if existing.covered_permissions:
        return f"Partial ({len(existing.covered_permissions)}/{len(analysis.required_actions)})"
    return "None"


def generate_migration_report(
    analyses: Sequence[GrantAnalysis],
    strategy: Optional[str] = None,
    vault_name: str = "",
    duration_seconds: float = 0,
    search_mode: str = "exhaustive",
) -> str:
    """Generate the markdown migration report."""
    verdict = calculate_verdict(analyses, strategy)
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    lines: list[str] = []
    lines.append("# RBAC Migration Report")
    lines.append("")
    if vault_name:
        lines.append(f"**Vault:** {vault_name}")
    lines.append(f"**Date:** {timestamp}")
    lines.append(f"**Verdict:** {verdict.value}")
    lines.append(f"**Strategy:** {strategy or _default_strategy(analyses)}")
    lines.append(f"**Search:** {search_mode}")
    lines.append(f"**Duration:** {round(duration_seconds, 2)}s")
    lines.append("")

    # Summary table
    matched = partial = no_match = covered_already = 0
    for analysis in analyses:
        if not analysis.recommendations:
            continue
        rec = analysis.selected(strategy)
        if not rec.is_match:
            no_match += 1
        elif rec.missing_permissions:
            partial += 1
        else:
            matched += 1
        if analysis.existing_coverage and analysis.existing_coverage.is_fully_covered:
            covered_already += 1

    lines.append("## Summary")
    lines.append("")
    lines.append("| Outcome | Identities |")
    lines.append("|---------|------------|")
    lines.append(f"| Full match | {matched} |")
    lines.append(f"| Partial match | {partial} |")
    lines.append(f"| No match | {no_match} |")
    lines.append(f"| Already covered by RBAC | {covered_already} |")
    lines.append(f"| **Total** | **{len(analyses)}** |")
    lines.append("")

    if not analyses:
        lines.append("_No access policies to analyze._")
        lines.append("")

    for analysis in analyses:
        grant = analysis.grant
        lines.append(f"## {grant.label} (`{grant.object_id}`)")
        lines.append("")
        lines.append(f"**Type:** {grant.type} | **Required actions:** {len(analysis.required_actions)} "
                     f"| **Existing RBAC:** {_existing_label(analysis)}")
        lines.append("")
        lines.append("| Strategy | Roles | Confidence | Missing | Excess |")
        lines.append("|----------|-------|------------|---------|--------|")
        for rec in analysis.recommendations:
            lines.append(
                f"| {rec.strategy} | {rec.role_name} | {rec.confidence}% "
                f"| {len(rec.missing_permissions)} | {len(rec.excess_permissions)} |"
            )
        lines.append("")

        rec = analysis.selected(strategy)
        if rec.missing_permissions:
            lines.append("**Missing permissions:**")
            for action in rec.missing_permissions:
                lines.append(f"- `{action}`")
            lines.append("")
        if rec.excess_permissions:
            lines.append("**Excess permissions:**")
            for action in rec.excess_permissions:
                lines.append(f"- `{action}`")
            lines.append("")

        capped = next((r.stats for r in analysis.recommendations if r.stats.capped), None)
        if capped:
            lines.append(
                f"> Search depth reduced to {capped.max_combination_size} roles "
                f"({capped.useful_roles} useful roles)."
            )
            lines.append("")

    lines.append("---")
    lines.append(f"*Generated by rolemap v{__version__} at {timestamp}*")

    return "\n".join(lines)
