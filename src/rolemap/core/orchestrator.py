"""Analysis orchestrator: config, snapshots, engine, output.

Status lines go to stderr through a rich console so that reports written
to stdout stay machine-readable.
"""

from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..formatters.export import export_csv, export_json, export_powershell
from ..formatters.junit import export_junit_results, render_junit_xml
from ..mapping.loader import MappingError, load_permission_table
from ..models.recommendation import GrantAnalysis
from .config import CONFIG_DIR, get_effective_config, get_engine_settings
from .engine import analyze_existing_coverage, analyze_grants, candidate_roles
from .report import calculate_verdict, generate_migration_report, get_exit_code
from .snapshot import (
    SnapshotError,
    apply_identity_names,
    load_assignments,
    load_grants,
    load_identity_names,
    load_roles,
)
from .strategies import STRATEGIES, get_strategy

console = Console(stderr=True)

OUTPUT_FORMATS = ("markdown", "json", "csv", "powershell", "junit")

OUTPUT_EXTENSIONS = {
    "markdown": ".md",
    "json": ".json",
    "csv": ".csv",
    "powershell": ".ps1",
    "junit": ".xml",
}

REPORT_BASENAME = "rbac-migration"

EXIT_CONFIG_ERROR = 11
EXIT_INPUT_ERROR = 12


def initialize_project(project_path: Path) -> None:
    """Initialize .rolemap directory structure in a project."""
    rm_dir = project_path / CONFIG_DIR
    (rm_dir / "reports").mkdir(parents=True, exist_ok=True)

    config_path = rm_dir / "config.yaml"
    if not config_path.exists():
        config_path.write_text(
            "# rolemap project configuration\n"
            "\n"
            f"rolemap_version: \"{__version__}\"\n"
            "\n"
            "engine:\n"
            "  search: exhaustive\n"
            "\n"
            "output:\n"
            "  format: markdown\n"
            '  strategy: "Max Coverage"\n'
            "\n"
            "vault:\n"
            f'  name: "{project_path.name}"\n',
            encoding="utf-8",
        )

    console.print(f"  [green]Initialized[/green] {CONFIG_DIR}/ in {project_path.name}")


def default_output_path(project_path: Path, output_config: dict, output_format: str) -> Path:
    """Report location under the project's ``output.directory``."""
    directory = Path(output_config.get("directory") or f"{CONFIG_DIR}/reports")
    if not directory.is_absolute():
        directory = project_path / directory
    return directory / f"{REPORT_BASENAME}{OUTPUT_EXTENSIONS[output_format]}"


def render_output(
    analyses: list[GrantAnalysis],
    output_format: str,
    strategy: str,
    config: dict,
    duration: float = 0,
) -> str:
    """Render analyses in one of OUTPUT_FORMATS."""
    vault = config.get("vault") or {}
    vault_name = vault.get("name", "")

    if output_format == "json":
        return export_json(analyses, strategy)
    if output_format == "csv":
        return export_csv(analyses, strategy)
    if output_format == "powershell":
        return export_powershell(
            analyses, vault_name or "<vault-name>", vault.get("subscription_id", ""), strategy
        )
    if output_format == "junit":
        return render_junit_xml(analyses, project_name=vault_name or "rolemap", duration=duration)
    return generate_migration_report(
        analyses,
        strategy=strategy,
        vault_name=vault_name,
        duration_seconds=duration,
        search_mode=(config.get("engine") or {}).get("search", "exhaustive"),
    )


def _print_analysis(analysis: GrantAnalysis, strategy: str) -> None:
    rec = analysis.selected(strategy)
    grant = analysis.grant
    name = grant.label if grant.label != "Unknown" else grant.object_id
    if not analysis.required_actions:
        console.print(f"  [dim]SKIP[/dim] {name}: no mapped permissions")
        return
    if not rec.is_match:
        console.print(f"  [red]NO MATCH[/red] {name}: {len(rec.missing_permissions)} permissions uncovered")
        return
    color = "green" if not rec.missing_permissions else "yellow"
    console.print(
        f"  [{color}]{rec.confidence:>3}%[/{color}] {name}: {rec.role_name} "
        f"({len(rec.covered_permissions)} covered, {len(rec.missing_permissions)} missing, "
        f"{len(rec.excess_permissions)} excess)"
    )
    if rec.stats.capped:
        console.print(
            f"       [yellow]WARN[/yellow] {rec.stats.useful_roles} useful roles; "
            f"search depth reduced to {rec.stats.max_combination_size}"
        )
    existing = analysis.existing_coverage
    if existing is not None and existing.is_fully_covered:
        console.print("       [cyan]INFO[/cyan] already fully covered by assigned roles")


def run_analysis(
    grants_path: Path,
    roles_path: Optional[Path] = None,
    assignments_path: Optional[Path] = None,
    names_path: Optional[Path] = None,
    project_path: Optional[Path] = None,
    config_path: Optional[Path] = None,
    mapping_path: Optional[Path] = None,
    output_format: Optional[str] = None,
    output_path: Optional[Path] = None,
    strategy: Optional[str] = None,
    search: Optional[str] = None,
    ci: bool = False,
) -> int:
    """Main analysis orchestrator. Returns exit code."""
    start_time = time.time()

    # Auto-detect CI
    is_ci = ci or bool(
        os.environ.get("TF_BUILD")
        or os.environ.get("GITHUB_ACTIONS")
        or os.environ.get("CI")
        or os.environ.get("JENKINS_URL")
    )

    cli_overrides: dict = {}
    if search:
        cli_overrides.setdefault("engine", {})["search"] = search
    if output_format:
        cli_overrides.setdefault("output", {})["format"] = output_format
    if strategy:
        cli_overrides.setdefault("output", {})["strategy"] = strategy
    if mapping_path:
        cli_overrides.setdefault("mapping", {})["path"] = str(mapping_path)

    config = get_effective_config(
        project_path=project_path,
        config_path=config_path,
        cli_overrides=cli_overrides or None,
    )

    try:
        settings = get_engine_settings(config)
    except ValidationError as e:
        console.print(f"  [red]ERROR[/red] Invalid engine configuration: {e.error_count()} error(s)")
        for err in e.errors():
            console.print(f"    {'.'.join(str(p) for p in err['loc']) or 'engine'}: {err['msg']}")
        return EXIT_CONFIG_ERROR

    output_config = config.get("output") or {}
    fmt = str(output_config.get("format", "markdown")).lower()
    if fmt not in OUTPUT_FORMATS:
        console.print(f"  [red]ERROR[/red] Unknown output format: {fmt}")
        return EXIT_CONFIG_ERROR

    try:
        selected_strategy = get_strategy(str(output_config.get("strategy") or STRATEGIES[0].name)).name
    except KeyError as e:
        console.print(f"  [red]ERROR[/red] {e.args[0]}")
        return EXIT_CONFIG_ERROR

    mapping_file = (config.get("mapping") or {}).get("path") or None
    try:
        table = load_permission_table(Path(mapping_file) if mapping_file else None)
        grants = load_grants(Path(grants_path))
        roles = load_roles(Path(roles_path) if roles_path else None)
        assignments = load_assignments(Path(assignments_path)) if assignments_path else None
        if names_path:
            grants = apply_identity_names(grants, load_identity_names(Path(names_path)))
    except (SnapshotError, MappingError) as e:
        console.print(f"  [red]ERROR[/red] {e}")
        return EXIT_INPUT_ERROR

    if output_path is None and project_path is not None:
        output_path = default_output_path(Path(project_path), output_config, fmt)

    # Banner
    console.print()
    console.print(f"  [bold cyan]ROLEMAP[/bold cyan] v{__version__}")
    vault_name = (config.get("vault") or {}).get("name")
    if vault_name:
        console.print(f"  Vault:      [white]{vault_name}[/white]")
    console.print(f"  Policies:   [white]{len(grants)}[/white]")
    console.print(
        f"  Roles:      [white]{len(candidate_roles(roles, settings))}[/white] candidates "
        f"of {len(roles)}"
    )
    console.print(f"  Strategy:   [white]{selected_strategy}[/white]")
    console.print(f"  Search:     [white]{settings.search}[/white]")
    console.print()

    analyses = analyze_grants(grants, roles, table, settings, assignments)
    for analysis in analyses:
        _print_analysis(analysis, selected_strategy)

    duration = time.time() - start_time
    verdict = calculate_verdict(analyses, selected_strategy)
    exit_code = get_exit_code(verdict, config)

    if output_path and fmt == "junit":
        junit_result = export_junit_results(
            analyses, Path(output_path), project_name=vault_name or "rolemap", duration=duration
        )
        console.print(
            f"\n  [green]OK[/green] JUnit XML: {junit_result['total_tests']} tests, "
            f"{junit_result['failures']} failures"
        )
    else:
        text = render_output(analyses, fmt, selected_strategy, config, duration)
        if output_path:
            out = Path(output_path)
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(text, encoding="utf-8")
            console.print(f"\n  [green]OK[/green] {fmt} written to {out}")
        else:
            print(text)

    verdict_colors = {"READY": "green", "PARTIAL": "yellow", "BLOCKED": "red"}
    color = verdict_colors.get(verdict.value, "white")
    console.print(f"\n  [{color}]Verdict: {verdict.value}[/{color}]")
    console.print()

    if is_ci:
        console.print(f"  CI Mode: Exiting with code {exit_code}")
        return exit_code
    return 0


def run_coverage(
    grants_path: Path,
    assignments_path: Path,
    roles_path: Optional[Path] = None,
    mapping_path: Optional[Path] = None,
    project_path: Optional[Path] = None,
    config_path: Optional[Path] = None,
) -> int:
    """Print what each identity already holds through assigned roles."""
    cli_overrides: dict = {}
    if mapping_path:
        cli_overrides["mapping"] = {"path": str(mapping_path)}
    config = get_effective_config(
        project_path=project_path,
        config_path=config_path,
        cli_overrides=cli_overrides or None,
    )
    try:
        settings = get_engine_settings(config)
    except ValidationError as e:
        console.print(f"  [red]ERROR[/red] Invalid engine configuration: {e.error_count()} error(s)")
        return EXIT_CONFIG_ERROR

    mapping_file = (config.get("mapping") or {}).get("path") or None
    try:
        table = load_permission_table(Path(mapping_file) if mapping_file else None)
        grants = load_grants(Path(grants_path))
        roles = load_roles(Path(roles_path) if roles_path else None)
        assignments = load_assignments(Path(assignments_path))
    except (SnapshotError, MappingError) as e:
        console.print(f"  [red]ERROR[/red] {e}")
        return EXIT_INPUT_ERROR

    out = Console()
    table_view = Table(title="Existing RBAC coverage")
    table_view.add_column("Identity")
    table_view.add_column("Status")
    table_view.add_column("Covered", justify="right")
    table_view.add_column("Missing", justify="right")
    table_view.add_column("Excess", justify="right")
    table_view.add_column("Roles")

    for grant in grants:
        result = analyze_existing_coverage(grant, assignments, roles, table, settings)
        if result.is_fully_covered:
            status = "[green]Fully covered[/green]"
        elif result.covered_permissions:
            status = "[yellow]Partial[/yellow]"
        else:
            status = "[red]None[/red]"
        table_view.add_row(
            grant.display_name or grant.object_id,
            status,
            str(len(result.covered_permissions)),
            str(len(result.missing_permissions)),
            str(len(result.excess_permissions)),
            ", ".join(m.role_name for m in result.role_matches) or "-",
        )

    out.print(table_view)
    return 0


def show_mapping(category: Optional[str] = None, mapping_path: Optional[Path] = None) -> int:
    """Print the permission mapping table."""
    try:
        table = load_permission_table(Path(mapping_path) if mapping_path else None)
    except MappingError as e:
        console.print(f"  [red]ERROR[/red] {e}")
        return EXIT_INPUT_ERROR

    out = Console()
    view = Table(title="Access policy -> RBAC data actions")
    view.add_column("Category")
    view.add_column("Permission")
    view.add_column("Data actions")

    for cat_name, actions_by_key in table.categories.items():
        if category and cat_name != category.lower():
            continue
        for action_key, actions in actions_by_key.items():
            view.add_row(cat_name, action_key, "\n".join(actions))

    out.print(view)
    console.print(f"  {len(table.known_actions)} distinct data actions")
    return 0


def show_strategies() -> int:
    """Print the strategy catalog."""
    out = Console()
    view = Table(title="Strategies")
    view.add_column("Strategy")
    view.add_column("Coverage", justify="right")
    view.add_column("Excess", justify="right")
    view.add_column("Role count", justify="right")
    view.add_column("Threshold", justify="right")
    view.add_column("Description")

    for s in STRATEGIES:
        view.add_row(
            s.name,
            str(s.weights.coverage),
            str(s.weights.excess),
            str(s.weights.role_count),
            str(s.threshold),
            s.description,
        )

    out.print(view)
    return 0
