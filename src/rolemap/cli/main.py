"""rolemap CLI - recommend RBAC roles for Key Vault access policies."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from ..core.strategies import STRATEGY_NAMES

_existing_file = click.Path(exists=True, dir_okay=False)


@click.group()
@click.version_option(package_name="rolemap")
def rolemap_cli() -> None:
    """rolemap - map access-policy grants to RBAC role recommendations."""


@rolemap_cli.command()
@click.option("--grants", "-g", type=_existing_file, required=True, help="Access policies JSON (vault export or list)")
@click.option("--roles", "-r", type=_existing_file, help="Role definitions JSON (default: built-in Key Vault roles)")
@click.option("--assignments", "-a", type=_existing_file, help="Role assignments JSON for existing-coverage analysis")
@click.option("--names", "-n", type=_existing_file, help="Resolved identity names JSON")
@click.option("--project", "-p", type=click.Path(exists=True, file_okay=False), help="Project path with .rolemap/config.yaml")
@click.option("--config", "-c", "config_file", type=_existing_file, help="Explicit config YAML")
@click.option("--mapping", "-m", type=_existing_file, help="Custom permission mapping CSV")
@click.option("--output-format", "-f", type=click.Choice(["markdown", "json", "csv", "powershell", "junit"]))
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write output to a file instead of stdout")
@click.option("--strategy", "-s", type=click.Choice(STRATEGY_NAMES, case_sensitive=False), help="Strategy to export")
@click.option("--search", type=click.Choice(["exhaustive", "greedy"]), help="Search mode")
@click.option("--ci", is_flag=True, help="CI mode: exit code reflects migration readiness")
def analyze(
    grants: str,
    roles: str | None,
    assignments: str | None,
    names: str | None,
    project: str | None,
    config_file: str | None,
    mapping: str | None,
    output_format: str | None,
    output: str | None,
    strategy: str | None,
    search: str | None,
    ci: bool,
) -> None:
    """Recommend role combinations for every access policy."""
    from ..core.orchestrator import run_analysis

    exit_code = run_analysis(
        grants_path=Path(grants),
        roles_path=Path(roles) if roles else None,
        assignments_path=Path(assignments) if assignments else None,
        names_path=Path(names) if names else None,
        project_path=Path(project) if project else None,
        config_path=Path(config_file) if config_file else None,
        mapping_path=Path(mapping) if mapping else None,
        output_format=output_format,
        output_path=Path(output) if output else None,
        strategy=strategy,
        search=search,
        ci=ci,
    )
    if exit_code:
        sys.exit(exit_code)


@rolemap_cli.command()
@click.option("--grants", "-g", type=_existing_file, required=True)
@click.option("--assignments", "-a", type=_existing_file, required=True)
@click.option("--roles", "-r", type=_existing_file, help="Role definitions JSON (default: built-in Key Vault roles)")
@click.option("--project", "-p", type=click.Path(exists=True, file_okay=False), help="Project path with .rolemap/config.yaml")
@click.option("--config", "-c", "config_file", type=_existing_file, help="Explicit config YAML")
@click.option("--mapping", "-m", type=_existing_file, help="Custom permission mapping CSV")
def coverage(
    grants: str,
    assignments: str,
    roles: str | None,
    mapping: str | None,
    project: str | None,
    config_file: str | None,
) -> None:
    """Show which policies are already covered by assigned roles."""
    from ..core.orchestrator import run_coverage

    exit_code = run_coverage(
        grants_path=Path(grants),
        assignments_path=Path(assignments),
        roles_path=Path(roles) if roles else None,
        mapping_path=Path(mapping) if mapping else None,
        project_path=Path(project) if project else None,
        config_path=Path(config_file) if config_file else None,
    )
    if exit_code:
        sys.exit(exit_code)


@rolemap_cli.command("mapping")
@click.option("--category", type=click.Choice(["keys", "secrets", "certificates", "storage"]))
@click.option("--mapping", "-m", "mapping_file", type=_existing_file, help="Custom permission mapping CSV")
def mapping_cmd(category: str | None, mapping_file: str | None) -> None:
    """Print the access policy -> RBAC data action mapping."""
    from ..core.orchestrator import show_mapping

    exit_code = show_mapping(category, Path(mapping_file) if mapping_file else None)
    if exit_code:
        sys.exit(exit_code)


@rolemap_cli.command()
def strategies() -> None:
    """Print the strategy catalog."""
    from ..core.orchestrator import show_strategies

    show_strategies()


@rolemap_cli.command()
@click.option("--project", "-p", type=click.Path(exists=True, file_okay=False), required=True)
def init(project: str) -> None:
    """Initialize rolemap configuration in a project."""
    from ..core.orchestrator import initialize_project

    initialize_project(Path(project))


def main() -> None:
    rolemap_cli()


if __name__ == "__main__":
    main()
