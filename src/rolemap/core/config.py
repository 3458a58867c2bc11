"""3-layer configuration system for rolemap.

Loads and merges configuration from:
1. Default settings (built-in)
2. Project config (.rolemap/config.yaml) or an explicit config file
3. CLI parameters (override)
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

CONFIG_DIR = ".rolemap"

DEFAULT_CONFIG: dict = {
    "engine": {
        "namespace": "microsoft.keyvault",
        "action_suffix": "/action",
        "search": "exhaustive",
        "max_combination_size": 5,
        "reduced_combination_size": 3,
        "large_pool_threshold": 20,
        "greedy_rounds": 3,
    },
    "mapping": {
        "path": "",
    },
    "output": {
        "format": "markdown",
        "strategy": "Max Coverage",
        "directory": ".rolemap/reports",
    },
    "vault": {
        "name": "",
        "subscription_id": "",
    },
    "ci": {
        "exit_codes": {"ready": 0, "partial": 2, "blocked": 1},
    },
}

SEARCH_MODES = ("exhaustive", "greedy")


class EngineSettings(BaseModel):
    """Tunables of the recommendation engine."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    namespace: str = "microsoft.keyvault"
    action_suffix: str = "/action"
    search: str = "exhaustive"
    max_combination_size: int = 5
    reduced_combination_size: int = 3
    large_pool_threshold: int = 20
    greedy_rounds: int = 3

    @field_validator("search")
    @classmethod
    def _known_mode(cls, v: str) -> str:
        v = v.lower()
        if v not in SEARCH_MODES:
            raise ValueError(f"search must be one of {', '.join(SEARCH_MODES)}")
        return v

    @field_validator("max_combination_size", "reduced_combination_size", "greedy_rounds")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @model_validator(mode="after")
    def _reduced_not_larger(self) -> "EngineSettings":
        if self.reduced_combination_size > self.max_combination_size:
            raise ValueError("reduced_combination_size cannot exceed max_combination_size")
        return self


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Arrays are replaced, not merged."""
    result = {}
    for key in base:
        result[key] = base[key]
    for key, value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            result[key] = deep_merge(base_value, value)
        else:
            result[key] = value
    return result


def load_config_file(config_path: Path) -> dict:
    """Load a YAML config file. Missing, empty or unparsable files yield {}."""
    if not config_path.exists():
        return {}
    try:
        content = config_path.read_text(encoding="utf-8-sig")  # utf-8-sig strips BOM
        data = yaml.safe_load(content) or {}
    except (OSError, yaml.YAMLError):
        return {}
    return data if isinstance(data, dict) else {}


def load_project_config(project_path: Path) -> dict:
    """Load project configuration from .rolemap/config.yaml."""
    return load_config_file(project_path / CONFIG_DIR / "config.yaml")


def get_effective_config(
    project_path: Optional[Path] = None,
    config_path: Optional[Path] = None,
    cli_overrides: Optional[dict] = None,
) -> dict:
    """Get the fully resolved configuration for an analysis run."""
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path is not None:
        file_config = load_config_file(Path(config_path))
    elif project_path is not None:
        file_config = load_project_config(Path(project_path))
    else:
        file_config = {}
    if file_config:
        config = deep_merge(config, file_config)

    if cli_overrides:
        config = deep_merge(config, cli_overrides)

    if project_path is not None:
        config["_project_path"] = str(project_path)

    return config


def get_engine_settings(config: dict) -> EngineSettings:
    """Build validated engine settings from the ``engine`` config section."""
    return EngineSettings(**(config.get("engine") or {}))
