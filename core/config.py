"""Configuration loading: built-in defaults, YAML file, environment overrides."""

from __future__ import annotations

import copy
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "store": {
        "backend": "local",
        "url": "http://localhost:6969",
        "timeout_seconds": 30.0,
        "db_path": "data/hypermem.db",
    },
    "models": {
        "embedding": {"active_provider": "mock", "providers": {"mock": {"dimensions": 64}}},
        "classifier": {"active_provider": "mock", "providers": {}},
    },
    "retrieval": {"default_limit": 10, "overfetch_factor": 2},
    "logging": {"level": "WARNING"},
    "paths": {"audit_log_path": "logs/audit.jsonl"},
}

# env var -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "HYPERMEM_BACKEND": ("store", "backend"),
    "HELIX_URL": ("store", "url"),
    "HYPERMEM_DB_PATH": ("store", "db_path"),
    "LOG_LEVEL": ("logging", "level"),
}


def load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML from file, returning empty mapping when missing."""
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return data


def merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge dictionaries."""
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


def apply_env_overrides(config: dict[str, Any], environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Overlay recognized environment variables on ``config``."""
    env = os.environ if environ is None else environ
    merged = copy.deepcopy(config)
    for name, (section, key) in ENV_OVERRIDES.items():
        value = env.get(name)
        if value:
            merged[section] = {**merged.get(section, {}), key: value}
    return merged


def ensure_runtime_dirs(root: Path, config: dict[str, Any]) -> dict[str, Path]:
    """Ensure data and log directories exist and return resolved paths."""
    db_path = (root / config.get("store", {}).get("db_path", "data/hypermem.db")).resolve()
    audit_log_path = (root / config.get("paths", {}).get("audit_log_path", "logs/audit.jsonl")).resolve()

    db_path.parent.mkdir(parents=True, exist_ok=True)
    audit_log_path.parent.mkdir(parents=True, exist_ok=True)

    return {"db_path": db_path, "audit_log_path": audit_log_path}


def load_effective_config(root: Path, environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Defaults, then ``config/default.yaml`` under ``root``, then the environment."""
    merged = merge_dicts(copy.deepcopy(DEFAULT_CONFIG), load_yaml(root / "config" / "default.yaml"))
    return apply_env_overrides(merged, environ)
