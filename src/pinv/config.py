"""pinv configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site, not in this module)
  2. Environment variables  (PINV_DB, PINV_TEMPLATE_DIR)
  3. Per-project pinv.yaml  (in the working directory)
  4. Global ~/.pinv/config.yaml
  5. Hardcoded defaults

All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".pinv"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "pinv.yaml"

# Known top-level sections; unknown keys produce a warning
_KNOWN_SECTIONS: frozenset[str] = frozenset(["database", "templates"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class DatabaseCfg:
    """Database location (pinv.yaml: database:)."""

    path: Path = field(default_factory=lambda: _GLOBAL_CONFIG_DIR / "pinv.db")


@dataclass
class TemplatesCfg:
    """Label template settings (pinv.yaml: templates:).

    Attributes:
        directory: Where user templates (``*.svg.gz``) are looked up by name.
        strict: Unbound-placeholder policy for label fills. True fails the
            fill; False blank-fills and warns.
    """

    directory: Path = field(default_factory=lambda: _GLOBAL_CONFIG_DIR / "templates")
    strict: bool = True


@dataclass
class PinvConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    database: DatabaseCfg = field(default_factory=DatabaseCfg)
    templates: TemplatesCfg = field(default_factory=TemplatesCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}'; ignored.",
                UserWarning,
                stacklevel=4,
            )


def _as_section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Config section '{name}' must be a mapping, got {section!r}")
    return section


def _as_path(value: Any, key: str) -> Path:
    if not isinstance(value, (str, Path)) or not str(value).strip():
        raise ConfigError(f"Config value '{key}' must be a path, got {value!r}")
    return Path(value).expanduser()


def _as_bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"Config value '{key}' must be true or false, got {value!r}")
    return value


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> PinvConfig:
    """Build a *PinvConfig* from a merged raw YAML dict."""
    cfg = PinvConfig()

    if "database" in data:
        d = _as_section(data, "database")
        if "path" in d:
            cfg.database = DatabaseCfg(path=_as_path(d["path"], "database.path"))

    if "templates" in data:
        t = _as_section(data, "templates")
        cfg.templates = TemplatesCfg(
            directory=_as_path(t["directory"], "templates.directory")
            if "directory" in t
            else cfg.templates.directory,
            strict=_as_bool(t["strict"], "templates.strict")
            if "strict" in t
            else cfg.templates.strict,
        )

    return cfg


def _apply_env_overrides(cfg: PinvConfig) -> PinvConfig:
    """Apply PINV_* environment variable overrides (layer 2)."""
    if db := os.environ.get("PINV_DB"):
        cfg.database.path = Path(db).expanduser()
    if template_dir := os.environ.get("PINV_TEMPLATE_DIR"):
        cfg.templates.directory = Path(template_dir).expanduser()
    return cfg


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file '{path}' is not valid YAML: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file '{path}' must contain a mapping at the top level")
    return raw


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> PinvConfig:
    """Load and return a merged *PinvConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *pinv.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If a config file is not valid YAML or holds a value of
            the wrong type.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    # Layer 1: global config
    if global_path.exists():
        raw_global = _read_yaml(global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    # Layer 2: per-project config
    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = _read_yaml(project_cfg_path)
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)

    # Layer 3: env var overrides
    return _apply_env_overrides(cfg)


def ensure_global_config(
    global_config_path: Path | None = None,
) -> Path:
    """Create ``~/.pinv/config.yaml`` with defaults if it does not exist.

    Creates parent directory with mode 0o700 and the config file with
    mode 0o600 (owner-readable only).

    Args:
        global_config_path: Override path (for testing).

    Returns:
        Path to the global config file.
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        content = (
            "# pinv global configuration.\n"
            "# A pinv.yaml in the working directory overrides these values.\n"
            "\n"
            "database:\n"
            "  path: ~/.pinv/pinv.db\n"
            "\n"
            "templates:\n"
            "  directory: ~/.pinv/templates\n"
            "  strict: true\n"
        )
        target.write_text(content, encoding="utf-8")
        target.chmod(0o600)

    return target
