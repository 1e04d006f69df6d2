"""
jobber: configuration schema and validation

File: src/jobber/config/schema.py
Last updated: 2026-10-19

Purpose
- Define the built-in defaults for a ``jobber`` run and the rules every effective
  config must satisfy before a job is touched.

Functional requirements
- Every section is checked field by field against a rule table; failures are reported
  with their dotted path (``repair.quarantine_dir``) instead of stopping at the first.
- ``repair.quarantine_dir`` must be a single directory name so archives stay inside
  the job being repaired.
- Profiles are partial overlays of ``repair``, ``output`` and ``observability`` and are
  checked with the same rules.
- A schema version other than the supported one is rejected with migration guidance.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Callable, Collection, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, Literal, TypedDict

from jobber.constants import (
    CONFIG_SCHEMA_VERSION,
    DEFAULT_LAST_LINK_TARGET,
    DEFAULT_QUARANTINE_DIR,
)

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION
BUILTIN_PROFILE_NAMES: Final[tuple[str, ...]] = ("report", "repair")

REPAIR_MODES: Final[tuple[str, ...]] = ("report", "repair")
OUTPUT_FORMATS: Final[tuple[str, ...]] = ("text", "json")
LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR")

# (section, key) pairs resolved against the config file's directory.
PATH_FIELDS: Final[tuple[tuple[str, str], ...]] = (("observability", "log_dir"),)

_PROFILE_NAME = re.compile(r"[a-z][a-z0-9_-]*")


class MetaConfig(TypedDict):
    schema_version: int


class RepairConfig(TypedDict):
    mode: Literal["report", "repair"]
    quarantine_dir: str
    last_link_target: str


class OutputConfig(TypedDict):
    format: Literal["text", "json"]
    quiet: bool


class ObservabilityConfig(TypedDict):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"]
    log_dir: str
    log_to_stdout: bool


class ProfileOverlay(TypedDict, total=False):
    repair: dict[str, object]
    output: dict[str, object]
    observability: dict[str, object]


class JobberConfig(TypedDict):
    meta: MetaConfig
    repair: RepairConfig
    output: OutputConfig
    observability: ObservabilityConfig
    profiles: dict[str, ProfileOverlay]


DEFAULT_CONFIG: Final[JobberConfig] = {
    "meta": {"schema_version": ConfigSchemaVersion},
    "repair": {
        "mode": "report",
        "quarantine_dir": DEFAULT_QUARANTINE_DIR,
        "last_link_target": DEFAULT_LAST_LINK_TARGET,
    },
    "output": {"format": "text", "quiet": False},
    "observability": {"log_level": "WARNING", "log_dir": "", "log_to_stdout": False},
    "profiles": {
        "report": {"repair": {"mode": "report"}},
        "repair": {"repair": {"mode": "repair"}},
    },
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    """Validation result; ``config`` is the normalized payload when there are no issues."""

    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        lines = [f"- {item.path}: {item.message}" for item in self.issues]
        super().__init__("invalid config:\n" + ("\n".join(lines) or "unknown validation failure"))


# ---------------------------------------------------------------------------
# Field rules: each returns the normalized value or raises ValueError(message).
# ---------------------------------------------------------------------------

FieldRule = Callable[[object], object]


def _text(value: object) -> str:
    if not isinstance(value, str):
        raise ValueError(f"expected string, got {type(value).__name__}")
    stripped = value.strip()
    if not stripped:
        raise ValueError("must not be empty")
    return stripped


def _flag(value: object) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"expected boolean, got {type(value).__name__}")
    return value


def _choice(allowed: tuple[str, ...], *, fold_case: bool = False) -> FieldRule:
    def rule(value: object) -> str:
        text = _text(value)
        if fold_case:
            text = text.upper()
        if text not in allowed:
            expected = ", ".join(sorted(allowed))
            raise ValueError(f"invalid value {text!r}; expected one of: {expected}")
        return text

    return rule


def _schema_version(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"expected integer, got {type(value).__name__}")
    if value != ConfigSchemaVersion:
        raise ValueError(migration_guidance(value))
    return value


def _directory_name(value: object) -> str:
    name = _text(value)
    if "/" in name or "\\" in name or "\x00" in name or name in {".", ".."}:
        raise ValueError("must be a single directory name inside the job directory")
    return name


def _optional_path(value: object) -> str:
    # Empty disables the file sink.
    if value == "":
        return ""
    path = _text(value)
    if "\x00" in path:
        raise ValueError("must not contain NUL bytes")
    return path


_RULES: Final[dict[str, dict[str, FieldRule]]] = {
    "meta": {"schema_version": _schema_version},
    "repair": {
        "mode": _choice(REPAIR_MODES),
        "quarantine_dir": _directory_name,
        "last_link_target": _text,
    },
    "output": {"format": _choice(OUTPUT_FORMATS), "quiet": _flag},
    "observability": {
        "log_level": _choice(LOG_LEVELS, fold_case=True),
        "log_dir": _optional_path,
        "log_to_stdout": _flag,
    },
}
_OVERLAY_SECTIONS: Final[tuple[str, ...]] = ("repair", "output", "observability")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def default_config() -> JobberConfig:
    """Return a deep copy of the built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def migration_guidance(found_version: int) -> str:
    if found_version < ConfigSchemaVersion:
        return (
            f"schema version {found_version} is older than supported {ConfigSchemaVersion}; "
            "upgrade jobber.toml to the current schema"
        )
    if found_version > ConfigSchemaVersion:
        return (
            f"schema version {found_version} is newer than supported {ConfigSchemaVersion}; "
            "upgrade jobber"
        )
    return "schema version is current"


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deep-merge ``overlay`` onto a copy of ``base``; neither input is modified."""

    merged: dict[str, Any] = copy.deepcopy(dict(base))
    for key, value in overlay.items():
        if isinstance(value, Mapping):
            current = merged.get(key)
            merged[key] = merge_config(current if isinstance(current, Mapping) else {}, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def apply_profile_overlay(config: Mapping[str, object], profile: str | None) -> dict[str, Any]:
    """Merge the named profile onto ``config`` and re-validate the result."""

    name = (profile or "").strip()
    if not name:
        return merge_config({}, config)

    profiles = config.get("profiles")
    overlay = profiles.get(name) if isinstance(profiles, Mapping) else None
    if overlay is None:
        raise ConfigValidationError(
            (ConfigValidationIssue("profiles", f"profile {name!r} is not defined"),)
        )
    if not isinstance(overlay, Mapping):
        raise ConfigValidationError(
            (ConfigValidationIssue(f"profiles.{name}", "profile overlay must be an object"),)
        )
    return assert_valid_config(merge_config(config, overlay), active_profile=name)


def validate_config(
    config: Mapping[str, object] | object,
    *,
    active_profile: str | None = None,
) -> ConfigValidationResult:
    """Validate ``config`` and collect every issue with its dotted field path."""

    issues: list[ConfigValidationIssue] = []
    if not isinstance(config, Mapping):
        issues.append(
            ConfigValidationIssue("<root>", f"expected object, got {type(config).__name__}")
        )
        return ConfigValidationResult(config=None, issues=tuple(issues))

    _check_keys(config, {*_RULES, "profiles"}, "", issues, required=_RULES)
    normalized: dict[str, Any] = {}
    for section in _RULES:
        if section in config:
            normalized[section] = _check_section(
                config[section], section, section, issues, partial=False
            )

    if "profiles" in config:
        normalized["profiles"] = _check_profiles(config["profiles"], issues)

    name = (active_profile or "").strip()
    if name and name not in normalized.get("profiles", {}):
        issues.append(ConfigValidationIssue("profiles", f"profile {name!r} is not defined"))

    if issues:
        return ConfigValidationResult(config=None, issues=tuple(issues))
    return ConfigValidationResult(config=normalized, issues=())


def assert_valid_config(
    config: Mapping[str, object] | object,
    *,
    active_profile: str | None = None,
) -> dict[str, Any]:
    """Validate config and raise ``ConfigValidationError`` on failure."""

    result = validate_config(config, active_profile=active_profile)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _check_keys(
    payload: Mapping[str, object],
    allowed: Collection[str],
    path: str,
    issues: list[ConfigValidationIssue],
    *,
    required: Collection[str] = (),
) -> None:
    for key in sorted(payload, key=str):
        if key not in allowed:
            issues.append(ConfigValidationIssue(_join(path, str(key)), "unknown field"))
    for key in sorted(required):
        if key not in payload:
            issues.append(ConfigValidationIssue(_join(path, key), "missing required field"))


def _check_section(
    payload: object,
    section: str,
    path: str,
    issues: list[ConfigValidationIssue],
    *,
    partial: bool,
) -> dict[str, Any]:
    rules = _RULES[section]
    if not isinstance(payload, Mapping):
        issues.append(ConfigValidationIssue(path, f"expected object, got {type(payload).__name__}"))
        return {}

    _check_keys(payload, rules, path, issues, required=() if partial else rules)
    out: dict[str, Any] = {}
    for key, rule in rules.items():
        if key not in payload:
            continue
        try:
            out[key] = rule(payload[key])
        except ValueError as exc:
            issues.append(ConfigValidationIssue(_join(path, key), str(exc)))
    return out


def _check_profiles(payload: object, issues: list[ConfigValidationIssue]) -> dict[str, Any]:
    if not isinstance(payload, Mapping):
        issues.append(
            ConfigValidationIssue("profiles", f"expected object, got {type(payload).__name__}")
        )
        return {}

    profiles: dict[str, Any] = {}
    for name in sorted(payload, key=str):
        path = _join("profiles", str(name))
        overlay = payload[name]
        if not isinstance(name, str) or not _PROFILE_NAME.fullmatch(name):
            issues.append(ConfigValidationIssue(path, "profile name must match [a-z][a-z0-9_-]*"))
            continue
        if not isinstance(overlay, Mapping):
            issues.append(
                ConfigValidationIssue(path, f"expected object, got {type(overlay).__name__}")
            )
            continue
        _check_keys(overlay, _OVERLAY_SECTIONS, path, issues)
        profiles[name] = {
            section: _check_section(
                overlay[section], section, _join(path, section), issues, partial=True
            )
            for section in _OVERLAY_SECTIONS
            if section in overlay
        }
    return profiles


__all__ = [
    "BUILTIN_PROFILE_NAMES",
    "DEFAULT_CONFIG",
    "LOG_LEVELS",
    "OUTPUT_FORMATS",
    "PATH_FIELDS",
    "REPAIR_MODES",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "JobberConfig",
    "ObservabilityConfig",
    "OutputConfig",
    "ProfileOverlay",
    "RepairConfig",
    "apply_profile_overlay",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "migration_guidance",
    "validate_config",
]
