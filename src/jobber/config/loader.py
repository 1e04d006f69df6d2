"""
jobber: runtime config loader

File: src/jobber/config/loader.py
Last updated: 2026-10-19

Purpose
- Build the effective config for one run out of defaults, ``jobber.toml``, ``JOBBER_*``
  environment variables and command-line overrides, in rising precedence.

Functional requirements
- An explicit ``--config`` path must exist; the implicit ``./jobber.toml`` is optional.
- The profile is taken from the caller first, then ``JOBBER_PROFILE``.
- ``observability.log_dir`` is resolved against the directory holding the config file.
- The result is validated after every layer is applied.
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Final

from jobber.config.schema import (
    PATH_FIELDS,
    apply_profile_overlay,
    assert_valid_config,
    default_config,
    merge_config,
)

DEFAULT_CONFIG_FILE: Final[str] = "jobber.toml"
ENV_PREFIX: Final[str] = "JOBBER_"

_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})
_FALSY: Final[frozenset[str]] = frozenset({"0", "false", "no", "off"})


class ConfigLoadError(ValueError):
    """Raised when config cannot be read or an override cannot be coerced."""


def _to_bool(raw: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ValueError(f"expected one of {sorted(_TRUTHY | _FALSY)}")


# Environment variable -> (config path, parser).
ENV_BINDINGS: Final[Mapping[str, tuple[tuple[str, ...], Callable[[str], object]]]] = {
    f"{ENV_PREFIX}REPAIR_MODE": (("repair", "mode"), str),
    f"{ENV_PREFIX}REPAIR_QUARANTINE_DIR": (("repair", "quarantine_dir"), str),
    f"{ENV_PREFIX}REPAIR_LAST_LINK_TARGET": (("repair", "last_link_target"), str),
    f"{ENV_PREFIX}OUTPUT_FORMAT": (("output", "format"), str),
    f"{ENV_PREFIX}OUTPUT_QUIET": (("output", "quiet"), _to_bool),
    f"{ENV_PREFIX}OBSERVABILITY_LOG_LEVEL": (("observability", "log_level"), str),
    f"{ENV_PREFIX}OBSERVABILITY_LOG_DIR": (("observability", "log_dir"), str),
    f"{ENV_PREFIX}OBSERVABILITY_LOG_TO_STDOUT": (("observability", "log_to_stdout"), _to_bool),
}


def load_config(
    config_path: str | Path | None = None,
    *,
    profile: str | None = None,
    cli_overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Return the validated effective config.

    ``cli_overrides`` keys are dotted config paths (``"repair.mode"``); ``None`` values
    are skipped so callers can pass unset flags straight through.
    """

    env = os.environ if environ is None else environ
    if config_path is None:
        source = Path.cwd() / DEFAULT_CONFIG_FILE
        file_payload = _read_toml(source) if source.exists() else {}
    else:
        source = Path(config_path).expanduser()
        if not source.exists():
            raise ConfigLoadError(f"config file not found: {source}")
        file_payload = _read_toml(source)

    config = assert_valid_config(merge_config(default_config(), file_payload))

    selected = (profile or env.get(f"{ENV_PREFIX}PROFILE") or "").strip() or None
    if selected is not None:
        config = apply_profile_overlay(config, selected)

    config = merge_config(config, _env_layer(env))
    config = merge_config(config, _dotted_layer(cli_overrides or {}))
    config = normalize_paths(config, base_dir=source.resolve().parent)
    return assert_valid_config(config, active_profile=selected)


def normalize_paths(config: Mapping[str, object], *, base_dir: Path) -> dict[str, Any]:
    """Return a copy of ``config`` with relative path fields anchored at ``base_dir``.

    Empty values mean "disabled" and are left alone.
    """

    result = merge_config({}, config)
    for section, key in PATH_FIELDS:
        block = result.get(section)
        if not isinstance(block, dict):
            continue
        raw = block.get(key)
        if isinstance(raw, str) and raw:
            candidate = Path(os.path.expandvars(raw)).expanduser()
            if not candidate.is_absolute():
                candidate = base_dir / candidate
            block[key] = Path(os.path.normpath(candidate)).as_posix()
    return result


def dump_effective_config(config: Mapping[str, object]) -> str:
    """Return a deterministic JSON dump of the effective config."""

    return json.dumps(config, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc


def _env_layer(env: Mapping[str, str]) -> dict[str, Any]:
    layer: dict[str, Any] = {}
    for name, (path, parse) in ENV_BINDINGS.items():
        raw = env.get(name)
        if raw is None:
            continue
        try:
            value = parse(raw.strip())
        except ValueError as exc:
            raise ConfigLoadError(f"{name} -> {'.'.join(path)}: {exc}") from exc
        _assign(layer, path, value)
    return layer


def _dotted_layer(overrides: Mapping[str, object]) -> dict[str, Any]:
    layer: dict[str, Any] = {}
    for key, value in overrides.items():
        if value is None:
            continue
        path = tuple(part for part in key.split(".") if part)
        if not path:
            raise ConfigLoadError(f"invalid override key {key!r}")
        _assign(layer, path, value)
    return layer


def _assign(target: dict[str, Any], path: tuple[str, ...], value: object) -> None:
    *parents, leaf = path
    for part in parents:
        target = target.setdefault(part, {})
    target[leaf] = value


__all__ = [
    "DEFAULT_CONFIG_FILE",
    "ENV_BINDINGS",
    "ENV_PREFIX",
    "ConfigLoadError",
    "dump_effective_config",
    "load_config",
    "normalize_paths",
]
