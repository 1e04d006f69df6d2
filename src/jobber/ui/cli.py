"""Command-line interface for jobber."""

from __future__ import annotations

import argparse
import json
import sys
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jobber import __version__
from jobber.config import ConfigLoadError, ConfigValidationError, load_config
from jobber.domain.job import JobSettings
from jobber.errors import UsageError
from jobber.observability.logging import correlation_scope, setup_logging, shutdown_logging
from jobber.runner import RunReport, audit_jobs
from jobber.ui.render import CLIRenderer, create_renderer


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 1

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for ``jobber [options] JOB_DIR...``."""

    parser = argparse.ArgumentParser(
        prog="jobber",
        description=(
            "Audit (and optionally repair) the build history of Jenkins job directories.\n\n"
            "Examples:\n"
            "  jobber /var/lib/jenkins/jobs/*          Report problems only\n"
            "  jobber --solve /var/lib/jenkins/jobs/x  Apply the proposed solutions\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("job_dirs", nargs="+", metavar="JOB_DIR", help="Jenkins job directory")
    parser.add_argument(
        "--solve",
        "-s",
        action="store_true",
        default=False,
        help="Try to automatically solve the problems found.",
    )
    parser.add_argument("--json", action="store_true", help="Emit deterministic JSON output")
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        default=False,
        help="Do not print the scanning progress line.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Show what each solution does and log at INFO level.",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Disable colored output (also respects NO_COLOR env var).",
    )
    parser.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to jobber TOML config (default: ./jobber.toml if present).",
    )
    parser.add_argument(
        "--profile",
        default=None,
        help="Optional config profile overlay name (report, repair).",
    )
    parser.add_argument(
        "--log-dir",
        default=None,
        help="Write JSON-lines logs under this directory.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


# ---------------------------------------------------------------------------
# Entrypoints
# ---------------------------------------------------------------------------


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, audit the given jobs, and return the process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)

    try:
        return _cmd_audit(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code


def _cmd_audit(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    repair_section = _section(config, "repair")
    output_section = _section(config, "output")

    run_id = uuid.uuid4().hex[:12]
    setup_logging(_section(config, "observability"), run_id=run_id)
    try:
        as_json = output_section.get("format") == "json"
        renderer = _get_renderer(args, quiet=bool(output_section.get("quiet")) or as_json)

        renderer.progress_start()
        try:
            with correlation_scope(run_id=run_id):
                run = audit_jobs(
                    args.job_dirs,
                    settings=JobSettings.from_config(config),
                    repair=repair_section.get("mode") == "repair",
                    on_job=renderer.progress_mark,
                )
        except UsageError as exc:
            renderer.progress_end()
            raise CLIError(str(exc), exit_code=2) from exc
        renderer.progress_end()

        if as_json:
            _emit_json(run.to_dict())
        else:
            _render_run(renderer, run)
        return run.exit_code
    finally:
        shutdown_logging()


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------


def _emit_json(payload: Mapping[str, object]) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _get_renderer(args: argparse.Namespace, *, quiet: bool) -> CLIRenderer:
    return create_renderer(
        no_color=bool(getattr(args, "no_color", False)),
        verbose=bool(getattr(args, "verbose", False)),
        quiet=quiet,
    )


def _render_run(renderer: CLIRenderer, run: RunReport) -> None:
    renderer.run_report(run)
    if run.repair and renderer.verbose:
        applied = sum(job.applied_count for job in run.jobs)
        renderer.section(f"Applied {applied} solutions.")


# ---------------------------------------------------------------------------
# Helpers: config
# ---------------------------------------------------------------------------


def _load_effective_config(args: argparse.Namespace) -> dict[str, Any]:
    try:
        return load_config(
            args.config_path,
            profile=args.profile,
            cli_overrides=_cli_overrides(args),
        )
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=2) from exc


def _cli_overrides(args: argparse.Namespace) -> dict[str, object]:
    overrides: dict[str, object] = {}
    if args.solve:
        overrides["repair.mode"] = "repair"
    if args.json:
        overrides["output.format"] = "json"
    if args.quiet:
        overrides["output.quiet"] = True
    if args.verbose:
        overrides["observability.log_level"] = "INFO"
    if args.log_dir is not None:
        overrides["observability.log_dir"] = Path(args.log_dir).expanduser().resolve().as_posix()
    return overrides


def _section(config: Mapping[str, object], key: str) -> dict[str, Any]:
    value = config.get(key)
    return dict(value) if isinstance(value, Mapping) else {}


__all__ = ["CLIError", "build_parser", "run_cli"]
