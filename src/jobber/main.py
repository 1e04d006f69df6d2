"""Process entrypoint for ``jobber``: runs the CLI and maps failures to exit codes."""

from __future__ import annotations

import sys
import traceback
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence


class ExitCode(IntEnum):
    """Exit status of one ``jobber`` invocation."""

    SUCCESS = 0
    PROBLEMS_FOUND = 1
    USAGE_ERROR = 2
    REPAIR_FAILED = 3
    INTERNAL_ERROR = 4


def cli_entrypoint(argv: Sequence[str] | None = None) -> int:
    """Entrypoint used by ``python -m jobber`` and the ``jobber`` console script."""

    try:
        from jobber.ui.cli import run_cli

        status: object = run_cli(argv)
    except SystemExit as exc:
        status = exc.code
    except BaseException as exc:  # noqa: BLE001 - CLI boundary normalization.
        code = _classify(exc)
        if code is ExitCode.INTERNAL_ERROR:
            traceback.print_exception(type(exc), exc, exc.__traceback__, file=sys.stderr)
        else:
            print(str(exc).strip() or type(exc).__name__, file=sys.stderr)
        return int(code)
    return _as_exit_code(status)


def _as_exit_code(status: object) -> int:
    if status is None:
        return int(ExitCode.SUCCESS)
    if isinstance(status, int):
        try:
            return int(ExitCode(status))
        except ValueError:
            return int(ExitCode.INTERNAL_ERROR)
    if isinstance(status, str) and status.strip():
        print(status.strip(), file=sys.stderr)
    return int(ExitCode.INTERNAL_ERROR)


def _classify(exc: BaseException) -> ExitCode:
    from jobber.config import ConfigLoadError, ConfigValidationError
    from jobber.errors import RepairError, UsageError

    for item in _exception_chain(exc):
        if isinstance(item, (ConfigLoadError, ConfigValidationError, UsageError)):
            return ExitCode.USAGE_ERROR
        if isinstance(item, RepairError):
            return ExitCode.REPAIR_FAILED
    return ExitCode.INTERNAL_ERROR


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield ``exc`` then its explicit causes or implicit contexts, once each."""

    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None


__all__ = ["ExitCode", "cli_entrypoint"]
