"""
jobber: structured logging

File: src/jobber/observability/logging.py
Last updated: 2026-10-19

Purpose
- Send every log record of a run, from stdlib ``logging`` and from ``structlog``, to one
  JSON-lines sink through a queue so audits never block on log I/O.

Functional requirements
- One JSON object per line: timestamp, level, logger, message, the correlation keys in
  scope (``run_id``, ``job``, ``check_id``) and any extra fields under ``fields``.
- ``correlation_scope(job=...)`` binds keys for the current context only; nested scopes
  restore the outer values on exit.
- With no log directory, records go to stderr at the configured level.
- A full queue drops records and counts them instead of blocking the caller.
"""

from __future__ import annotations

import atexit
import contextvars
import json
import logging
import logging.handlers
import queue
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Final

import structlog

CORRELATION_KEYS: Final[tuple[str, ...]] = ("run_id", "job", "check_id")

# Attributes every LogRecord carries; anything else on a record is an extra field.
_RECORD_ATTRS: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName", "correlation"}

_CORRELATION: contextvars.ContextVar[Mapping[str, str]] = contextvars.ContextVar(
    "jobber_correlation", default={}
)

_active_lock = threading.Lock()
_active: StructuredLoggingHandle | None = None
_atexit_registered = False


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Settings for one run's logging.

    ``base_log_dir=None`` disables the file sink; records then go to stderr.
    """

    run_id: str
    base_log_dir: Path | str | None = None
    logger_name: str = "jobber"
    level: int | str = "WARNING"
    queue_size: int = 4096
    log_filename: str = "jobber.jsonl"
    log_to_stdout: bool = False


def setup_logging(
    observability_config: Mapping[str, object] | None = None,
    *,
    run_id: str,
    log_dir: Path | str | None = None,
    logger_name: str = "jobber",
) -> logging.Logger:
    """Configure logging from an ``[observability]`` config section; return the logger.

    ``log_dir`` overrides the section's ``log_dir``. An empty directory disables the
    file sink.
    """

    section = observability_config or {}
    level = section.get("log_level", "WARNING")
    directory = log_dir if log_dir is not None else section.get("log_dir")
    handle = setup_structured_logging(
        LoggingConfig(
            run_id=run_id,
            base_log_dir=directory if isinstance(directory, (str, Path)) and directory else None,
            logger_name=logger_name,
            level=level if isinstance(level, (int, str)) else "WARNING",
            log_to_stdout=bool(section.get("log_to_stdout", False)),
        )
    )
    return handle.logger


def configure_structlog() -> None:
    """Route ``structlog`` events into stdlib ``logging`` as message plus extra fields."""

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


class _CorrelationFilter(logging.Filter):
    """Stamp the correlation keys in scope onto each record as it is logged."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation = dict(_CORRELATION.get())
        return True


class _DroppingQueueHandler(logging.handlers.QueueHandler):
    def __init__(self, log_queue: queue.Queue[logging.LogRecord], level: int) -> None:
        super().__init__(log_queue)
        self.setLevel(level)
        self.addFilter(_CorrelationFilter())
        self.dropped = 0
        self._dropped_lock = threading.Lock()

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        # The listener runs in-process: keep exc_info for the sink, only freeze the message.
        record.message = record.getMessage()
        record.msg, record.args = record.message, None
        return record

    def enqueue(self, record: logging.LogRecord) -> None:
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            with self._dropped_lock:
                self.dropped += 1


class _JsonLineFormatter(logging.Formatter):
    def __init__(self, run_id: str) -> None:
        super().__init__()
        self._run_id = run_id

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "run_id": self._run_id,
        }
        for key in CORRELATION_KEYS:
            value = getattr(record, key, None)
            if isinstance(value, str) and value:
                event[key] = value
        event.update(getattr(record, "correlation", {}))

        fields = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in CORRELATION_KEYS and not key.startswith("_")
        }
        if fields:
            event["fields"] = fields
        if record.exc_info:
            event["exception"] = self.formatException(record.exc_info)
        return json.dumps(event, sort_keys=True, default=str, ensure_ascii=False)


class StructuredLoggingHandle:
    """The live logger of a run plus what is needed to drain and close it."""

    def __init__(
        self,
        *,
        logger: logging.Logger,
        run_id: str,
        log_path: Path | None,
        queue_handler: _DroppingQueueHandler,
        listener: logging.handlers.QueueListener,
        sinks: tuple[logging.Handler, ...],
    ) -> None:
        self.logger = logger
        self.run_id = run_id
        self.log_path = log_path
        self._queue_handler = queue_handler
        self._listener = listener
        self._sinks = sinks
        self._lock = threading.Lock()
        self._closed = False

    @property
    def dropped_records(self) -> int:
        return self._queue_handler.dropped

    @property
    def is_shutdown(self) -> bool:
        return self._closed

    def shutdown(self) -> None:
        with self._lock:
            if self._closed:
                return
            self.logger.removeHandler(self._queue_handler)
            self._listener.stop()
            self._queue_handler.close()
            for sink in self._sinks:
                sink.close()
            self._closed = True


def setup_structured_logging(config: LoggingConfig) -> StructuredLoggingHandle:
    """Install queue-backed JSON logging for one run, replacing any active setup."""

    run_id = _required_text(config.run_id, "run_id")
    logger_name = _required_text(config.logger_name, "logger_name")
    filename = _required_text(config.log_filename, "log_filename")
    if Path(filename).name != filename:
        raise ValueError("log_filename must not include path separators")
    if config.queue_size <= 0:
        raise ValueError("queue_size must be > 0")
    level = _level_number(config.level)

    shutdown_logging()

    sinks: list[logging.Handler] = []
    log_path: Path | None = None
    if config.base_log_dir is not None:
        log_path = Path(config.base_log_dir) / run_id / filename
        log_path.parent.mkdir(parents=True, exist_ok=True)
        sinks.append(logging.FileHandler(log_path, encoding="utf-8"))
    if config.log_to_stdout or not sinks:
        sinks.append(logging.StreamHandler())
    formatter = _JsonLineFormatter(run_id)
    for sink in sinks:
        sink.setLevel(level)
        sink.setFormatter(formatter)

    logger = logging.getLogger(logger_name)
    for stale in list(logger.handlers):
        logger.removeHandler(stale)
        stale.close()
    logger.setLevel(level)
    logger.propagate = False

    log_queue: queue.Queue[logging.LogRecord] = queue.Queue(maxsize=config.queue_size)
    queue_handler = _DroppingQueueHandler(log_queue, level)
    listener = logging.handlers.QueueListener(log_queue, *sinks, respect_handler_level=True)
    listener.start()
    logger.addHandler(queue_handler)
    configure_structlog()

    handle = StructuredLoggingHandle(
        logger=logger,
        run_id=run_id,
        log_path=log_path,
        queue_handler=queue_handler,
        listener=listener,
        sinks=tuple(sinks),
    )
    global _active, _atexit_registered
    with _active_lock:
        _active = handle
        if not _atexit_registered:
            atexit.register(shutdown_logging)
            _atexit_registered = True
    return handle


def shutdown_logging(handle: StructuredLoggingHandle | None = None) -> None:
    """Drain and close ``handle`` (default: the active one). Safe to call repeatedly."""

    global _active
    with _active_lock:
        target = handle if handle is not None else _active
        if target is _active:
            _active = None
    if target is not None:
        target.shutdown()


def get_correlation_context() -> dict[str, str]:
    """Return the correlation keys bound in the current context."""

    return dict(_CORRELATION.get())


@contextmanager
def correlation_scope(**fields: str | None) -> Iterator[None]:
    """Bind correlation keys (``job="app"``) for records logged inside the block.

    Passing ``None`` unbinds a key for the duration of the block.
    """

    merged = dict(_CORRELATION.get())
    for key, value in fields.items():
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = _required_text(value, f"correlation value for {key!r}")
    token = _CORRELATION.set(merged)
    try:
        yield
    finally:
        _CORRELATION.reset(token)


def _required_text(value: object, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{name} must be a non-empty string")
    return value.strip()


def _level_number(value: int | str) -> int:
    if isinstance(value, int):
        return value
    resolved = logging.getLevelName(str(value).strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"unsupported logging level {value!r}")
    return resolved


__all__ = [
    "CORRELATION_KEYS",
    "LoggingConfig",
    "StructuredLoggingHandle",
    "configure_structlog",
    "correlation_scope",
    "get_correlation_context",
    "setup_logging",
    "setup_structured_logging",
    "shutdown_logging",
]
