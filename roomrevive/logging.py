"""structlog setup shared by the API process and the test suite."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import IO

import structlog

from roomrevive.config import settings


class _LogFileMirror:
    """stdout writer that also appends every line to ``path``.

    The file (and any missing parent directories) is created on the first
    write. Any filesystem error turns mirroring off for the rest of the
    process; stdout is never affected.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._file: IO[str] | None = None
        self._broken = False

    def _give_up(self, what: str, exc: Exception) -> None:
        self._broken = True
        self._file = None
        # this object is structlog's sink, so report on stderr directly
        sys.stderr.write(
            f"WARNING: log file {self.path} {what} failed ({exc}); mirroring stopped\n"
        )

    def _target(self) -> IO[str] | None:
        if self._file is None and not self._broken:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self._file = self.path.open("a", encoding="utf-8")
            except OSError as exc:
                self._give_up("open", exc)
        return self._file

    def write(self, data: str) -> None:
        sys.stdout.write(data)
        target = self._target()
        if target is None:
            return
        try:
            target.write(data)
            target.flush()
        except (OSError, ValueError) as exc:
            self._give_up("write", exc)

    def flush(self) -> None:
        sys.stdout.flush()


def configure_logging() -> None:
    """Console output in development, JSON lines everywhere else.

    Context vars are merged into every event, so the request id bound by
    the HTTP middleware and the user id bound inside handlers show up on
    every line logged while serving that request.
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if settings.environment == "development":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    level = logging.getLevelNamesMapping().get(settings.log_level.upper(), logging.INFO)

    logger_factory: structlog.types.WrappedLogger
    if settings.log_file:
        mirror = _LogFileMirror(settings.log_file)
        logger_factory = structlog.PrintLoggerFactory(file=mirror)  # type: ignore[arg-type]
    else:
        logger_factory = structlog.PrintLoggerFactory()

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=logger_factory,
        cache_logger_on_first_use=True,
    )
