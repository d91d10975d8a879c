"""Error types and logging infrastructure.

Every failure the plugin can report derives from CliphistError so the host
can catch one type at its init and selection boundaries. Logs go to an
optional file; warnings and errors also show as toasts while the picker runs.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Literal

if TYPE_CHECKING:
    from cliphist_query.config import Config

# Root logger for the package; module loggers inherit its handlers
log = logging.getLogger("cliphist_query")


# Severity levels matching Textual's SeverityLevel
SeverityLevel = Literal["information", "warning", "error"]

# Callback for UI notifications, set by the picker app on mount
_notify_callback: Callable[[str, SeverityLevel], None] | None = None


class CliphistError(Exception):
    """Base class for all plugin errors."""


class StoreUnavailable(CliphistError):
    """The history log (or the cache directory holding it) can't be opened."""


class ExternalCommandFailed(CliphistError):
    """An external list/decode command failed to spawn or exited non-zero."""

    def __init__(
        self,
        command: list[str],
        returncode: int | None = None,
        cause: BaseException | None = None,
        detail: str = "",
    ) -> None:
        self.command = command
        self.returncode = returncode
        self.cause = cause
        if cause is not None:
            msg = f"{' '.join(command)!r} could not be run: {cause}"
        elif returncode is not None:
            msg = f"{' '.join(command)!r} exited with status {returncode}"
        else:
            msg = f"{' '.join(command)!r} failed"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class DecodeIOFailed(CliphistError):
    """Writing to or reading from the decode command's pipes failed."""


class ConfigInvalid(CliphistError):
    """Config file unreadable or malformed. Never fatal: defaults are used."""


# Toasts show one line; the log file keeps the full text
TOAST_MAX_CHARS = 200

# Highest threshold first; anything below WARNING is "information"
_SEVERITIES: tuple[tuple[int, SeverityLevel], ...] = (
    (logging.ERROR, "error"),
    (logging.WARNING, "warning"),
)


class ToastHandler(logging.Handler):
    """Shows log records as picker toasts through the registered callback.

    Records are dropped while no picker is running.
    """

    def emit(self, record: logging.LogRecord) -> None:
        notify = _notify_callback
        if notify is None:
            return
        severity: SeverityLevel = "information"
        for threshold, name in _SEVERITIES:
            if record.levelno >= threshold:
                severity = name
                break
        try:
            text = self.format(record).partition("\n")[0]
            if len(text) > TOAST_MAX_CHARS:
                text = text[: TOAST_MAX_CHARS - 3] + "..."
            notify(text, severity)
        except Exception:
            self.handleError(record)


def set_notify_callback(
    callback: Callable[[str, SeverityLevel], None] | None,
) -> None:
    """Route toast records to `callback(message, severity)`; None disconnects.

    The picker registers its `notify` here on mount and clears it on unmount.
    """
    global _notify_callback
    _notify_callback = callback


def setup_logging(config: Config | None = None) -> None:
    """Initialize logging. Call once at startup.

    Reads the `logging` section of the plugin config:
    - file: path to a log file, or null to disable file logging (default)
    - level: minimum level name for the file log (default: info)

    Warnings and errors are forwarded to the notify callback when one is
    set (the picker app sets it while running).
    """
    # Guard against being called multiple times
    if log.handlers:
        return

    settings = config.logging if config is not None else {}
    level = logging.getLevelName(str(settings.get("level", "info")).upper())
    if not isinstance(level, int):
        level = logging.INFO

    log.setLevel(level)
    log.propagate = False

    log_file = settings.get("file")
    if log_file:
        log_file = str(Path(log_file).expanduser())
        try:
            file_handler = logging.FileHandler(log_file, mode="a")
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
            )
            file_handler.setLevel(level)
            log.addHandler(file_handler)
        except OSError:
            # Can't write to log file - continue without file logging
            log_file = None

    toast_handler = ToastHandler()
    toast_handler.setFormatter(logging.Formatter("%(message)s"))
    toast_handler.setLevel(logging.WARNING)
    log.addHandler(toast_handler)

    if log_file:
        log.info("Logging initialized")


def report_failure(e: Exception, context: str = "") -> str:
    """Log `e` with its traceback and return a one-line message for stderr."""
    message = f"{context}: {e}" if context else str(e)
    log.error("%s", message, exc_info=e)
    return message
