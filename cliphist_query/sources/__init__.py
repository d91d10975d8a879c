"""History sources - where raw clipboard entries come from.

Two backends share one protocol: a read-only cursor over the history log
(LogCursorSource) and the `cliphist` CLI's list/decode commands
(CommandSource). `source_from_config` picks one from the plugin config.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Iterator, Protocol

from cliphist_query.sources.command import CommandSource
from cliphist_query.sources.log import LogCursorSource, default_log_path

if TYPE_CHECKING:
    from cliphist_query.config import Config
    from cliphist_query.models import Entry, RawEntry


class HistorySource(Protocol):
    """A finite, read-once supply of raw entries plus a way to decode them."""

    # True when read() already yields most-recent-first
    newest_first: bool

    def read(self) -> Iterator[RawEntry]:
        """Yield raw (key, content) pairs in the backend's native order."""
        ...

    def decode(self, entry: Entry) -> bytes:
        """Return the full payload for a loaded entry."""
        ...


def source_from_config(config: Config) -> HistorySource:
    """Build the source selected by `config.backend`."""
    if config.backend == "log":
        path = Path(config.store_path).expanduser() if config.store_path else None
        return LogCursorSource(path, bucket=config.bucket)
    return CommandSource(config.external_tool_path, timeout=config.decode_timeout)


__all__ = [
    "CommandSource",
    "HistorySource",
    "LogCursorSource",
    "default_log_path",
    "source_from_config",
]
