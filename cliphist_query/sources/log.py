"""Read-only cursor over the clipboard history log.

The log is an SQLite file with one table per bucket. Each table has an
append-ordered `key` column and a raw `value` payload column, so walking the
keys in order yields entries oldest first.

This is not the bbolt file the cliphist CLI itself keeps at
`~/.cache/cliphist/db`; opening that one fails with StoreUnavailable. Use
the command backend to read a live cliphist history.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING, Iterator

from cliphist_query.config import DEFAULT_BUCKET
from cliphist_query.errors import StoreUnavailable

if TYPE_CHECKING:
    from cliphist_query.models import Entry, RawEntry

log = logging.getLogger(__name__)


def default_log_path() -> Path:
    """Location of the history log under the user's cache directory."""
    base = os.environ.get("XDG_CACHE_HOME")
    if base:
        cache_dir = Path(base)
    else:
        try:
            cache_dir = Path.home() / ".cache"
        except RuntimeError as e:
            raise StoreUnavailable("cache directory could not be determined") from e
    return cache_dir / "cliphist" / "db"


def _quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class LogCursorSource:
    """Yields `(None, value)` for every record, oldest first."""

    newest_first = False

    def __init__(self, path: Path | None = None, bucket: str = DEFAULT_BUCKET):
        self.path = path
        self.bucket = bucket

    def _open(self, path: Path) -> sqlite3.Connection:
        if not path.is_file():
            raise StoreUnavailable(f"no history log at {path}")
        try:
            # isolation_level=None so the explicit BEGIN below owns the transaction
            return sqlite3.connect(
                f"{path.resolve().as_uri()}?mode=ro", uri=True, isolation_level=None
            )
        except sqlite3.Error as e:
            raise StoreUnavailable(f"failed opening history log at {path}: {e}") from e

    def read(self) -> Iterator[RawEntry]:
        path = self.path if self.path is not None else default_log_path()
        conn = self._open(path)
        count = 0
        try:
            conn.execute("BEGIN")
            cursor = conn.execute(
                f"SELECT value FROM {_quote_identifier(self.bucket)} ORDER BY key"
            )
            for (value,) in cursor:
                if value is None:
                    continue
                if not isinstance(value, bytes):
                    value = str(value).encode("utf-8")
                count += 1
                yield (None, value)
        except sqlite3.Error as e:
            raise StoreUnavailable(f"failed reading history log at {path}: {e}") from e
        finally:
            # Read-only: always roll back, on success and on error alike
            if conn.in_transaction:
                conn.rollback()
            conn.close()
        log.debug("Read %d records from %s", count, path)

    def decode(self, entry: Entry) -> bytes:
        return entry.content.encode("utf-8")
