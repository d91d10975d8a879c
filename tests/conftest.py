"""Shared test fixtures."""

from __future__ import annotations

import sqlite3
import stat
from pathlib import Path

import pytest

from cliphist_query.config import Config
from cliphist_query.plugin import ClipHistPlugin
from cliphist_query.sources import LogCursorSource
from cliphist_query.store import HistoryStore

SHELL_HISTORY = ["git status", "cargo build", "ls -la", "git commit -m fix"]


@pytest.fixture
def make_history_db(tmp_path):
    """Create an SQLite history log with the given values, oldest first.

    Usage::

        def test_example(make_history_db):
            path = make_history_db(["oldest", "newest"])
    """

    def _make(values: list[str | bytes], bucket: str = "b", name: str = "db") -> Path:
        path = tmp_path / name
        conn = sqlite3.connect(path)
        try:
            conn.execute(
                f'CREATE TABLE "{bucket}" (key INTEGER PRIMARY KEY, value BLOB)'
            )
            conn.executemany(
                f'INSERT INTO "{bucket}" (key, value) VALUES (?, ?)',
                [
                    (i + 1, v.encode("utf-8") if isinstance(v, str) else v)
                    for i, v in enumerate(values)
                ],
            )
            conn.commit()
        finally:
            conn.close()
        return path

    return _make


@pytest.fixture
def make_tool(tmp_path):
    """Write an executable stand-in for the cliphist CLI.

    `list_output` is printed verbatim by `<tool> list`, which then exits with
    `list_exit`. `decode_body` is the shell snippet run for `<tool> decode`;
    by default it echoes "decoded:" followed by whatever arrives on stdin.
    """

    def _make(
        list_output: bytes = b"",
        *,
        list_exit: int = 0,
        decode_body: str = "printf 'decoded:'; cat",
    ) -> str:
        list_file = tmp_path / "list.out"
        list_file.write_bytes(list_output)
        script = tmp_path / "cliphist"
        script.write_text(
            "#!/bin/sh\n"
            'case "$1" in\n'
            f"  list) cat '{list_file}'; exit {list_exit} ;;\n"
            f"  decode) {decode_body} ;;\n"
            "  *) exit 64 ;;\n"
            "esac\n"
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(script)

    return _make


@pytest.fixture
def write_config(tmp_path):
    """Write cliphist.yaml into a fresh config dir and return the dir."""

    def _write(text: str) -> Path:
        config_dir = tmp_path / "config"
        config_dir.mkdir(exist_ok=True)
        (config_dir / "cliphist.yaml").write_text(text)
        return config_dir

    return _write


@pytest.fixture
def shell_store():
    return HistoryStore.from_contents(SHELL_HISTORY)


@pytest.fixture
def shell_plugin(shell_store):
    """Plugin over an in-memory store; decode returns the stored content."""
    return ClipHistPlugin(Config(), shell_store, LogCursorSource())
