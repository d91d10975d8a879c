"""Tests for resolving selected ids back to payloads."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from cliphist_query.errors import DecodeIOFailed, ExternalCommandFailed
from cliphist_query.models import Entry
from cliphist_query.ranking import rank
from cliphist_query.resolver import resolve
from cliphist_query.sources import CommandSource, LogCursorSource
from cliphist_query.sources.command import decode_request
from cliphist_query.store import HistoryStore


class TestResolveLog:
    def test_round_trip_every_ranked_id(self, make_history_db):
        path = make_history_db(
            ["alpha", "beta\nmultiline", "gamma", "alpha", "∆ unicode"]
        )
        source = LogCursorSource(path)
        store = HistoryStore.load(source)
        for query in ["", "a", "ga", "∆", "multi"]:
            for result in rank(query, store, 10):
                assert resolve(result.id, store, source) == result.content.encode()

    def test_unknown_id(self, shell_store):
        with pytest.raises(KeyError):
            resolve(len(shell_store), shell_store, LogCursorSource())


class TestResolveCommand:
    def test_decode_request_format(self):
        assert decode_request("42") == b"42\t "

    def test_sends_key_to_decode(self, make_tool):
        source = CommandSource(make_tool(b"42\tpreview\n"))
        store = HistoryStore.load(source)
        assert resolve(0, store, source) == b"decoded:42\t "

    def test_round_trip_every_ranked_id(self, make_tool):
        tool = make_tool(
            b"3\tthree\n2\ttwo\n1\tone\n",
            decode_body='read -r line; printf "payload-%s" "$line"',
        )
        source = CommandSource(tool)
        store = HistoryStore.load(source)
        for result in rank("", store, 10):
            key = store.get(result.id).external_key
            assert resolve(result.id, store, source) == f"payload-{key}".encode()

    def test_large_output_drained(self, make_tool):
        """Output bigger than a pipe buffer doesn't block the writer."""
        tool = make_tool(
            b"1\tbig\n",
            decode_body="head -c 300000 /dev/zero | tr '\\0' x; cat",
        )
        source = CommandSource(tool)
        store = HistoryStore.load(source)
        output = resolve(0, store, source)
        assert output == b"x" * 300000 + b"1\t "

    def test_non_zero_exit(self, make_tool):
        tool = make_tool(b"1\tx\n", decode_body="cat >/dev/null; exit 4")
        source = CommandSource(tool)
        store = HistoryStore.load(source)
        with pytest.raises(ExternalCommandFailed) as exc_info:
            resolve(0, store, source)
        assert exc_info.value.returncode == 4

    def test_spawn_failure(self, tmp_path):
        source = CommandSource(str(tmp_path / "gone"))
        store = HistoryStore([Entry(0, "x", external_key="1")])
        with pytest.raises(ExternalCommandFailed) as exc_info:
            resolve(0, store, source)
        assert isinstance(exc_info.value.cause, OSError)

    def test_timeout(self, make_tool):
        tool = make_tool(b"1\tx\n", decode_body="exec sleep 10")
        source = CommandSource(tool, timeout=0.2)
        store = HistoryStore.load(source)
        with pytest.raises(ExternalCommandFailed, match="timed out"):
            resolve(0, store, source)

    def test_fast_decode_with_timeout(self, make_tool):
        source = CommandSource(make_tool(b"42\tpreview\n"), timeout=5)
        store = HistoryStore.load(source)
        assert resolve(0, store, source) == b"decoded:42\t "

    def test_deadline_after_clean_exit_is_not_a_timeout(self):
        """The timer firing between exit and cancel leaves a good decode alone."""
        timers = []

        class StalledTimer:
            def __init__(self, interval, function):
                self.function = function
                self.daemon = False
                timers.append(self)

            def start(self):
                pass

            def cancel(self):
                pass

        def wait():
            timers[0].function()
            return 0

        proc = MagicMock()
        proc.stdout.read.return_value = b"payload"
        proc.wait.side_effect = wait
        source = CommandSource("cliphist", timeout=5)
        store = HistoryStore([Entry(0, "x", external_key="1")])
        with patch("subprocess.Popen", return_value=proc), patch(
            "threading.Timer", StalledTimer
        ):
            assert resolve(0, store, source) == b"payload"
        proc.kill.assert_called_once()

    def test_missing_pipes(self):
        proc = MagicMock()
        proc.stdout = None
        source = CommandSource("cliphist")
        store = HistoryStore([Entry(0, "x", external_key="1")])
        with patch("subprocess.Popen", return_value=proc):
            with pytest.raises(DecodeIOFailed, match="without pipes"):
                resolve(0, store, source)
        proc.kill.assert_called_once()

    def test_write_failure(self):
        proc = MagicMock()
        proc.stdin.write.side_effect = BrokenPipeError("pipe closed")
        proc.stdout.read.return_value = b""
        proc.wait.return_value = 0
        source = CommandSource("cliphist")
        store = HistoryStore([Entry(0, "x", external_key="1")])
        with patch("subprocess.Popen", return_value=proc):
            with pytest.raises(DecodeIOFailed):
                resolve(0, store, source)

    def test_read_failure(self):
        proc = MagicMock()
        proc.stdout.read.side_effect = OSError("read error")
        source = CommandSource("cliphist")
        store = HistoryStore([Entry(0, "x", external_key="1")])
        with patch("subprocess.Popen", return_value=proc):
            with pytest.raises(DecodeIOFailed):
                resolve(0, store, source)
        proc.kill.assert_called_once()

    def test_entry_without_key(self):
        source = CommandSource("cliphist")
        store = HistoryStore.from_contents(["x"])
        with pytest.raises(ValueError):
            resolve(0, store, source)
