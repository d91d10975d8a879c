"""History source backed by the `cliphist` CLI.

`cliphist list` prints one `key<TAB>preview` record per line, newest first.
`cliphist decode` reads `key<TAB> ` on stdin and prints the full payload.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from typing import TYPE_CHECKING, Iterator

from cliphist_query.config import DEFAULT_TOOL
from cliphist_query.errors import DecodeIOFailed, ExternalCommandFailed

if TYPE_CHECKING:
    from cliphist_query.models import Entry, RawEntry

log = logging.getLogger(__name__)


def decode_request(key: str) -> bytes:
    """Stdin payload asking the decode command for one entry."""
    return f"{key}\t ".encode("utf-8")


class CommandSource:
    """Lists entries with `<tool> list` and fetches payloads with `<tool> decode`."""

    newest_first = True

    def __init__(self, tool: str = DEFAULT_TOOL, timeout: float | None = None):
        self.tool = tool
        self.timeout = timeout

    def read(self) -> Iterator[RawEntry]:
        cmd = [self.tool, "list"]
        try:
            result = subprocess.run(cmd, capture_output=True)
        except OSError as e:
            raise ExternalCommandFailed(cmd, cause=e) from e
        if result.returncode != 0:
            log.debug("%s list failed: %s", self.tool, result.stderr)
            raise ExternalCommandFailed(cmd, returncode=result.returncode)

        for line in result.stdout.split(b"\n"):
            key, sep, content = line.partition(b"\t")
            if not sep:
                continue
            yield (key, content)

    def decode(self, entry: Entry) -> bytes:
        """Run `<tool> decode` for one entry and return its stdout.

        With a timeout set, the child is killed once it runs past the
        deadline. Only the direct child is killed: a process it spawned that
        keeps stdout open still blocks the read until that process exits.
        """
        if entry.external_key is None:
            raise ValueError(f"entry {entry.id} has no external key to decode")

        cmd = [self.tool, "decode"]
        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise ExternalCommandFailed(cmd, cause=e) from e

        stdin, stdout = proc.stdin, proc.stdout
        if stdin is None or stdout is None:
            proc.kill()
            proc.wait()
            raise DecodeIOFailed(f"{self.tool} decode started without pipes")

        payload = decode_request(entry.external_key)
        write_errors: list[OSError] = []

        def _write() -> None:
            # The tool may start writing before it has read all of stdin, so
            # this runs beside the reader below instead of before it
            try:
                with stdin:
                    stdin.write(payload)
            except OSError as e:
                write_errors.append(e)

        writer = threading.Thread(
            target=_write, name="cliphist-decode-writer", daemon=True
        )
        timed_out = threading.Event()
        timer: threading.Timer | None = None
        if self.timeout is not None:

            def _expire() -> None:
                timed_out.set()
                proc.kill()

            timer = threading.Timer(self.timeout, _expire)
            timer.daemon = True

        writer.start()
        if timer is not None:
            timer.start()
        try:
            try:
                output = stdout.read()
            finally:
                stdout.close()
            returncode = proc.wait()
        except OSError as e:
            proc.kill()
            proc.wait()
            raise DecodeIOFailed(
                f"reading {self.tool} decode output failed: {e}"
            ) from e
        finally:
            if timer is not None:
                timer.cancel()
            writer.join()

        # The deadline can lapse just after a clean exit; that is not a timeout
        if timed_out.is_set() and returncode != 0:
            raise ExternalCommandFailed(
                cmd, returncode=returncode, detail=f"timed out after {self.timeout}s"
            )
        if write_errors:
            raise DecodeIOFailed(
                f"writing to {self.tool} decode failed: {write_errors[0]}"
            ) from write_errors[0]
        if returncode != 0:
            raise ExternalCommandFailed(cmd, returncode=returncode)
        return output
