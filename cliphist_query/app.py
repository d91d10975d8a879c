"""Interactive picker: type to filter clipboard history, Enter to choose.

The app exits with the chosen payload as its return value (or None when
cancelled); copying it to the clipboard is left to the caller.
"""

from __future__ import annotations

import asyncio
import logging

from rich.text import Text
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Input, OptionList
from textual.widgets.option_list import Option

from cliphist_query.errors import CliphistError, set_notify_callback
from cliphist_query.models import Match
from cliphist_query.plugin import ClipHistPlugin

log = logging.getLogger(__name__)


class PickerApp(App[bytes | None]):
    """Launcher-style front end for a loaded ClipHistPlugin."""

    TITLE = "Clipboard history"

    DEFAULT_CSS = """\
    Screen {
        background: #111111;
    }

    #query {
        border: tall #cc7700;
        background: transparent;
    }

    #results {
        height: 1fr;
        border: none;
        background: transparent;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", priority=True, show=False),
        Binding("ctrl+c", "cancel", "Quit", priority=True, show=False),
        Binding("down", "cursor_down", "Next", priority=True, show=False),
        Binding("up", "cursor_up", "Prev", priority=True, show=False),
    ]

    def __init__(self, plugin: ClipHistPlugin, query: str = "") -> None:
        super().__init__()
        self.plugin = plugin
        self._initial_query = query
        self._matches: list[Match] = []

    def compose(self) -> ComposeResult:
        yield Input(
            value=self._initial_query,
            placeholder=self.plugin.config.prefix or "Search clipboard history",
            id="query",
        )
        yield OptionList(id="results")

    def on_mount(self) -> None:
        set_notify_callback(
            lambda msg, severity: self.notify(msg, severity=severity, timeout=5)
        )
        self._update_matches(self._initial_query)
        self.query_one("#query", Input).focus()

    def on_unmount(self) -> None:
        set_notify_callback(None)

    @property
    def matches(self) -> list[Match]:
        return self._matches

    def _update_matches(self, text: str) -> None:
        self._matches = self.plugin.get_matches(text)
        results = self.query_one("#results", OptionList)
        results.clear_options()
        # Text() so clipboard content is never parsed as markup
        results.add_options(
            [Option(Text(m.title), id=str(m.id)) for m in self._matches]
        )
        if self._matches:
            results.highlighted = 0

    def on_input_changed(self, event: Input.Changed) -> None:
        self._update_matches(event.value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self._choose(self.query_one("#results", OptionList).highlighted)

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        event.stop()
        self._choose(event.option_index)

    def _choose(self, index: int | None) -> None:
        if index is None or not 0 <= index < len(self._matches):
            return
        self._resolve(self._matches[index])

    @work(group="resolve", exclusive=True, exit_on_error=False)
    async def _resolve(self, match: Match) -> None:
        try:
            # Decode may block on an external process
            payload = await asyncio.to_thread(self.plugin.handler, match)
        except CliphistError as e:
            log.debug("Failed to resolve entry %d", match.id, exc_info=True)
            self.notify(
                f"Failed to resolve clipboard entry: {e}", severity="error", timeout=5
            )
            return
        self.exit(payload)

    def action_cursor_down(self) -> None:
        self.query_one("#results", OptionList).action_cursor_down()

    def action_cursor_up(self) -> None:
        self.query_one("#results", OptionList).action_cursor_up()

    def action_cancel(self) -> None:
        self.exit(None)
