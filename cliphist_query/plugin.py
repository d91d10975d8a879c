"""Launcher plugin surface: init, info, get_matches and handler."""

from __future__ import annotations

import logging
from pathlib import Path

from cliphist_query.config import Config, load_config
from cliphist_query.models import Match, PluginInfo
from cliphist_query.ranking import preview, rank
from cliphist_query.resolver import resolve
from cliphist_query.sources import HistorySource, source_from_config
from cliphist_query.store import HistoryStore

log = logging.getLogger(__name__)

PLUGIN_INFO = PluginInfo(name="cliphist", icon="view-list-symbolic")


class ClipHistPlugin:
    """Loaded plugin state: config, the history store and its source."""

    def __init__(
        self, config: Config, store: HistoryStore, source: HistorySource
    ) -> None:
        self.config = config
        self.store = store
        self.source = source

    @staticmethod
    def info() -> PluginInfo:
        return PLUGIN_INFO

    def get_matches(self, text: str) -> list[Match]:
        results = rank(text, self.store, self.config.max_entries, self.config.prefix)
        return [Match(title=preview(r.content), id=r.id) for r in results]

    def handler(self, selection: Match) -> bytes:
        """Payload for a selected match. Errors propagate to the host."""
        return resolve(selection.id, self.store, self.source)


def load_plugin(
    config_dir: Path | str, config: Config | None = None
) -> ClipHistPlugin:
    """Initialize the plugin from the host's config directory.

    Load failures raise CliphistError subclasses (StoreUnavailable,
    ExternalCommandFailed); no plugin with partial history is ever returned.
    """
    if config is None:
        config = load_config(config_dir)
    source = source_from_config(config)
    store = HistoryStore.load(source)
    log.info("cliphist plugin ready (%s backend)", config.backend)
    return ClipHistPlugin(config, store, source)
