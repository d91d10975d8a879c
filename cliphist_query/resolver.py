"""Map a selected result back to the payload to copy."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cliphist_query.sources import HistorySource
    from cliphist_query.store import HistoryStore

log = logging.getLogger(__name__)


def resolve(entry_id: int, store: HistoryStore, source: HistorySource) -> bytes:
    """Return the full payload for an id issued by rank() on this store.

    Raises KeyError for ids the store never issued, and whatever the
    source's decode raises (ExternalCommandFailed, DecodeIOFailed).
    """
    entry = store.get(entry_id)
    payload = source.decode(entry)
    log.debug("Resolved entry %d to %d bytes", entry_id, len(payload))
    return payload
