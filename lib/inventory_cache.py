# =============================================================================
# lib/inventory_cache.py - Inventory Cache
# =============================================================================
# Keeps the inventory table in memory keyed by item id.
#
# The cache is filled by one full read, then kept current by applying each
# realtime change notification to the single row it names:
#   INSERT / UPDATE -> replace the row under its id
#   DELETE          -> drop the row with the old record's id
#
# Listeners (e.g. the WebSocket feed) are told about every applied change.
# =============================================================================

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)

# Realtime channel state meaning the subscription is active
SUBSCRIBED = "SUBSCRIBED"


@dataclass
class ChangeEvent:
    """
    One row-level change on a table.

    Built from the realtime payload, whose row images live under
    "record"/"old_record" (server format) or "new"/"old" (client format).
    """
    kind: str  # "INSERT", "UPDATE" or "DELETE"
    record: dict[str, Any] | None = None
    old_record: dict[str, Any] | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ChangeEvent":
        """Create a ChangeEvent from a realtime postgres_changes payload."""
        data = payload.get("data", payload)
        kind = (data.get("type") or data.get("eventType") or "").upper()
        record = data.get("record", data.get("new")) or None
        old_record = data.get("old_record", data.get("old")) or None
        return cls(kind=kind, record=record, old_record=old_record)

    @property
    def row_id(self) -> str | None:
        """Id of the affected row."""
        for row in (self.record, self.old_record):
            if row and row.get("id") is not None:
                return str(row["id"])
        return None

    def to_message(self) -> dict[str, Any]:
        """Shape sent to WebSocket clients."""
        return {
            "type": "inventory_changed",
            "event": self.kind,
            "id": self.row_id,
            "record": self.record,
        }


class InventoryCache:
    """
    In-memory copy of the inventory table keyed by id.

    Thread-safe: request handlers and the realtime callback may touch it
    concurrently.
    """

    def __init__(self):
        self._items: dict[str, dict[str, Any]] = {}
        self._loaded = False
        # True while a realtime subscription keeps the cache current
        self.live = False
        self._lock = threading.RLock()
        self._listeners: list[Callable[[ChangeEvent], None]] = []

    @property
    def loaded(self) -> bool:
        """True once a full read has filled the cache."""
        return self._loaded

    @property
    def fresh(self) -> bool:
        """True when cached rows can be served without a new read."""
        return self._loaded and self.live

    def __len__(self) -> int:
        return len(self._items)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def items(self) -> list[dict[str, Any]]:
        """All cached items ordered by name."""
        with self._lock:
            rows = [dict(row) for row in self._items.values()]
        return sorted(rows, key=lambda row: (row.get("name") or "").lower())

    def get(self, item_id: str) -> dict[str, Any] | None:
        """A copy of one item, or None."""
        with self._lock:
            row = self._items.get(str(item_id))
            return dict(row) if row else None

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def load(self, rows: list[dict[str, Any]]) -> None:
        """Replace the whole cache with a fresh read."""
        with self._lock:
            self._items = {str(row["id"]): dict(row) for row in rows if row.get("id") is not None}
            self._loaded = True
        logger.info(f"Inventory cache loaded with {len(self._items)} items")

    def invalidate(self) -> None:
        """Forget everything; the next read reloads from the database."""
        with self._lock:
            self._items = {}
            self._loaded = False

    def handle_status(self, status: Any, error: Exception | None = None) -> None:
        """
        Track the realtime subscription state.

        SUBSCRIBED makes the cache live. Any other state (CHANNEL_ERROR,
        TIMED_OUT, CLOSED) means changes may be missed, so the cache stops
        being live and is emptied until the next full read.
        """
        state = str(getattr(status, "value", status))
        if state == SUBSCRIBED:
            self.live = True
            logger.info("Inventory realtime subscribed, cache is live")
            return

        was_live = self.live
        self.live = False
        self.invalidate()
        if was_live:
            logger.warning(f"Inventory realtime {state}, reads will reload: {error or 'no detail'}")

    def upsert(self, row: dict[str, Any]) -> None:
        """Store the latest image of a row."""
        if row.get("id") is None:
            return
        with self._lock:
            self._items[str(row["id"])] = dict(row)

    def remove(self, item_id: str) -> bool:
        """Drop a row; returns False if it wasn't cached."""
        with self._lock:
            return self._items.pop(str(item_id), None) is not None

    def apply(self, event: ChangeEvent) -> bool:
        """
        Apply one change event.

        Returns:
            True if the cache changed
        """
        row_id = event.row_id
        if row_id is None:
            logger.warning(f"Ignoring inventory change without an id: {event.kind}")
            return False

        if event.kind in ("INSERT", "UPDATE") and event.record:
            self.upsert(event.record)
            return True
        if event.kind == "DELETE":
            return self.remove(row_id)

        logger.warning(f"Ignoring unknown inventory change type: {event.kind}")
        return False

    # -------------------------------------------------------------------------
    # Realtime
    # -------------------------------------------------------------------------

    def add_listener(self, listener: Callable[[ChangeEvent], None]) -> None:
        """Call `listener` after every change applied from a notification."""
        self._listeners.append(listener)

    def handle_payload(self, payload: dict[str, Any]) -> None:
        """
        Realtime callback for the inventory table.

        Changes that arrive before the first full read are skipped; that
        read will include them.
        """
        event = ChangeEvent.from_payload(payload)
        if not self._loaded:
            logger.debug(f"Inventory cache not loaded yet, skipping {event.kind}")
            return

        if not self.apply(event):
            return

        logger.debug(f"Applied inventory {event.kind} for {event.row_id}")
        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Inventory change listener failed: {e}")
