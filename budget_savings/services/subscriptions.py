"""
Snapshot Feed
Push-style delivery of full collection snapshots to per-owner listeners
"""

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

# callback(records, error) - error is None on a normal delivery
Listener = Callable[[Sequence[Any], Optional[str]], None]
Unsubscribe = Callable[[], None]

class SnapshotFeed:
    """
    Registry of listeners keyed by (collection, owner_id).

    One feed is created per application and handed to whoever needs it;
    each subscription is released through the handle `subscribe` returns.
    """

    def __init__(self):
        self._listeners: Dict[Tuple[str, str], List[Listener]] = defaultdict(list)

    def subscribe(self, collection: str, owner_id: str, callback: Listener) -> Unsubscribe:
        key = (collection, owner_id)
        self._listeners[key].append(callback)
        active = True

        def unsubscribe() -> None:
            nonlocal active
            if not active:
                return
            active = False
            listeners = self._listeners.get(key)
            if listeners and callback in listeners:
                listeners.remove(callback)
                if not listeners:
                    del self._listeners[key]

        return unsubscribe

    def listener_count(self, collection: str, owner_id: str) -> int:
        return len(self._listeners.get((collection, owner_id), []))

    def has_listeners(self, collection: str, owner_id: str) -> bool:
        return self.listener_count(collection, owner_id) > 0

    def publish(self, collection: str, owner_id: str, records: Sequence[Any]) -> None:
        """Deliver a snapshot to every current listener of (collection, owner)"""
        snapshot = list(records)
        # Copy: a listener may unsubscribe while we iterate
        for callback in list(self._listeners.get((collection, owner_id), [])):
            try:
                callback(snapshot, None)
            except Exception as e:
                logger.error(f"Listener for {collection} of owner {owner_id} failed: {e}", exc_info=True)
