"""
Seen-id tracking for paginated listings.

Keeps the identities of every item accumulated so far so that repeated
items are dropped and a page made only of repeats can end pagination.
Lives for one listing call only.
"""

import hashlib
import json
from typing import Any


class SeenIds:
    """
    Set of item identities observed across pages.

    Items are identified by their id field. Items without one fall back to
    a content fingerprint so they still deduplicate.
    """

    def __init__(self, id_field: str = "id") -> None:
        """
        Initialize the tracker.

        Args:
            id_field: Name of the identifier field on item records
        """
        self.id_field = id_field
        self._seen: set[str] = set()

    def _generate_fingerprint(self, item: Any) -> str:
        """
        Generate a fingerprint for an item without an id.

        Args:
            item: Raw item record

        Returns:
            SHA256 hash of the item content
        """
        content = json.dumps(item, sort_keys=True, default=str)
        return hashlib.sha256(content.encode("utf-8")).hexdigest()

    def key_for(self, item: Any) -> str:
        """
        Return the identity used for deduplication.

        Args:
            item: Raw item record

        Returns:
            Stringified id, or a content fingerprint
        """
        if isinstance(item, dict):
            item_id = item.get(self.id_field)
            if item_id is not None and item_id != "":
                return str(item_id)
        return f"sha256:{self._generate_fingerprint(item)}"

    def check_and_add(self, item: Any) -> bool:
        """
        Record an item and report whether it is new.

        Args:
            item: Raw item record

        Returns:
            True if the item had not been seen before
        """
        key = self.key_for(item)
        if key in self._seen:
            return False
        self._seen.add(key)
        return True

    def __contains__(self, item: Any) -> bool:
        return self.key_for(item) in self._seen

    def __len__(self) -> int:
        return len(self._seen)
