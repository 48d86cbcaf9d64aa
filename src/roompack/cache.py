"""
In-memory memoization of pack results.

Keys are the md5 of the canonical JSON of the room (and optional room id),
the item requests and the options, so identical requests hit the same
entry regardless of dict ordering.  Entries expire after ``ttl_seconds``;
when no TTL is given the cache follows ``EngineSettings.cache_ttl_seconds``
of the engine it is attached to.  Expired entries are purged on every put.
Stored and returned results are deep copies; callers may mutate what they
get back.
"""

import copy
import hashlib
import json
import time
from typing import Callable, Dict, Optional, Sequence, Tuple, Union

from roompack.config import DEFAULT_SETTINGS, EngineSettings
from roompack.models import ItemRequest, PackOptions, PackResult, RoomDimensions


class LayoutCache:
    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ttl_from_settings = ttl_seconds is None
        self.ttl_seconds = DEFAULT_SETTINGS.cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, PackResult]] = {}

    @classmethod
    def from_settings(cls, settings: EngineSettings, **kwargs) -> "LayoutCache":
        return cls(ttl_seconds=settings.cache_ttl_seconds, **kwargs)

    def apply_settings(self, settings: EngineSettings) -> None:
        """Adopt the settings TTL unless one was given explicitly."""
        if self._ttl_from_settings:
            self.ttl_seconds = settings.cache_ttl_seconds

    def _expired(self, stored_at: float, now: float) -> bool:
        return now - stored_at > self.ttl_seconds

    @staticmethod
    def make_key(
        items: Sequence[ItemRequest],
        room: RoomDimensions,
        options: PackOptions,
        room_id: Optional[Union[int, str]] = None,
    ) -> str:
        payload = {
            "room_id": room_id,
            "room": room.model_dump(),
            "items": [item.model_dump() for item in items],
            "options": options.model_dump(),
        }
        blob = json.dumps(payload, sort_keys=True, default=str)
        return hashlib.md5(blob.encode("utf-8")).hexdigest()

    def get(self, key: str) -> Optional[PackResult]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, result = entry
        if self._expired(stored_at, self._clock()):
            del self._entries[key]
            return None
        return copy.deepcopy(result)

    def put(self, key: str, result: PackResult) -> None:
        now = self._clock()
        self.purge_expired(now)
        self._entries[key] = (now, copy.deepcopy(result))

    def purge_expired(self, now: Optional[float] = None) -> int:
        now = self._clock() if now is None else now
        stale = [k for k, (stored_at, _) in self._entries.items() if self._expired(stored_at, now)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
