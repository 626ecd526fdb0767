# analysis_cache.py
from __future__ import annotations
import hashlib
import json
import threading
from concurrent.futures import Future
from typing import Any, Callable, Dict, Hashable, Iterable


def stable_json_dumps(obj: Any) -> str:
    return json.dumps(obj, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def sha256_hex(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def context_fingerprint(cards: Iterable) -> str:
    """Order-insensitive digest of a card multiset (uses each card's ``fingerprint``)."""
    return sha256_hex("|".join(sorted(c.fingerprint for c in cards)))


def ordered_fingerprint(cards: Iterable) -> str:
    """Order-sensitive digest; combo participants follow input order, so detection keys need it."""
    return sha256_hex("|".join(c.fingerprint for c in cards))


class AnalysisCache:
    """
    Read-through, compute-once memo for synergy and combo results.

    One instance per build. Concurrent requests for a key that is still being
    computed wait on the first computation instead of starting their own.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[Hashable, Any] = {}
        self._inflight: Dict[Hashable, Future] = {}
        self.hits = 0
        self.misses = 0

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        with self._lock:
            if key in self._entries:
                self.hits += 1
                return self._entries[key]
            pending = self._inflight.get(key)
            if pending is None:
                pending = Future()
                self._inflight[key] = pending
                owner = True
                self.misses += 1
            else:
                owner = False
                self.hits += 1

        if not owner:
            return pending.result()

        try:
            value = compute()
        except BaseException as exc:
            with self._lock:
                del self._inflight[key]
            pending.set_exception(exc)
            raise

        with self._lock:
            self._entries[key] = value
            del self._inflight[key]
        pending.set_result(value)
        return value

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> dict:
        with self._lock:
            total = self.hits + self.misses
            return {
                "entries": len(self._entries),
                "hits": self.hits,
                "misses": self.misses,
                "hit_rate": (self.hits / total) if total else 0.0,
            }
