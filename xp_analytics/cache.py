"""
Expiring store for parsed activity logs.

Parsing a long export is the slow step of a dashboard rerun, so parse results
are kept per distinct (text, course pattern) pair. Inside a Streamlit session
entries live in st.session_state; elsewhere in a plain dict on the instance.
"""

import time
import hashlib
import logging
from typing import Any, Callable, Dict, List, NamedTuple

logger = logging.getLogger(__name__)

DEFAULT_TTL = 300
SESSION_KEY = "_xp_parse_cache"


class _Entry(NamedTuple):
    value: Any
    expires_at: float


_MISSING = object()


def text_digest(text: str) -> str:
    return hashlib.md5((text or "").encode("utf-8", errors="replace")).hexdigest()


class ActivityCache:

    def __init__(self, ttl_seconds: int = DEFAULT_TTL, use_session_state: bool = True):
        self.ttl = ttl_seconds
        self.use_session_state = use_session_state
        self.hits = 0
        self.misses = 0
        self._local: Dict[str, _Entry] = {}

    def _entries(self) -> Dict[str, _Entry]:
        if not self.use_session_state:
            return self._local
        try:
            import streamlit as st
            return st.session_state.setdefault(SESSION_KEY, {})
        except Exception:
            # no script run context (tests, plain scripts)
            return self._local

    @staticmethod
    def text_key(text: str, course_pattern: str = "") -> str:
        """Same text parsed with the same grammar maps to the same entry."""
        return f"parse:{text_digest(text)[:16]}:{text_digest(course_pattern)[:8]}"

    def lookup(self, key: str, default: Any = None) -> Any:
        entries = self._entries()
        entry = entries.get(key)
        if entry is None:
            self.misses += 1
            return default
        if entry.expires_at < time.time():
            entries.pop(key, None)
            self.misses += 1
            logger.debug(f"Parse cache entry expired: {key}")
            return default
        self.hits += 1
        return entry.value

    def store(self, key: str, value: Any) -> None:
        self._entries()[key] = _Entry(value, time.time() + self.ttl)

    def drop(self, key: str) -> None:
        self._entries().pop(key, None)

    def clear(self) -> None:
        self._entries().clear()
        self.hits = self.misses = 0
        logger.info("Parse cache cleared")

    def get_or_compute(self, key: str, compute: Callable[[], Any]) -> Any:
        """Cached value for key; an empty parse result is cached like any other."""
        value = self.lookup(key, _MISSING)
        if value is _MISSING:
            value = compute()
            self.store(key, value)
        return value

    def parsed(self, text: str, parser) -> List:
        """Activities of `text` under `parser`, reusing a live earlier parse."""
        key = self.text_key(text, parser.grammar.course_pattern)
        return self.get_or_compute(key, lambda: parser.parse(text))

    def stats(self) -> dict:
        now = time.time()
        entries = self._entries()
        return {
            "entries": len(entries),
            "live_entries": sum(1 for e in entries.values() if e.expires_at >= now),
            "hits": self.hits,
            "misses": self.misses,
            "ttl_seconds": self.ttl,
        }


cache = ActivityCache(ttl_seconds=DEFAULT_TTL)
