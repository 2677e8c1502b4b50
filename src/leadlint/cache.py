"""Validation result cache keyed by category and content fingerprint."""

from __future__ import annotations

import json
import time
from typing import Callable

from leadlint.models import ValidationCacheEntry, ValidationCategory, ValidationResult

DEFAULT_TTL_SECONDS = 300


def make_fingerprint(**parts) -> str:
    """Stable serialization of the inputs that decide a validation outcome.

    Lists are kept in the order given; sort them first when order is not
    meaningful (e.g. selected campaign ids).
    """
    return json.dumps(parts, sort_keys=True, default=str, separators=(",", ":"))


class ValidationCache:
    """One entry per category; a hit needs a matching fingerprint within the TTL."""

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[ValidationCategory, ValidationCacheEntry] = {}

    def get(self, category: ValidationCategory, fingerprint: str) -> ValidationResult | None:
        entry = self._entries.get(category)
        if entry is None or entry.fingerprint != fingerprint:
            return None
        if self._clock() - entry.timestamp >= self.ttl_seconds:
            return None
        return entry.result

    def put(self, category: ValidationCategory, fingerprint: str, result: ValidationResult) -> ValidationCacheEntry:
        entry = ValidationCacheEntry(result=result, timestamp=self._clock(), fingerprint=fingerprint)
        self._entries[category] = entry
        return entry

    def entry(self, category: ValidationCategory) -> ValidationCacheEntry | None:
        return self._entries.get(category)

    def invalidate(self, category: ValidationCategory) -> None:
        self._entries.pop(category, None)

    def invalidate_all(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
