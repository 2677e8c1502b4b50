"""Tests for the validation result cache."""

from leadlint.cache import ValidationCache, make_fingerprint
from leadlint.models import ValidationCategory, ValidationResult, ValidationStatus


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def _result(message="ok"):
    return ValidationResult(ValidationStatus.PASS, message)


def test_fingerprint_ignores_keyword_order():
    assert make_fingerprint(a=1, b=["x", "y"]) == make_fingerprint(b=["x", "y"], a=1)
    assert make_fingerprint(a=1, b=["x", "y"]) != make_fingerprint(a=1, b=["y", "x"])


def test_hit_returns_same_object():
    cache = ValidationCache(clock=FakeClock())
    result = _result()
    cache.put(ValidationCategory.MAILBOX_HEALTH, "fp", result)
    assert cache.get(ValidationCategory.MAILBOX_HEALTH, "fp") is result


def test_miss_on_other_fingerprint_or_category():
    cache = ValidationCache(clock=FakeClock())
    cache.put(ValidationCategory.MAILBOX_HEALTH, "fp", _result())
    assert cache.get(ValidationCategory.MAILBOX_HEALTH, "other") is None
    assert cache.get(ValidationCategory.CLIENT_CAMPAIGN, "fp") is None


def test_entry_expires_at_ttl():
    clock = FakeClock()
    cache = ValidationCache(ttl_seconds=300, clock=clock)
    cache.put(ValidationCategory.CLIENT_CAMPAIGN, "fp", _result())

    clock.now += 299.9
    assert cache.get(ValidationCategory.CLIENT_CAMPAIGN, "fp") is not None
    clock.now += 0.1
    assert cache.get(ValidationCategory.CLIENT_CAMPAIGN, "fp") is None


def test_put_replaces_entry_for_category():
    clock = FakeClock()
    cache = ValidationCache(clock=clock)
    cache.put(ValidationCategory.CLIENT_CAMPAIGN, "old", _result("old"))
    clock.now += 10
    entry = cache.put(ValidationCategory.CLIENT_CAMPAIGN, "new", _result("new"))

    assert len(cache) == 1
    assert entry.timestamp == 1010.0
    assert cache.entry(ValidationCategory.CLIENT_CAMPAIGN).fingerprint == "new"
    assert cache.get(ValidationCategory.CLIENT_CAMPAIGN, "old") is None


def test_invalidate():
    cache = ValidationCache(clock=FakeClock())
    cache.put(ValidationCategory.CLIENT_CAMPAIGN, "a", _result())
    cache.put(ValidationCategory.MAILBOX_HEALTH, "b", _result())

    cache.invalidate(ValidationCategory.CLIENT_CAMPAIGN)
    assert cache.get(ValidationCategory.CLIENT_CAMPAIGN, "a") is None
    assert len(cache) == 1

    cache.invalidate_all()
    assert len(cache) == 0
