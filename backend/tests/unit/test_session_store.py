"""
Unit tests for the in-memory session store.
"""

from unittest.mock import patch

import pytest

from studio.core.config import settings
from studio.sessions import SessionStore


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(fake_adapter, registry, clock):
    with patch.object(settings, "SESSION_TTL_SECONDS", 60):
        yield SessionStore(adapter=fake_adapter, registry=registry, clock=clock)


def test_expired_session_releases_its_previews(store, clock, registry, sample_jpeg):
    abandoned = store.create()
    assert abandoned.select_image(sample_jpeg, "image/jpeg")
    assert len(registry) == 1

    clock.now += 61
    fresh = store.create()

    assert store.get(abandoned.session_id) is None
    assert len(registry) == 0
    assert fresh.select_image(sample_jpeg, "image/jpeg")


def test_access_keeps_session_alive(store, clock):
    wizard = store.create()

    for _ in range(3):
        clock.now += 45
        assert store.get(wizard.session_id) is wizard

    clock.now += 61
    assert store.get(wizard.session_id) is None


def test_abandoned_uploads_do_not_exhaust_previews(store, clock, registry, sample_jpeg):
    for _ in range(registry.max_handles):
        assert store.create().select_image(sample_jpeg, "image/jpeg")

    clock.now += 61
    wizard = store.create()

    assert wizard.select_image(sample_jpeg, "image/jpeg")
    assert len(store) == 1


def test_evict_expired_counts(store, clock):
    store.create()
    store.create()
    clock.now += 30
    store.create()

    clock.now += 31
    assert store.evict_expired() == 2
    assert len(store) == 1


def test_delete_and_clear(store, registry, sample_jpeg):
    first = store.create()
    first.select_image(sample_jpeg, "image/jpeg")
    store.create()

    assert store.delete(first.session_id)
    assert not store.delete(first.session_id)
    assert len(registry) == 0

    store.clear()
    assert len(store) == 0
