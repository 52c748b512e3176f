# SPDX-License-Identifier: Apache-2.0

"""
Tests for the form session registry.
"""

from unittest.mock import Mock

import pytest

from middleware.error_handler import NotFoundException
from services.form_sessions import FormSessionManager


@pytest.fixture
def manager(timer_factory):
    return FormSessionManager(Mock(), Mock(), delay_seconds=0.5, timer_factory=timer_factory)


class TestFormSessionManager:

    def test_create_and_get(self, manager):
        session = manager.create()

        assert manager.get(session.id) is session
        assert session.pipeline.store is session.store
        assert len(manager) == 1

    def test_sessions_are_independent(self, manager):
        first = manager.create()
        second = manager.create()

        first.pipeline.on_zipcode_input("01001000")

        assert first.store.state.zipcode == "01001000"
        assert second.store.state.zipcode == ""

    def test_unknown_session(self, manager):
        with pytest.raises(NotFoundException):
            manager.get("missing")

    def test_discard_cancels_pending_lookup(self, manager, timer_factory):
        session = manager.create()
        session.pipeline.on_zipcode_input("01001000")

        manager.discard(session.id)

        assert timer_factory.last.cancelled is True
        assert len(manager) == 0

    def test_discard_unknown_is_noop(self, manager):
        manager.discard("missing")

        assert len(manager) == 0


class TestIdleExpiry:
    """Sessions untouched for longer than the TTL are evicted."""

    @pytest.fixture(autouse=True)
    def setup(self, timer_factory):
        self.now = 0.0
        self.timers = timer_factory
        self.manager = FormSessionManager(
            Mock(), Mock(),
            delay_seconds=0.5,
            timer_factory=timer_factory,
            idle_ttl_seconds=60,
            clock=lambda: self.now
        )

    def test_idle_session_expires(self):
        session = self.manager.create()
        session.pipeline.on_zipcode_input("01001000")

        self.now = 61
        with pytest.raises(NotFoundException):
            self.manager.get(session.id)

        assert self.timers.last.cancelled is True
        assert len(self.manager) == 0

    def test_use_keeps_session_alive(self):
        session = self.manager.create()

        self.now = 50
        self.manager.get(session.id)
        self.now = 100

        assert self.manager.get(session.id) is session

    def test_create_evicts_abandoned_sessions(self):
        abandoned = self.manager.create()
        self.now = 30
        recent = self.manager.create()

        self.now = 75
        fresh = self.manager.create()

        assert len(self.manager) == 2
        assert self.manager.get(recent.id) is recent
        assert self.manager.get(fresh.id) is fresh
        with pytest.raises(NotFoundException):
            self.manager.get(abandoned.id)

    def test_evict_idle_reports_count(self):
        self.manager.create()
        self.manager.create()

        self.now = 120

        assert self.manager.evict_idle() == 2

    def test_zero_ttl_keeps_sessions(self, timer_factory):
        manager = FormSessionManager(Mock(), Mock(), timer_factory=timer_factory,
                                     idle_ttl_seconds=0, clock=lambda: self.now)
        session = manager.create()

        self.now = 10 ** 6

        assert manager.get(session.id) is session
