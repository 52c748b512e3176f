# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
In-memory registry of flooding notification form sessions.

Each session owns a form state store and the resolution pipeline that
feeds it. Sessions left idle longer than the configured TTL are evicted
the next time the registry is used; persistence of the finished
notification happens through the notification API.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
import threading
import time
import logging

from models.base import generate_id
from domain.form_state import FormStateStore
from middleware.error_handler import NotFoundException
from services.cep import CepService
from services.geocoding import NominatimGeocoder
from services.pipeline import AddressResolutionPipeline
from utils.debounce import DEFAULT_DELAY_SECONDS

logger = logging.getLogger(__name__)

DEFAULT_IDLE_TTL_SECONDS = 1800


@dataclass
class FormSession:
    id: str
    store: FormStateStore
    pipeline: AddressResolutionPipeline
    last_seen: float = 0.0
    # Held for the whole submit so one form is persisted at most once
    submit_lock: threading.Lock = field(default_factory=threading.Lock)


class FormSessionManager:
    """Creates, looks up and expires form sessions."""

    def __init__(
        self,
        cep_service: CepService,
        geocoder: NominatimGeocoder,
        delay_seconds: float = DEFAULT_DELAY_SECONDS,
        timer_factory: Callable[..., Any] = threading.Timer,
        idle_ttl_seconds: Optional[float] = DEFAULT_IDLE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ):
        self.cep_service = cep_service
        self.geocoder = geocoder
        self.delay_seconds = delay_seconds
        self.timer_factory = timer_factory
        self.idle_ttl_seconds = idle_ttl_seconds
        self.clock = clock
        self._sessions: Dict[str, FormSession] = {}
        self._lock = threading.Lock()

    def create(self) -> FormSession:
        """Open a new session with a blank form."""
        store = FormStateStore()
        pipeline = AddressResolutionPipeline(
            self.cep_service,
            self.geocoder,
            store,
            delay_seconds=self.delay_seconds,
            timer_factory=self.timer_factory
        )
        session = FormSession(id=generate_id(), store=store, pipeline=pipeline)
        with self._lock:
            expired = self._pop_expired()
            session.last_seen = self.clock()
            self._sessions[session.id] = session
        self._close(expired)
        logger.info("Form session created", extra={"session_id": session.id})
        return session

    def get(self, session_id: str) -> FormSession:
        """
        Look up a session and mark it as used.

        Raises:
            NotFoundException: no session with this id, or it expired
        """
        with self._lock:
            expired = self._pop_expired()
            session = self._sessions.get(session_id)
            if session is not None:
                session.last_seen = self.clock()
        self._close(expired)
        if session is None:
            raise NotFoundException(f"Form session {session_id} not found")
        return session

    def discard(self, session_id: str) -> None:
        """Forget a session and cancel its pending lookup."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is not None:
            session.pipeline.close()
            logger.info("Form session discarded", extra={"session_id": session_id})

    def evict_idle(self) -> int:
        """Drop every session idle past the TTL; returns how many went."""
        with self._lock:
            expired = self._pop_expired()
        self._close(expired)
        return len(expired)

    def _pop_expired(self) -> List[FormSession]:
        # Caller holds self._lock
        if not self.idle_ttl_seconds:
            return []
        deadline = self.clock() - self.idle_ttl_seconds
        expired = [s for s in self._sessions.values() if s.last_seen <= deadline]
        for session in expired:
            del self._sessions[session.id]
        return expired

    def _close(self, sessions: List[FormSession]) -> None:
        for session in sessions:
            session.pipeline.close()
            logger.info("Form session expired", extra={"session_id": session.id})

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
