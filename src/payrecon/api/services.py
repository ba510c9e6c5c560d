"""Service container shared by the API routes."""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable

from payrecon.core.config import AppSettings
from payrecon.core.protocols import IFileStore
from payrecon.mapping.templates import TemplateManager
from payrecon.payments.session import PaymentSession
from payrecon.persistence import create_persistence
from payrecon.pipeline import PipelineConfig, ReconciliationPipeline
from payrecon.platform.smartcat_client import SmartcatClient

logger = logging.getLogger(__name__)


@dataclass
class StoredSession:
    session: PaymentSession
    config: PipelineConfig
    touched_at: float = 0.0


class SessionStore:
    """Payment sessions by id, bounded in count and idle time.

    Reads refresh a session's position and idle clock. Adding past
    ``max_sessions`` evicts the least recently used session.
    """

    def __init__(self, max_sessions: int = 100, ttl_seconds: float = 3600,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self._max = max(1, max_sessions)
        self._ttl = ttl_seconds
        self._clock = clock
        self._items: OrderedDict[str, StoredSession] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            self._expire()
            return len(self._items)

    def __contains__(self, session_id: str) -> bool:
        return self.get(session_id) is not None

    def _expire(self) -> None:
        if self._ttl <= 0:
            return
        cutoff = self._clock() - self._ttl
        expired = [sid for sid, s in self._items.items() if s.touched_at < cutoff]
        for sid in expired:
            del self._items[sid]
        if expired:
            logger.info("Expired idle payment sessions count=%d", len(expired))

    def add(self, session_id: str, stored: StoredSession) -> None:
        with self._lock:
            self._expire()
            stored.touched_at = self._clock()
            self._items[session_id] = stored
            self._items.move_to_end(session_id)
            while len(self._items) > self._max:
                evicted, _ = self._items.popitem(last=False)
                logger.info("Evicted payment session id=%s limit=%d", evicted, self._max)

    def get(self, session_id: str) -> StoredSession | None:
        with self._lock:
            self._expire()
            stored = self._items.get(session_id)
            if stored is not None:
                stored.touched_at = self._clock()
                self._items.move_to_end(session_id)
            return stored

    def remove(self, session_id: str) -> bool:
        with self._lock:
            return self._items.pop(session_id, None) is not None


@dataclass
class Services:
    pipeline: ReconciliationPipeline
    file_store: IFileStore
    cache: Any = None
    sessions: SessionStore = field(default_factory=SessionStore)


def build_services(settings: AppSettings) -> Services:
    """Production wiring: DynamoDB/Redis/S3 persistence and the Smartcat client."""
    backends = create_persistence(settings)
    templates = TemplateManager(
        backends.template_store,
        default_swap_attempts=settings.templates.default_swap_attempts,
    )
    platform = SmartcatClient.from_settings(settings.smartcat)
    pipeline = ReconciliationPipeline(backends.vendor_registry, templates, platform, settings)
    sessions = SessionStore(settings.sessions.max_sessions, settings.sessions.ttl_seconds)
    return Services(
        pipeline=pipeline, file_store=backends.file_store, cache=backends.cache, sessions=sessions,
    )
