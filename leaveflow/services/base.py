import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Optional

from leaveflow.services.policy import utc_now
from leaveflow.services.store import LeaveStore


class BaseService:
    """Shared plumbing: the injected store, a clock and one-commit-per-operation transactions."""

    def __init__(self, store: LeaveStore, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.clock = clock or utc_now
        self._logger = logging.getLogger(self.__class__.__module__)

    @contextmanager
    def transaction(self):
        self.store.begin()
        try:
            yield
            self.store.commit()
        except Exception:
            self.store.rollback()
            raise
