"""
FastAPI dependency providers. Services never reach for ambient state:
each request gets a store bound to its own database session.
"""
from datetime import datetime
from typing import Callable

from fastapi import Depends
from sqlalchemy.orm import Session

from leaveflow.database import get_db
from leaveflow.services.directory import DirectoryService
from leaveflow.services.lifecycle import LeaveLifecycleService
from leaveflow.services.policy import utc_now
from leaveflow.services.queries import LeaveQueryService
from leaveflow.services.store import LeaveStore, SqlStore


def get_store(db: Session = Depends(get_db)) -> LeaveStore:
    return SqlStore(db)


def get_clock() -> Callable[[], datetime]:
    return utc_now


def get_lifecycle_service(
    store: LeaveStore = Depends(get_store),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> LeaveLifecycleService:
    return LeaveLifecycleService(store, clock=clock)


def get_query_service(
    store: LeaveStore = Depends(get_store),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> LeaveQueryService:
    return LeaveQueryService(store, clock=clock)


def get_directory_service(store: LeaveStore = Depends(get_store)) -> DirectoryService:
    return DirectoryService(store)


__all__ = [
    "get_store",
    "get_clock",
    "get_lifecycle_service",
    "get_query_service",
    "get_directory_service",
]
