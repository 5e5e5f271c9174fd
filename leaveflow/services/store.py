"""
Leave Store

Key-value persistence for the leave workflow. Every collection (users,
balances, applications, manager assignments) is read and written as a
whole, mirroring the "one JSON array per key" layout the client used.

Two backends:
- InMemoryStore: dict-backed, used by unit tests and scripts
- SqlStore: one `store_entries` row per collection with a version counter.
  Writes are compare-and-set against the version read in the current unit
  of work, so two writers racing on the same collection cannot silently
  overwrite each other.

An absent key is a valid empty collection.
"""
import abc
import copy
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from leaveflow.core.exceptions import StoreConflict, StoreUnavailable
from leaveflow.models.store_entry import StoreEntry
from leaveflow.schemas.leave import LeaveApplication, LeaveBalance
from leaveflow.schemas.user import ManagerAssignment, User

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

USERS_KEY = "users"
BALANCES_KEY = "balances"
APPLICATIONS_KEY = "applications"
ASSIGNMENTS_KEY = "manager_assignments"


class LeaveStore(abc.ABC):
    """Whole-collection load/save plus an explicit unit-of-work boundary."""

    @abc.abstractmethod
    def _read(self, key: str) -> Optional[List[Dict[str, Any]]]:
        """Return the raw collection, or None when the key was never written."""

    @abc.abstractmethod
    def _write(self, key: str, items: List[Dict[str, Any]]) -> None:
        ...

    def begin(self) -> None:
        pass

    def commit(self) -> None:
        pass

    def rollback(self) -> None:
        pass

    def _load(self, key: str, model: Type[M]) -> List[M]:
        raw = self._read(key)
        if not raw:
            return []
        return [model.model_validate(item) for item in raw]

    def _save(self, key: str, items: List[BaseModel]) -> None:
        self._write(key, [item.model_dump(mode="json") for item in items])

    def load_users(self) -> List[User]:
        return self._load(USERS_KEY, User)

    def save_users(self, users: List[User]) -> None:
        self._save(USERS_KEY, users)

    def load_balances(self) -> List[LeaveBalance]:
        return self._load(BALANCES_KEY, LeaveBalance)

    def save_balances(self, balances: List[LeaveBalance]) -> None:
        self._save(BALANCES_KEY, balances)

    def load_applications(self) -> List[LeaveApplication]:
        return self._load(APPLICATIONS_KEY, LeaveApplication)

    def save_applications(self, applications: List[LeaveApplication]) -> None:
        self._save(APPLICATIONS_KEY, applications)

    def load_manager_assignments(self) -> List[ManagerAssignment]:
        return self._load(ASSIGNMENTS_KEY, ManagerAssignment)

    def save_manager_assignments(self, assignments: List[ManagerAssignment]) -> None:
        self._save(ASSIGNMENTS_KEY, assignments)

    def clear(self, key: str) -> None:
        self._write(key, [])


class InMemoryStore(LeaveStore):
    def __init__(self, data: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self._data: Dict[str, List[Dict[str, Any]]] = copy.deepcopy(data) if data else {}
        # state at the start of the current unit of work
        self._snapshot: Optional[Dict[str, List[Dict[str, Any]]]] = None

    def _read(self, key):
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    def _write(self, key, items):
        self._data[key] = copy.deepcopy(items)

    def begin(self) -> None:
        self._snapshot = copy.deepcopy(self._data)

    def commit(self) -> None:
        self._snapshot = None

    def rollback(self) -> None:
        if self._snapshot is not None:
            self._data = self._snapshot
            self._snapshot = None


class SqlStore(LeaveStore):
    """
    SQLAlchemy-backed store. Does not commit on its own: the service layer
    calls commit()/rollback() once per operation.
    """

    def __init__(self, db: Session):
        self.db = db
        # key -> version observed in the current unit of work
        self._versions: Dict[str, int] = {}

    def _fetch(self, key: str):
        return self.db.execute(
            select(StoreEntry.payload, StoreEntry.version).where(StoreEntry.key == key)
        ).first()

    def _read(self, key):
        try:
            row = self._fetch(key)
        except SQLAlchemyError as e:
            logger.error(f"Store read failed for '{key}': {e}", exc_info=True)
            raise StoreUnavailable() from e

        if row is None:
            self._versions[key] = 0
            return None
        self._versions[key] = row.version
        return copy.deepcopy(row.payload)

    def _write(self, key, items):
        try:
            expected = self._versions.get(key)
            if expected is None:
                # Blind write: nothing was read in this unit of work
                row = self._fetch(key)
                expected = row.version if row is not None else 0

            if expected == 0:
                self.db.execute(insert(StoreEntry).values(key=key, payload=items, version=1))
            else:
                result = self.db.execute(
                    update(StoreEntry)
                    .where(StoreEntry.key == key, StoreEntry.version == expected)
                    .values(payload=items, version=expected + 1)
                )
                if result.rowcount != 1:
                    logger.warning(f"Version conflict on '{key}' (expected v{expected})")
                    raise StoreConflict(key)
            self._versions[key] = expected + 1
        except IntegrityError as e:
            # Another writer created the collection first
            raise StoreConflict(key) from e
        except SQLAlchemyError as e:
            logger.error(f"Store write failed for '{key}': {e}", exc_info=True)
            raise StoreUnavailable() from e

    def commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreUnavailable() from e
        finally:
            self._versions.clear()

    def rollback(self) -> None:
        self.db.rollback()
        self._versions.clear()
