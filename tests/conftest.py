import pytest
import os
from datetime import datetime, timezone
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SEED_DEMO_USERS"] = "false"

from leaveflow.database import Base, get_db
from leaveflow.dependencies import get_clock
from leaveflow.main import app
from leaveflow.schemas.user import User, UserRole
from leaveflow.services.store import InMemoryStore
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

# Wednesday, mid-morning UTC; far from month boundaries and the demo holidays
FIXED_NOW = datetime(2030, 6, 12, 9, 30, tzinfo=timezone.utc)

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# pysqlite does not emit BEGIN/SAVEPOINT correctly on its own; let SQLAlchemy
# drive transactions so the per-test rollback actually undoes committed savepoints
@event.listens_for(engine, "connect")
def _sqlite_connect(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None

@event.listens_for(engine, "begin")
def _sqlite_begin(conn):
    conn.exec_driver_sql("BEGIN")
# Services commit/rollback per operation; savepoints keep that inside the per-test transaction
TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=engine, join_transaction_mode="create_savepoint"
)

@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    import leaveflow.models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def db_session():
    """Get a clean database session for each test function with rollback safety."""
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()

@pytest.fixture(scope="function")
def clock():
    """Fixed clock; tests can move it by reassigning clock.now."""
    class FixedClock:
        now = FIXED_NOW

        def __call__(self):
            return self.now

    return FixedClock()

@pytest.fixture(scope="function")
def team():
    """Four employees and a manager: capacity allows two people off on the same day."""
    return [
        User(id="1", name="John Doe", role=UserRole.EMPLOYEE, email="john@example.com"),
        User(id="3", name="Mike Johnson", role=UserRole.MANAGER, email="mike@example.com"),
        User(id="4", name="Sarah Williams", role=UserRole.EMPLOYEE, email="sarah@example.com"),
        User(id="5", name="Alex Brown", role=UserRole.EMPLOYEE, email="alex@example.com"),
        User(id="6", name="Emily Chen", role=UserRole.EMPLOYEE, email="emily@example.com"),
    ]

@pytest.fixture(scope="function")
def store(team):
    """In-memory store pre-populated with the team."""
    store = InMemoryStore()
    store.save_users(team)
    return store

@pytest.fixture(scope="function")
def client(db_session, clock):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
