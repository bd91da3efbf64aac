import os
import tempfile
from datetime import date, datetime, time, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["BOOTSTRAP_ADMIN"] = "false"
os.environ["EXPORT_TEMP_DIR"] = tempfile.mkdtemp(prefix="leave-export-")

from leave_system.database import Base, get_db, init_db
from leave_system.main import app
from leave_system.services import auth as auth_service
from leave_system.services.account_store import AccountStore
from leave_system.services.record_store import LeaveRecordStore
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Fresh schema for each test. Services commit and roll back on their own,
    so an outer rollback-only transaction would not isolate tests.
    """
    init_db(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def accounts(db_session):
    return AccountStore(db_session)


@pytest.fixture(scope="function")
def store(db_session):
    return LeaveRecordStore(db_session)


@pytest.fixture(scope="function")
def admin_account(accounts):
    """Default administrator."""
    return accounts.create(employee_id="ADMIN01", name="主管", password="admin1234", permission="admin")


@pytest.fixture(scope="function")
def employee_account(accounts):
    """Employee with the default quotas (personal leave 14)."""
    return accounts.create(employee_id="EMP001", name="測試員工", password="pass1234", permission="employee")


@pytest.fixture(scope="function")
def other_employee(accounts):
    return accounts.create(
        employee_id="EMP002",
        name="第二員工",
        password="pass5678",
        permission="employee",
        quotas={},
    )


@pytest.fixture(scope="function")
def make_record(store, db_session):
    """Insert a record directly through the store and commit it."""
    def _make_record(
        employee_id="EMP001",
        leave_type="事假",
        start=date(2024, 6, 15),
        hours=8,
        start_time=time(9, 0),
        applied_at=None,
        name="測試員工",
        end=None,
    ):
        starts = datetime.combine(start, start_time)
        ends = starts + timedelta(hours=float(hours)) if end is None else datetime.combine(end, time(18, 0))
        record = store.insert(
            employee_id=employee_id,
            name=name,
            leave_type=leave_type,
            start_date=starts.date(),
            start_time=starts.time(),
            end_date=ends.date(),
            end_time=ends.time(),
            leave_hours=Decimal(str(hours)),
            applied_at=applied_at,
        )
        db_session.commit()
        return record
    return _make_record


@pytest.fixture(scope="function")
def get_token():
    """Helper fixture to create access tokens for an account."""
    def _get_token(account):
        return auth_service.token_for(account)
    return _get_token


@pytest.fixture(scope="function")
def auth_headers(get_token):
    def _auth_headers(account):
        return {"Authorization": f"Bearer {get_token(account)}"}
    return _auth_headers


@pytest.fixture(scope="function")
def client(db_session):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
