"""Shared test fixtures."""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from medicare_api.database import Base, get_db
from medicare_api.main import app
from medicare_api.models import AppointmentOption, User
from medicare_api.security import issue_token


@pytest.fixture
def engine():
    """In-memory SQLite shared by every session of a test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    """FastAPI test client whose requests use the in-memory database."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def catalog(db_session):
    """Two appointment options with small slot catalogs."""
    options = [
        AppointmentOption(name="Cleaning", price=99, slots=["9am", "10am", "11am"]),
        AppointmentOption(name="Cavity Protection", price=150, slots=["9am", "1pm"]),
    ]
    db_session.add_all(options)
    db_session.commit()
    return options


@pytest.fixture
def admin_token(db_session):
    db_session.add(User(name="Admin", email="admin@example.com", role="admin"))
    db_session.commit()
    return issue_token("admin@example.com")


@pytest.fixture
def patient_token(db_session):
    db_session.add(User(name="Patient", email="patient@example.com"))
    db_session.commit()
    return issue_token("patient@example.com")
