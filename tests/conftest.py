import os

# Configure before the app modules read their environment.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["OTP_EXP_MINUTES"] = "0"
os.environ["MAIL_BACKEND"] = "smtp"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from database import Base, get_db
from errors import DispatchError
from main import app
from services.student_store import StudentStore
from utils.mailer import get_mailer
from utils.otp_service import OtpRegistry, get_otp_registry


class FakeMailer:
    """Records outgoing mail instead of sending it."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, to_address, subject, body):
        if self.fail:
            raise DispatchError("transport down")
        self.sent.append((to_address, subject, body))


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return StudentStore(db)


@pytest.fixture
def otp_registry():
    return OtpRegistry()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def client(session_factory, otp_registry, mailer):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_otp_registry] = lambda: otp_registry
    app.dependency_overrides[get_mailer] = lambda: mailer
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
