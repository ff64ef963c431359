import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("DESCRIPTOR_CIPHER_KEY", "test-descriptor-key")

from datetime import datetime, timezone

import numpy as np
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from attendance_api.api.deps import get_clock
from attendance_api.core.security import create_access_token, hash_password
from attendance_api.db.base import Base
from attendance_api.db.models import Company, User
from attendance_api.db.session import get_db
from attendance_api.main import app
from attendance_api.services.descriptors import save_descriptor

PASSWORD = "secret123"
PASSWORD_HASH = hash_password(PASSWORD)


class FrozenClock:
    def __init__(self, instant: datetime) -> None:
        self.instant = instant

    def __call__(self) -> datetime:
        return self.instant

    def set(self, *args: int) -> None:
        self.instant = datetime(*args, tzinfo=timezone.utc)


def random_descriptor(seed: int) -> np.ndarray:
    return np.random.default_rng(seed).normal(0.0, 0.1, 128)


def nudge(vector: np.ndarray, scale: float = 0.01, seed: int = 99) -> np.ndarray:
    return vector + np.random.default_rng(seed).normal(0.0, scale, vector.shape)


def auth_headers(user: User) -> dict:
    token = create_access_token(subject=str(user.id), role=user.role, token_version=user.token_version)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture()
def clock():
    # Monday morning
    return FrozenClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))


@pytest.fixture()
def client(session_factory, clock):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_company(db):
    def _make(name: str = "Acme", tz: str = "UTC") -> Company:
        company = Company(name=name, email=f"{name.lower().replace(' ', '-')}@example.com", timezone=tz)
        db.add(company)
        db.commit()
        db.refresh(company)
        return company

    return _make


@pytest.fixture()
def make_user(db):
    counter = {"n": 0}

    def _make(company: Company | None, role: str = "employee", name: str | None = None) -> User:
        counter["n"] += 1
        user = User(
            name=name or f"{role.title()} {counter['n']}",
            email=f"{role}{counter['n']}@example.com",
            password_hash=PASSWORD_HASH,
            role=role,
            company_id=company.id if company else None,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture()
def enroll(db):
    def _enroll(user: User, vector: np.ndarray):
        row, _ = save_descriptor(db, user, vector)
        return row

    return _enroll
