# tests/conftest.py
import os
from functools import lru_cache
from itertools import count

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database.base import Base
from database.connection import create_all_tables, get_db, make_engine
from modules.security.passwords import hash_password
from modules.security.tokens import create_access_token
from modules.users.models import User, UserRole, UserStatus

PASSWORD = "Secret#123"
_seq = count(1)


@lru_cache(maxsize=None)
def password_hash() -> str:
    # PBKDF2 is slow on purpose; hash once per run
    return hash_password(PASSWORD)


@pytest.fixture()
def engine():
    eng = make_engine("sqlite://", poolclass=StaticPool)
    create_all_tables(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def client(session_factory):
    from main import app

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    def _make(role=UserRole.OPERATOR, status=UserStatus.ACTIVE, **kw) -> User:
        n = next(_seq)
        fields = dict(
            email=f"user{n}@example.com",
            first_name=kw.pop("first_name", "Test"),
            last_name=kw.pop("last_name", f"User{n}"),
            password_hash=password_hash(),
            role=role,
            status=status,
            is_active=status == UserStatus.ACTIVE,
        )
        fields.update(kw)
        user = User(**fields)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


def auth_header(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.email, user.role.value)}"}


@pytest.fixture()
def headers_for():
    return auth_header


@pytest.fixture()
def director(make_user):
    return make_user(UserRole.DIRECTOR)


@pytest.fixture()
def director_headers(director):
    return auth_header(director)
