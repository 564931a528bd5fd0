import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_taskhub.db")
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from main import app
from taskhub.database import Base, get_session_factory
from taskhub.models import Company, User
from taskhub.utils.auth import create_access_token


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'taskhub.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_company(db):
    def factory(name, created_by=None, **fields):
        company = Company(name=name, created_by=created_by, **fields)
        db.add(company)
        db.commit()
        db.refresh(company)
        return company

    return factory


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def factory(name, role="staff", company=None, is_active=True):
        counter["n"] += 1
        user = User(
            name=name,
            email=f"{name.lower().replace(' ', '.')}{counter['n']}@example.com",
            role=role,
            company_id=company.id if company is not None else None,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return factory


def auth(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}
