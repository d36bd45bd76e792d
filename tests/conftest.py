import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REFERENCE_TIMEZONE"] = "America/Sao_Paulo"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from points_ledger.db import Base, get_db
from points_ledger.main import app
from points_ledger.models.account import Account

TEAM = "team-a"
OTHER_TEAM = "team-b"


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_account(db):
    def _make(team: str = TEAM, identifier: str = "ACC-1", **balances) -> Account:
        account = Account(
            team=team,
            identifier=identifier,
            points_latam=balances.get("latam", 0),
            points_smiles=balances.get("smiles", 0),
            points_livelo=balances.get("livelo", 0),
            points_esfera=balances.get("esfera", 0),
        )
        db.add(account)
        db.commit()
        db.refresh(account)
        return account

    return _make


@pytest.fixture
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
