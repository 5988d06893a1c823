import itertools
import os
from datetime import datetime

# Settings refuse to load without a database URL; tests run on in-memory SQLite
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from app.core.database import get_session
from app.main import app
from app.models.enums import CEFRLevel, CardKind
from app.models.learning_card import LearningCard
from app.services.card_repository import SqlCardRepository

NOW = datetime(2024, 1, 1, 10, 0, 0)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def repository(session):
    return SqlCardRepository(session)


@pytest.fixture
def make_card(repository):
    """Create and store a card; every field can be overridden."""
    counter = itertools.count(1)

    def _make(**overrides) -> LearningCard:
        number = next(counter)
        values = dict(
            user_id="user-1",
            kind=CardKind.GRAMMAR,
            topic_id=f"topic-{number}",
            title=f"Topic {number}",
            language="fr",
            level=CEFRLevel.A1,
            ease_factor=2.5,
            interval=0,
            repetitions=0,
            next_review_at=NOW,
            created_time=NOW,
        )
        values.update(overrides)
        return repository.add_card(LearningCard(**values))

    return _make


@pytest.fixture
def client(engine):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()
