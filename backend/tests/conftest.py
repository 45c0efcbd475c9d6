import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from kurash.database import get_session  # noqa: E402
from kurash.main import app  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. All models MUST be imported before create_all() (see session_fixture)
# 4. App dependency overridden to use test_engine (see client_fixture)
# 5. Tables dropped after each test so every test starts empty
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session"""
    # Import all models to ensure they're registered BEFORE create_all
    from kurash.models.clubbed_result import ClubbedResult  # noqa: F401
    from kurash.models.event import Event  # noqa: F401
    from kurash.models.match_result import MatchResult  # noqa: F401
    from kurash.models.player import Player  # noqa: F401
    from kurash.models.sub_event import SubEvent  # noqa: F401
    from kurash.models.sub_event_participant import SubEventParticipant  # noqa: F401
    from kurash.models.summary_result import SummaryResult  # noqa: F401

    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override MUST be set BEFORE TestClient() and stay in place for the
    entire duration so the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture(name="make_sub_event")
def make_sub_event_fixture(session: Session):
    """
    Factory: event + sub-event + players on its roster.

    players is a list of (first_name, association) tuples, added in order.
    """
    from kurash.models.event import Event
    from kurash.models.player import Player
    from kurash.models.sub_event import SubEvent
    from kurash.models.sub_event_participant import SubEventParticipant

    def _make(players, seed: int = 7, title: str = "Men -66kg"):
        event = Event(title="National Kurash Championship", gender="male")
        session.add(event)
        session.commit()
        session.refresh(event)

        sub_event = SubEvent(event_id=event.id, title=title, min_weight=60, max_weight=66, bracket_seed=seed)
        session.add(sub_event)
        session.commit()
        session.refresh(sub_event)

        created = []
        for first_name, association in players:
            player = Player(first_name=first_name, last_name="Test", registered_association=association, weight=64)
            session.add(player)
            session.commit()
            session.refresh(player)
            session.add(SubEventParticipant(sub_event_id=sub_event.id, player_id=player.id))
            session.commit()
            created.append(player)

        return {"event_id": event.id, "sub_event_id": sub_event.id, "players": created}

    return _make
