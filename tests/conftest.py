import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pnlcard.database import get_db
from pnlcard.main import app
from pnlcard.models import Base
from pnlcard.services.price_feed import FeedState, get_price_feeds
from pnlcard.services.render_service import get_renderer

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-card"


class FakeRenderer:
    """Records requested URLs instead of launching a browser."""

    def __init__(self):
        self.urls: list[str] = []
        self.error: Exception | None = None

    async def render_card(self, url: str) -> bytes:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return PNG_BYTES


class FakePriceFeeds:
    """Records start/stop calls instead of opening websockets."""

    def __init__(self):
        self.started: list[tuple[int, str]] = []
        self.stopped: list[int] = []
        self.feeds: dict[int, FeedState] = {}

    def start(self, card_id: int, symbol: str) -> FeedState:
        self.started.append((card_id, symbol))
        state = FeedState(card_id=card_id, symbol=symbol)
        self.feeds[card_id] = state
        return state

    async def stop(self, card_id: int) -> None:
        self.stopped.append(card_id)
        self.feeds.pop(card_id, None)

    def status(self, card_id: int) -> FeedState | None:
        return self.feeds.get(card_id)


@pytest.fixture
def session_factory():
    """In-memory SQLite shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def price_feeds():
    return FakePriceFeeds()


@pytest.fixture
def client(db_session, renderer, price_feeds):
    """Test client wired to the in-memory database and fake collaborators."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_renderer] = lambda: renderer
    app.dependency_overrides[get_price_feeds] = lambda: price_feeds
    yield TestClient(app)
    app.dependency_overrides.clear()
