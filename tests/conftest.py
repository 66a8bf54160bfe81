import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import purchase_api.models  # noqa: F401
from purchase_api.database import Base, get_db
from purchase_api.main import app
from purchase_api.services.auth_service import Identity, create_session_token


class RecordingNotifier:
    """Stands in for the background notifier; keeps every dispatched message."""

    def __init__(self):
        self.calls: list[tuple[str, list[str], dict]] = []

    def __call__(self, template_id: str, recipient_emails: list[str], context: dict) -> None:
        self.calls.append((template_id, list(recipient_emails), dict(context)))

    def templates(self) -> list[str]:
        return [c[0] for c in self.calls]

    def recipients_for(self, template_id: str) -> list[str]:
        return [r for t, rs, _ in self.calls if t == template_id for r in rs]


@pytest.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def requester():
    return Identity(display_name="Alice Requester", emails=("alice@acme.com",))


@pytest.fixture
def approver():
    return Identity(display_name="Bob Approver", emails=("b@x.com",))


@pytest.fixture
def outsider():
    return Identity(display_name="Carol Outsider", emails=("carol@acme.com",))


@pytest.fixture
def auth_headers():
    def _headers(identity: Identity) -> dict:
        return {"Authorization": f"Bearer {create_session_token(identity)}"}

    return _headers


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
