"""
Pytest configuration and shared fixtures for testing.
"""
import os
from pathlib import Path

import bcrypt

# Settings and the engine are built at import time, so the environment must
# be in place before anything from psychevaluator is imported.
_TEST_DB = Path(__file__).parent / "test.db"
ADMIN_PASSWORD = "admin-test-password"

os.environ["ENV"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key"
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DB}"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD_HASH"] = bcrypt.hashpw(
    ADMIN_PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)
).decode("utf-8")
os.environ["GOOGLE_API_KEY"] = ""
os.environ["NOTIFICATION_CHANNEL"] = "log"

from contextlib import asynccontextmanager  # noqa: E402
from typing import AsyncGenerator, Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from psychevaluator.analysis import (  # noqa: E402
    AnalysisErrorCategory,
    AnalysisProvider,
    AnalysisResult,
)
from psychevaluator.api.deps import get_analysis_provider  # noqa: E402
from psychevaluator.core.security import create_admin_token  # noqa: E402
from psychevaluator.main import app  # noqa: E402
from psychevaluator.models import (  # noqa: E402
    Base,
    Question,
    QuestionType,
    Test,
    get_db,
)


@asynccontextmanager
async def _test_lifespan(app):
    """No-op lifespan for tests."""
    yield


app.router.lifespan_context = _test_lifespan

ASYNC_SQLALCHEMY_DATABASE_URL = f"sqlite+aiosqlite:///{_TEST_DB}"

async_test_engine = create_async_engine(
    ASYNC_SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)


@event.listens_for(async_test_engine.sync_engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


AsyncTestingSessionLocal = async_sessionmaker(
    async_test_engine, class_=AsyncSession, expire_on_commit=False
)


class StubAnalysisProvider(AnalysisProvider):
    """Analysis provider returning a preset result and recording every call."""

    def __init__(self, result: Optional[AnalysisResult] = None):
        super().__init__(model="stub")
        self.result = result or AnalysisResult.success("calm")
        self.calls: List[Dict] = []

    async def analyze(self, responses: str, time_taken: int) -> AnalysisResult:
        self.calls.append({"responses": responses, "time_taken": time_taken})
        return self.result

    def fail_with(self, category: AnalysisErrorCategory, message: str) -> None:
        self.result = AnalysisResult.failure(category, message)


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create fresh tables and a session for seeding and assertions.

    Request handlers get their own sessions on the same database file.
    """
    async with async_test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncTestingSessionLocal() as session:
        yield session

    async with async_test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def stub_provider() -> StubAnalysisProvider:
    return StubAnalysisProvider()


@pytest.fixture(scope="function")
async def client(
    db_session: AsyncSession, stub_provider: StubAnalysisProvider
) -> AsyncGenerator[AsyncClient, None]:
    """
    Async test client with the database and analysis provider overridden.
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with AsyncTestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_analysis_provider] = lambda: stub_provider
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    """Bearer headers carrying a valid admin session token."""
    token, _ = create_admin_token("admin")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def published_test(db_session: AsyncSession) -> Test:
    """
    A published test with one question of each type, in order:
    multiple-choice, rating-scale, open-ended.
    """
    test = Test(title="Personality Basics", description="A short test", is_published=True)
    db_session.add(test)
    await db_session.flush()

    db_session.add_all(
        [
            Question(
                test_id=test.id,
                position=1,
                text="How do you spend a free evening?",
                question_type=QuestionType.MULTIPLE_CHOICE,
                options=[
                    {"id": "opt-a", "text": "With friends"},
                    {"id": "opt-b", "text": "Reading alone"},
                ],
            ),
            Question(
                test_id=test.id,
                position=2,
                text="How organised are you?",
                question_type=QuestionType.RATING_SCALE,
                scale_min=1,
                scale_max=5,
                min_label="Chaotic",
                max_label="Meticulous",
            ),
            Question(
                test_id=test.id,
                position=3,
                text="Describe a recent challenge.",
                question_type=QuestionType.OPEN_ENDED,
            ),
        ]
    )
    await db_session.commit()
    await db_session.refresh(test, attribute_names=["questions"])
    return test


@pytest.fixture
async def unpublished_test(db_session: AsyncSession) -> Test:
    test = Test(title="Draft", description="Not ready", is_published=False)
    db_session.add(test)
    await db_session.flush()
    db_session.add(
        Question(
            test_id=test.id,
            position=1,
            text="Draft question",
            question_type=QuestionType.OPEN_ENDED,
        )
    )
    await db_session.commit()
    await db_session.refresh(test, attribute_names=["questions"])
    return test


async def start_submission(
    client: AsyncClient,
    test_id: str,
    full_name: str = "Jane Doe",
    email: str = "jane@example.com",
) -> Dict:
    response = await client.post(
        f"/v1/tests/{test_id}/submissions",
        json={"full_name": full_name, "email": email},
    )
    assert response.status_code == 201, response.text
    return response.json()


async def finish_submission(
    client: AsyncClient, test_id: str, submission_id: str, answers: List[Dict]
) -> Dict:
    response = await client.post(
        f"/v1/tests/{test_id}/submissions/{submission_id}/finish",
        json={"answers": answers},
    )
    assert response.status_code == 200, response.text
    return response.json()
