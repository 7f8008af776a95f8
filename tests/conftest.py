"""테스트 공통 fixture"""
import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.token_cache import TokenCache
from app.crud import test as test_crud
from app.main import app
from app.models import Base
from app.models.base import get_db
from app.services import content_parser
from app.services.session_service import SessionRegistry

SAMPLE_TEST_CONTENT = """**Algebra Fundamentals Test**

This test checks your understanding of linear equations and polynomials.
Answer each question carefully.

**Question 1**
Solve for x: 2x + 3 = 7
A) 1
B) 2
C) 3
D) 4

**Question 2**
Which expression is equivalent to 3(x + 2)?
A) 3x + 2
B) 3x + 6
C) x + 6
D) 3x + 5

**Question 3**
What is the coefficient of x in the polynomial 5x^2 + 4x - 1?
A) 5
B) -1
C) 4
D) 2

Answer Key:
1. B
2. B
3. C
"""


@pytest.fixture
def sample_test_content() -> str:
    """LLM 응답 형식의 시험 원문"""
    return SAMPLE_TEST_CONTENT


@pytest_asyncio.fixture
async def test_engine():
    """인메모리 SQLite 엔진 (모든 세션이 같은 연결 공유)"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def test_session_maker(test_engine):
    return async_sessionmaker(test_engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def test_db_session(test_session_maker):
    """테스트용 DB 세션"""
    async with test_session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def session_registry(test_session_maker):
    """타이머가 사실상 돌지 않는 응시 세션 보관소"""
    registry = SessionRegistry(test_session_maker, time_limit_seconds=2700, tick_interval=3600)
    yield registry
    await registry.shutdown()


@pytest_asyncio.fixture
async def sample_test(test_db_session, sample_test_content):
    """DB에 저장된 3문제짜리 시험"""
    parsed = content_parser.parse_test_content(sample_test_content)
    return await test_crud.create_test(
        test_db_session,
        parsed,
        subject_area="Mathematics",
        difficulty_level="beginner",
        topics=None,
        user_id="user-1",
    )


@pytest.fixture
def mock_gemini_client():
    """모킹된 Gemini 클라이언트"""
    return MagicMock()


@pytest.fixture
def client_cache(mock_gemini_client):
    return TokenCache(lambda: mock_gemini_client, ttl_seconds=3600, name="test-gemini-client")


@pytest_asyncio.fixture
async def client(test_db_session, session_registry, client_cache):
    """API 테스트 클라이언트 (DB/세션 보관소/LLM 캐시 주입)"""
    async def override_get_db():
        yield test_db_session

    app.dependency_overrides[get_db] = override_get_db
    app.state.session_registry = session_registry
    app.state.llm_client_cache = client_cache

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
