import logging

from fastapi import APIRouter, Depends, Query, status
from google import genai
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_llm_client_cache, get_session_registry
from app.core.token_cache import TokenCache
from app.models.base import get_db
from app.schemas import session as session_schema, test as test_schema
from app.services import generation_service, session_service
from app.services.session_service import SessionRegistry

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/tests", tags=["tests"])


@router.post("/generate", response_model=test_schema.TestResponse, status_code=status.HTTP_201_CREATED)
async def generate_test(
    request: test_schema.TestCreateRequest,
    db: AsyncSession = Depends(get_db),
    client_cache: TokenCache[genai.Client] = Depends(get_llm_client_cache),
):
    """시험 생성 API"""
    logger.info(
        f"시험 생성 요청: subject_area={request.subject_area}, "
        f"difficulty={request.difficulty_level}, topics={request.topics}"
    )
    return await generation_service.generate_test(db, request, client_cache)


@router.get("", response_model=test_schema.TestListResponse)
async def list_tests(
    user_id: str | None = Query(None, description="사용자 ID (없으면 전체)"),
    db: AsyncSession = Depends(get_db),
):
    """시험 목록 조회 API (최신순)"""
    return await generation_service.list_tests(db, user_id)


@router.get("/{test_id}", response_model=test_schema.TestResponse)
async def get_test(
    test_id: int,
    db: AsyncSession = Depends(get_db),
):
    """시험 조회 API"""
    return await generation_service.get_test(db, test_id)


@router.get("/{test_id}/results", response_model=session_schema.TestResultListResponse)
async def list_test_results(
    test_id: int,
    db: AsyncSession = Depends(get_db),
):
    """시험별 응시 결과 조회 API"""
    return await generation_service.list_results(db, test_id)


@router.post(
    "/{test_id}/sessions",
    response_model=session_schema.TestSessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def start_session(
    test_id: int,
    request: session_schema.SessionStartRequest | None = None,
    db: AsyncSession = Depends(get_db),
    registry: SessionRegistry = Depends(get_session_registry),
):
    """응시 시작 API"""
    user_id = request.user_id if request else None
    return await session_service.start_session(db, registry, test_id, user_id)
