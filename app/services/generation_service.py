import logging

from google import genai
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.token_cache import TokenCache
from app.crud import result as result_crud, test as test_crud
from app.exceptions import TestNotFoundError
from app.schemas import ai, session as session_schema, test as test_schema
from app.services import ai_service, content_parser

logger = logging.getLogger(__name__)


async def generate_test(
    session: AsyncSession,
    request: test_schema.TestCreateRequest,
    client_cache: TokenCache[genai.Client],
) -> test_schema.TestResponse:
    """시험 생성: LLM 원문 생성 -> 파싱 -> 저장"""
    ai_request = ai.AITestGenerationRequest(
        subject_area=request.subject_area,
        difficulty_level=request.difficulty_level,
        topics=request.topics,
        question_count=settings.test_question_count,
    )
    raw_content = await ai_service.generate_test_content(ai_request, client_cache)

    # 파싱 실패(TestParseError)는 그대로 전파: 사용자에게 재생성 안내
    parsed = content_parser.parse_test_content(raw_content)

    test = await test_crud.create_test(
        session,
        parsed,
        subject_area=request.subject_area,
        difficulty_level=request.difficulty_level,
        topics=request.topics,
        question_type=request.question_type,
        user_id=request.user_id,
    )
    logger.info(
        f"시험 생성 완료: test_id={test.id}, subject_area={request.subject_area}, "
        f"questions={len(parsed.questions)}"
    )
    return test_schema.TestResponse.model_validate(test)


async def get_test(
    session: AsyncSession,
    test_id: int,
) -> test_schema.TestResponse:
    """시험 조회"""
    test = await test_crud.get_test_by_id(session, test_id)
    if not test:
        raise TestNotFoundError(test_id)
    return test_schema.TestResponse.model_validate(test)


async def list_tests(
    session: AsyncSession,
    user_id: str | None = None,
) -> test_schema.TestListResponse:
    """시험 목록 조회"""
    tests = await test_crud.get_tests(session, user_id)
    summaries = [
        test_schema.TestSummaryResponse(
            id=t.id,
            title=t.title,
            subject_area=t.subject_area,
            difficulty_level=t.difficulty_level,
            topics=t.topics,
            question_count=len(t.questions or []),
            created_at=t.created_at,
        )
        for t in tests
    ]
    return test_schema.TestListResponse(tests=summaries, total=len(summaries))


async def list_results(
    session: AsyncSession,
    test_id: int,
) -> session_schema.TestResultListResponse:
    """시험별 응시 결과 목록 조회"""
    test = await test_crud.get_test_by_id(session, test_id)
    if not test:
        raise TestNotFoundError(test_id)

    results = await result_crud.get_results_by_test_id(session, test_id)
    responses = [session_schema.TestResultResponse.model_validate(r) for r in results]
    return session_schema.TestResultListResponse(results=responses, total=len(responses))
