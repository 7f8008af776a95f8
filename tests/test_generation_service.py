"""시험 생성/조회 서비스 테스트"""
from unittest.mock import AsyncMock, patch

import pytest

from app import exceptions
from app.crud import test as test_crud
from app.schemas import test as test_schema
from app.services import ai_service, generation_service


@pytest.mark.asyncio
async def test_generate_test_parses_and_saves(test_db_session, client_cache, sample_test_content):
    """LLM 원문을 파싱해 메타데이터와 함께 저장"""
    request = test_schema.TestCreateRequest(
        subject_area="  Mathematics ",
        topics="algebra",
        difficulty_level="beginner",
        user_id="user-1",
    )

    with patch.object(
        ai_service, "generate_test_content", new_callable=AsyncMock, return_value=sample_test_content
    ) as mock_generate:
        response = await generation_service.generate_test(test_db_session, request, client_cache)

    ai_request = mock_generate.await_args.args[0]
    assert ai_request.subject_area == "Mathematics"
    assert ai_request.topics == "algebra"

    assert response.id is not None
    assert response.title == "Algebra Fundamentals Test"
    assert response.subject_area == "Mathematics"
    assert response.difficulty_level == "beginner"
    assert response.question_type == "mixed"
    assert [q.correct_answer for q in response.questions] == ["B", "B", "C"]

    stored = await test_crud.get_test_by_id(test_db_session, response.id)
    assert stored.raw_content == sample_test_content
    assert stored.user_id == "user-1"


@pytest.mark.asyncio
async def test_generate_test_parse_failure_saves_nothing(test_db_session, client_cache):
    """파싱 실패 시 TestParseError, 저장하지 않음"""
    request = test_schema.TestCreateRequest(subject_area="History")

    with patch.object(
        ai_service, "generate_test_content", new_callable=AsyncMock, return_value="I cannot do that."
    ):
        with pytest.raises(exceptions.TestParseError):
            await generation_service.generate_test(test_db_session, request, client_cache)

    assert await test_crud.get_tests(test_db_session) == []


@pytest.mark.asyncio
async def test_get_test_not_found(test_db_session):
    with pytest.raises(exceptions.TestNotFoundError):
        await generation_service.get_test(test_db_session, 404)


@pytest.mark.asyncio
async def test_list_tests_filters_by_user(test_db_session, sample_test):
    mine = await generation_service.list_tests(test_db_session, user_id="user-1")
    others = await generation_service.list_tests(test_db_session, user_id="someone-else")

    assert mine.total == 1
    assert mine.tests[0].id == sample_test.id
    assert mine.tests[0].question_count == 3
    assert others.total == 0


@pytest.mark.asyncio
async def test_list_results_for_missing_test(test_db_session):
    with pytest.raises(exceptions.TestNotFoundError):
        await generation_service.list_results(test_db_session, 12345)


@pytest.mark.asyncio
async def test_list_results_empty(test_db_session, sample_test):
    results = await generation_service.list_results(test_db_session, sample_test.id)

    assert results.total == 0
    assert results.results == []
