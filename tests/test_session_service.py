"""응시 세션 서비스 테스트"""
import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app import exceptions
from app.crud import result as result_crud
from app.services import session_service
from app.services.session_service import SessionRegistry
from app.services.session_state import SessionState


async def _answer_all(registry, session_id, answers):
    for index, option_id in enumerate(answers):
        session_service.jump_to(registry, session_id, index)
        session_service.select_answer(registry, session_id, option_id)


@pytest.mark.asyncio
async def test_start_session_unknown_test(test_db_session, session_registry):
    """존재하지 않는 시험은 TestNotFoundError"""
    with pytest.raises(exceptions.TestNotFoundError):
        await session_service.start_session(test_db_session, session_registry, 9999)

    assert len(session_registry) == 0


@pytest.mark.asyncio
async def test_start_session_hides_correct_answers(test_db_session, session_registry, sample_test):
    """응시 시작 응답에는 정답이 포함되지 않음"""
    response = await session_service.start_session(
        test_db_session, session_registry, sample_test.id, user_id="user-1"
    )

    assert response.state == "in_progress"
    assert response.test_id == sample_test.id
    assert len(response.questions) == 3
    assert response.current_question.id == 1
    assert "correct_answer" not in response.model_dump()["questions"][0]
    assert response.time_remaining_display == "45:00"
    assert response.session_id in session_registry
    assert session_registry.get_timer(response.session_id).is_running


@pytest.mark.asyncio
async def test_navigation_and_answers(test_db_session, session_registry, sample_test):
    started = await session_service.start_session(test_db_session, session_registry, sample_test.id)
    sid = started.session_id

    session_service.select_answer(session_registry, sid, "B")
    moved = session_service.navigate(session_registry, sid, "next")
    assert moved.current_question_index == 1

    back = session_service.navigate(session_registry, sid, "previous")
    assert back.current_question_index == 0
    assert back.answers == {1: "B"}
    assert back.progress_percent == 33

    jumped = session_service.jump_to(session_registry, sid, 10)
    assert jumped.current_question_index == 0


@pytest.mark.asyncio
async def test_finish_session_persists_result(test_db_session, session_registry, sample_test):
    """완료 시 채점 결과 저장 및 타이머 취소"""
    started = await session_service.start_session(
        test_db_session, session_registry, sample_test.id, user_id="user-1"
    )
    sid = started.session_id
    await _answer_all(session_registry, sid, ["B", "B", "A"])

    response = await session_service.finish_session(test_db_session, session_registry, sid)

    assert response.persisted is True
    assert response.warning is None
    assert response.result.score == 2
    assert response.result.total_questions == 3
    assert response.result.weak_topics == ["algebra"]
    assert session_registry.get_timer(sid) is None

    saved = await result_crud.get_results_by_test_id(test_db_session, sample_test.id)
    assert len(saved) == 1
    assert saved[0].id == response.result_id
    assert saved[0].answers == {"1": "B", "2": "B", "3": "A"}
    assert saved[0].user_id == "user-1"


@pytest.mark.asyncio
async def test_finish_twice_returns_first_response(test_db_session, session_registry, sample_test):
    """두 번째 완료 요청은 최초 응답을 그대로 반환하고 다시 저장하지 않음"""
    started = await session_service.start_session(test_db_session, session_registry, sample_test.id)
    sid = started.session_id

    first = await session_service.finish_session(test_db_session, session_registry, sid)
    second = await session_service.finish_session(test_db_session, session_registry, sid)

    assert second == first
    saved = await result_crud.get_results_by_test_id(test_db_session, sample_test.id)
    assert len(saved) == 1


@pytest.mark.asyncio
async def test_persistence_failure_returns_warning(test_db_session, session_registry, sample_test):
    """저장 실패 시에도 결과와 warning 반환, 세션은 완료 상태 유지"""
    started = await session_service.start_session(test_db_session, session_registry, sample_test.id)
    sid = started.session_id

    with patch.object(
        result_crud,
        "create_test_result",
        new_callable=AsyncMock,
        side_effect=SQLAlchemyError("database is down"),
    ), patch.object(test_db_session, "rollback", new_callable=AsyncMock) as mock_rollback:
        response = await session_service.finish_session(test_db_session, session_registry, sid)

    mock_rollback.assert_awaited_once()

    assert response.persisted is False
    assert response.result_id is None
    assert response.warning == session_service.PERSISTENCE_WARNING
    assert response.result.score == 0
    assert session_registry.get(sid).state == SessionState.COMPLETED


@pytest.mark.asyncio
async def test_operations_after_finish_are_rejected(test_db_session, session_registry, sample_test):
    started = await session_service.start_session(test_db_session, session_registry, sample_test.id)
    sid = started.session_id
    await session_service.finish_session(test_db_session, session_registry, sid)

    with pytest.raises(exceptions.TestSessionClosedError):
        session_service.select_answer(session_registry, sid, "A")
    with pytest.raises(exceptions.TestSessionClosedError):
        session_service.navigate(session_registry, sid, "next")

    state = session_service.get_session(session_registry, sid)
    assert state.state == "completed"
    assert state.result.total_questions == 3


@pytest.mark.asyncio
async def test_close_session_cancels_timer(test_db_session, session_registry, sample_test):
    """세션 종료 시 타이머 취소 및 세션 제거"""
    started = await session_service.start_session(test_db_session, session_registry, sample_test.id)
    sid = started.session_id
    timer = session_registry.get_timer(sid)

    session_service.close_session(session_registry, sid)
    await asyncio.sleep(0.01)

    assert not timer.is_running
    with pytest.raises(exceptions.TestSessionNotFoundError):
        session_service.get_session(session_registry, sid)


@pytest.mark.asyncio
async def test_unknown_session_raises(session_registry):
    with pytest.raises(exceptions.TestSessionNotFoundError):
        session_service.get_session(session_registry, "missing")
    with pytest.raises(exceptions.TestSessionNotFoundError):
        session_service.close_session(session_registry, "missing")


@pytest.mark.asyncio
async def test_timer_expiry_auto_submits(test_db_session, test_session_maker, sample_test):
    """제한 시간이 끝나면 자동 제출되고, 이후 완료 요청은 같은 응답을 받음"""
    registry = SessionRegistry(test_session_maker, time_limit_seconds=2, tick_interval=0)
    try:
        started = await session_service.start_session(test_db_session, registry, sample_test.id)
        sid = started.session_id

        for _ in range(200):
            completion = registry.get_completion(sid)
            if completion is not None and completion.done():
                break
            await asyncio.sleep(0.01)

        completion = registry.get_completion(sid)
        assert completion is not None and completion.done()
        expired = completion.result()
        assert expired.persisted is True
        assert expired.result.time_taken_seconds == 2

        finished = await session_service.finish_session(test_db_session, registry, sid)
        assert finished == expired
    finally:
        await registry.shutdown()


async def _wait_until(predicate, attempts: int = 200) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_finished_sessions_are_evicted_after_retention(
    test_db_session, test_session_maker, sample_test
):
    """완료된 세션은 보관 시간 동안만 재조회 가능하고 이후 제거됨"""
    registry = SessionRegistry(
        test_session_maker, time_limit_seconds=2700, tick_interval=3600, retention_seconds=0.2
    )
    try:
        session_ids = []
        for _ in range(5):
            started = await session_service.start_session(test_db_session, registry, sample_test.id)
            await session_service.finish_session(test_db_session, registry, started.session_id)
            session_ids.append(started.session_id)

        again = await session_service.finish_session(test_db_session, registry, session_ids[-1])
        assert again.persisted is True

        await _wait_until(lambda: len(registry) == 0)

        assert len(registry) == 0
        for sid in session_ids:
            assert registry.get_completion(sid) is None
            with pytest.raises(exceptions.TestSessionNotFoundError):
                session_service.get_session(registry, sid)
    finally:
        await registry.shutdown()


@pytest.mark.asyncio
async def test_expired_sessions_release_timers_and_are_evicted(
    test_db_session, test_session_maker, sample_test
):
    """시간 만료로 자동 제출된 세션도 타이머 정리 후 제거됨"""
    registry = SessionRegistry(
        test_session_maker, time_limit_seconds=1, tick_interval=0, retention_seconds=0.05
    )
    try:
        session_ids = [
            (await session_service.start_session(test_db_session, registry, sample_test.id)).session_id
            for _ in range(3)
        ]

        await _wait_until(lambda: len(registry) == 0)

        assert len(registry) == 0
        assert all(registry.get_timer(sid) is None for sid in session_ids)
        assert all(registry.get_completion(sid) is None for sid in session_ids)
    finally:
        await registry.shutdown()


@pytest.mark.asyncio
async def test_manual_finish_during_expiry_save_shares_response(
    test_db_session, test_session_maker, sample_test
):
    """자동 제출 결과를 저장하는 중에 수동 제출이 들어오면 같은 응답을 기다려 받음"""
    registry = SessionRegistry(test_session_maker, time_limit_seconds=1, tick_interval=0)
    release = asyncio.Event()
    real_create = result_crud.create_test_result

    async def blocked_create(db, result):
        await release.wait()
        return await real_create(db, result)

    try:
        with patch.object(
            result_crud,
            "create_test_result",
            new_callable=AsyncMock,
            side_effect=blocked_create,
        ) as mock_create:
            started = await session_service.start_session(test_db_session, registry, sample_test.id)
            sid = started.session_id

            await _wait_until(lambda: registry.get_completion(sid) is not None)
            completion = registry.get_completion(sid)
            assert completion is not None
            assert not completion.done()

            manual = asyncio.create_task(
                session_service.finish_session(test_db_session, registry, sid)
            )
            await asyncio.sleep(0.01)
            assert not manual.done()

            release.set()
            manual_response = await asyncio.wait_for(manual, timeout=2)
            expired_response = await asyncio.wait_for(asyncio.shield(completion), timeout=2)

        assert manual_response == expired_response
        assert manual_response.persisted is True
        mock_create.assert_awaited_once()

        saved = await result_crud.get_results_by_test_id(test_db_session, sample_test.id)
        assert len(saved) == 1
        assert saved[0].id == manual_response.result_id
    finally:
        await registry.shutdown()
