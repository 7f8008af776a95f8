"""세션 타이머 테스트"""
import asyncio
from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from app.schemas import test as test_schema
from app.services.session_state import SessionState, TestSession
from app.services.session_timer import SessionTimer


def _loaded_session(time_limit_seconds: int) -> TestSession:
    session = TestSession(time_limit_seconds=time_limit_seconds)
    session.load(
        test_schema.TestResponse(
            id=1,
            user_id=None,
            title="Timer",
            description="Timer test",
            questions=[
                test_schema.TestQuestion(
                    id=1,
                    text="Pick",
                    options=[
                        test_schema.TestOption(id="A", text="a"),
                        test_schema.TestOption(id="B", text="b"),
                    ],
                    correct_answer="A",
                )
            ],
            subject_area="General",
            difficulty_level="beginner",
            topics=None,
            question_type="mcq",
            created_at=datetime(2026, 1, 1),
        )
    )
    return session


@pytest.mark.asyncio
async def test_timer_expires_session_and_calls_callback_once():
    """시간이 다 되면 자동 완료 후 콜백 1회 호출"""
    session = _loaded_session(time_limit_seconds=3)
    expired = asyncio.Event()
    on_expire = AsyncMock(side_effect=lambda result: expired.set())
    timer = SessionTimer(session, on_expire, interval=0)

    timer.start()
    await asyncio.wait_for(expired.wait(), timeout=1)
    await timer.stop()

    assert session.state == SessionState.COMPLETED
    assert session.time_remaining_seconds == 0
    on_expire.assert_awaited_once()
    assert on_expire.await_args.args[0] is session.result
    assert not timer.is_running


@pytest.mark.asyncio
async def test_cancelled_timer_never_expires():
    """취소된 타이머는 콜백을 호출하지 않음"""
    session = _loaded_session(time_limit_seconds=2700)
    on_expire = AsyncMock()
    timer = SessionTimer(session, on_expire, interval=0.01)

    timer.start()
    assert timer.is_running
    await timer.stop()

    assert not timer.is_running
    assert session.state == SessionState.IN_PROGRESS
    on_expire.assert_not_awaited()


@pytest.mark.asyncio
async def test_cancel_is_idempotent():
    timer = SessionTimer(_loaded_session(60), AsyncMock(), interval=0.01)

    timer.cancel()
    timer.start()
    timer.cancel()
    timer.cancel()
    await timer.stop()

    assert not timer.is_running


@pytest.mark.asyncio
async def test_manual_finish_stops_timer_loop():
    """수동 제출 후에는 타이머가 만료 콜백 없이 종료"""
    session = _loaded_session(time_limit_seconds=1000)
    on_expire = AsyncMock()
    timer = SessionTimer(session, on_expire, interval=0)

    timer.start()
    await asyncio.sleep(0)
    assert session.finish() is not None
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert not timer.is_running
    on_expire.assert_not_awaited()


@pytest.mark.asyncio
async def test_start_twice_keeps_single_task():
    timer = SessionTimer(_loaded_session(60), AsyncMock(), interval=0.01)

    timer.start()
    first_task = timer._task
    timer.start()

    assert timer._task is first_task
    await timer.stop()
