import asyncio
import logging
from contextlib import AbstractAsyncContextManager
from typing import Callable, Literal

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.crud import result as result_crud, test as test_crud
from app.exceptions import (
    TestNotFoundError,
    TestSessionClosedError,
    TestSessionNotFoundError,
)
from app.schemas import session as session_schema, test as test_schema
from app.services.session_state import SessionState, TestSession
from app.services.session_timer import SessionTimer

logger = logging.getLogger(__name__)

PERSISTENCE_WARNING = "응시 결과를 저장하지 못했습니다. 결과는 이 화면에서만 확인할 수 있습니다."

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class SessionRegistry:
    """진행 중/완료된 응시 세션과 타이머 보관소 (프로세스 메모리)"""

    def __init__(
        self,
        db_session_factory: SessionFactory,
        time_limit_seconds: int | None = None,
        tick_interval: float = 1.0,
        retention_seconds: float | None = None,
    ):
        self.db_session_factory = db_session_factory
        self.time_limit_seconds = (
            time_limit_seconds if time_limit_seconds is not None else settings.test_time_limit_seconds
        )
        self.tick_interval = tick_interval
        self.retention_seconds = (
            retention_seconds if retention_seconds is not None else settings.test_session_retention_seconds
        )
        self._sessions: dict[str, TestSession] = {}
        self._timers: dict[str, SessionTimer] = {}
        self._completions: dict[str, asyncio.Future] = {}
        self._evictions: dict[str, asyncio.TimerHandle] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def add(self, session: TestSession, timer: SessionTimer | None = None) -> None:
        self._sessions[session.session_id] = session
        if timer is not None:
            self._timers[session.session_id] = timer

    def get(self, session_id: str) -> TestSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise TestSessionNotFoundError(session_id)
        return session

    def get_timer(self, session_id: str) -> SessionTimer | None:
        return self._timers.get(session_id)

    def get_completion(self, session_id: str) -> asyncio.Future | None:
        return self._completions.get(session_id)

    def begin_completion(self, session_id: str) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        self._completions[session_id] = future
        return future

    def cancel_timer(self, session_id: str) -> None:
        timer = self._timers.pop(session_id, None)
        if timer is not None:
            timer.cancel()

    def schedule_eviction(self, session_id: str) -> None:
        """보관 시간이 지나면 완료된 세션 제거 (그 전까지 완료 응답 재조회 가능)"""
        handle = self._evictions.pop(session_id, None)
        if handle is not None:
            handle.cancel()
        self._evictions[session_id] = asyncio.get_running_loop().call_later(
            self.retention_seconds, self.remove, session_id
        )

    def remove(self, session_id: str) -> None:
        """세션 정리 (타이머 취소 포함)"""
        self.cancel_timer(session_id)
        handle = self._evictions.pop(session_id, None)
        if handle is not None:
            handle.cancel()
        self._sessions.pop(session_id, None)
        self._completions.pop(session_id, None)

    async def shutdown(self) -> None:
        """서버 종료 시 모든 타이머 정지"""
        timers = list(self._timers.values())
        self._timers.clear()
        for handle in self._evictions.values():
            handle.cancel()
        self._evictions.clear()
        for timer in timers:
            await timer.stop()
        self._sessions.clear()
        self._completions.clear()
        if timers:
            logger.info(f"응시 세션 타이머 정리 완료: {len(timers)}개")


def _to_question_view(question: test_schema.TestQuestion) -> session_schema.SessionQuestionView:
    return session_schema.SessionQuestionView(
        id=question.id,
        text=question.text,
        options=question.options,
    )


def build_session_response(session: TestSession) -> session_schema.TestSessionResponse:
    """세션 상태 응답 (응시 중에는 정답을 노출하지 않음)"""
    current = session.current_question
    return session_schema.TestSessionResponse(
        session_id=session.session_id,
        test_id=session.test.id if session.test else 0,
        title=session.test.title if session.test else "",
        state=session.state.value,
        current_question_index=session.current_question_index,
        current_question=_to_question_view(current) if current else None,
        questions=[_to_question_view(q) for q in session.questions],
        answers=dict(session.answers),
        time_remaining_seconds=session.time_remaining_seconds,
        time_remaining_display=session.formatted_time_remaining,
        progress_percent=session.progress_percent,
        result=session.result,
    )


def _get_active_session(registry: SessionRegistry, session_id: str) -> TestSession:
    session = registry.get(session_id)
    if session.state != SessionState.IN_PROGRESS:
        raise TestSessionClosedError(session_id, session.state.value)
    return session


async def _persist_result(
    db: AsyncSession,
    session: TestSession,
    result: session_schema.TestResultData,
) -> session_schema.TestFinishResponse:
    """결과 저장 (실패해도 예외를 올리지 않고 warning으로 반환)"""
    try:
        record = await result_crud.create_test_result(db, result)
    except Exception as e:
        logger.warning(
            f"응시 결과 저장 실패: session_id={session.session_id}, test_id={result.test_id}, "
            f"error={e.__class__.__name__}: {e}",
            exc_info=True,
        )
        await db.rollback()
        return session_schema.TestFinishResponse(
            session_id=session.session_id,
            result=result,
            persisted=False,
            warning=PERSISTENCE_WARNING,
        )

    logger.info(f"응시 결과 저장 완료: session_id={session.session_id}, result_id={record.id}")
    return session_schema.TestFinishResponse(
        session_id=session.session_id,
        result=result,
        persisted=True,
        result_id=record.id,
    )


async def _complete(
    registry: SessionRegistry,
    session: TestSession,
    result: session_schema.TestResultData,
    db: AsyncSession | None = None,
) -> session_schema.TestFinishResponse:
    """완료 처리 공유 (수동 제출과 타이머 만료가 같은 응답을 보게 함)

    db가 없으면(타이머 만료) 세션 팩토리로 새 DB 세션을 연다.
    """
    future = registry.begin_completion(session.session_id)
    response: session_schema.TestFinishResponse | None = None
    try:
        if db is not None:
            response = await _persist_result(db, session, result)
        else:
            async with registry.db_session_factory() as own_db:
                response = await _persist_result(own_db, session, result)
        return response
    finally:
        if not future.done():
            future.set_result(
                response
                or session_schema.TestFinishResponse(
                    session_id=session.session_id,
                    result=result,
                    persisted=False,
                    warning=PERSISTENCE_WARNING,
                )
            )
        # 만료 타이머 정리 후 보관 시간이 지나면 세션 제거
        registry.cancel_timer(session.session_id)
        registry.schedule_eviction(session.session_id)


def _make_expire_callback(registry: SessionRegistry, session: TestSession):
    async def on_expire(result: session_schema.TestResultData) -> None:
        await _complete(registry, session, result)

    return on_expire


async def start_session(
    db: AsyncSession,
    registry: SessionRegistry,
    test_id: int,
    user_id: str | None = None,
) -> session_schema.TestSessionResponse:
    """응시 시작: 시험 로드 후 타이머 시작"""
    session = TestSession(time_limit_seconds=registry.time_limit_seconds, user_id=user_id)

    test = await test_crud.get_test_by_id(db, test_id)
    if not test:
        session.fail(f"test not found: {test_id}")
        raise TestNotFoundError(test_id)

    session.load(test_schema.TestResponse.model_validate(test))
    if session.state == SessionState.ERROR:
        raise TestNotFoundError(test_id)

    timer = SessionTimer(
        session,
        on_expire=_make_expire_callback(registry, session),
        interval=registry.tick_interval,
    )
    registry.add(session, timer)
    timer.start()
    return build_session_response(session)


def get_session(
    registry: SessionRegistry,
    session_id: str,
) -> session_schema.TestSessionResponse:
    """세션 상태 조회"""
    return build_session_response(registry.get(session_id))


def select_answer(
    registry: SessionRegistry,
    session_id: str,
    option_id: str,
) -> session_schema.TestSessionResponse:
    """현재 문제 답안 선택 (재선택 시 덮어씀)"""
    session = _get_active_session(registry, session_id)
    session.select_answer(option_id)
    return build_session_response(session)


def navigate(
    registry: SessionRegistry,
    session_id: str,
    direction: Literal["next", "previous"],
) -> session_schema.TestSessionResponse:
    """이전/다음 문제 이동 (처음/마지막에서는 변화 없음)"""
    session = _get_active_session(registry, session_id)
    if direction == "next":
        session.go_to_next()
    else:
        session.go_to_previous()
    return build_session_response(session)


def jump_to(
    registry: SessionRegistry,
    session_id: str,
    index: int,
) -> session_schema.TestSessionResponse:
    """지정한 문제로 이동 (범위 밖이면 변화 없음)"""
    session = _get_active_session(registry, session_id)
    session.jump_to(index)
    return build_session_response(session)


async def finish_session(
    db: AsyncSession,
    registry: SessionRegistry,
    session_id: str,
) -> session_schema.TestFinishResponse:
    """응시 완료 및 결과 저장

    이미 완료된 세션이면 최초 완료 시의 응답을 그대로 반환한다.
    """
    session = registry.get(session_id)
    result = session.finish()

    if result is not None:
        registry.cancel_timer(session_id)
        return await _complete(registry, session, result, db=db)

    completion = registry.get_completion(session_id)
    if completion is None:
        raise TestSessionClosedError(session_id, session.state.value)
    return await asyncio.shield(completion)


def close_session(registry: SessionRegistry, session_id: str) -> None:
    """세션 종료 (화면 이탈). 타이머를 취소하고 세션을 제거"""
    registry.get(session_id)
    registry.remove(session_id)
    logger.info(f"응시 세션 종료: session_id={session_id}")
