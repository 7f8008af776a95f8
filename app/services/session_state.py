"""시험 응시 세션 상태 머신

LOADING -> IN_PROGRESS -> COMPLETED
LOADING -> ERROR

IN_PROGRESS에서만 답안 선택/이동/타이머가 동작하며, 그 외 상태에서는 아무 일도 하지 않는다.
COMPLETED와 ERROR는 종료 상태다.
"""
import logging
import uuid
from enum import Enum

from app.core.config import settings
from app.schemas.session import TestResultData
from app.schemas.test import TestQuestion, TestResponse
from app.services.scoring import score_test

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    LOADING = "loading"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ERROR = "error"


class TestSession:
    """한 번의 응시를 나타내는 세션 (메모리에만 존재)"""

    def __init__(
        self,
        session_id: str | None = None,
        time_limit_seconds: int | None = None,
        user_id: str | None = None,
    ):
        self.session_id = session_id or str(uuid.uuid4())
        self.user_id = user_id
        self.time_limit_seconds = (
            time_limit_seconds if time_limit_seconds is not None else settings.test_time_limit_seconds
        )
        self.state = SessionState.LOADING
        self.test: TestResponse | None = None
        self.error: str | None = None
        self.current_question_index = 0
        self.answers: dict[int, str] = {}
        self.time_remaining_seconds = self.time_limit_seconds
        self.result: TestResultData | None = None

    @property
    def is_active(self) -> bool:
        return self.state == SessionState.IN_PROGRESS

    @property
    def questions(self) -> list[TestQuestion]:
        return self.test.questions if self.test else []

    @property
    def current_question(self) -> TestQuestion | None:
        if not self.questions:
            return None
        return self.questions[self.current_question_index]

    @property
    def answered_count(self) -> int:
        return len(self.answers)

    @property
    def progress_percent(self) -> int:
        if not self.questions:
            return 0
        return round(self.answered_count / len(self.questions) * 100)

    @property
    def formatted_time_remaining(self) -> str:
        """남은 시간 MM:SS"""
        minutes, seconds = divmod(self.time_remaining_seconds, 60)
        return f"{minutes:02d}:{seconds:02d}"

    @property
    def time_taken_seconds(self) -> int:
        return self.time_limit_seconds - self.time_remaining_seconds

    def load(self, test: TestResponse) -> None:
        """시험 로드 완료: LOADING -> IN_PROGRESS"""
        if self.state != SessionState.LOADING:
            logger.warning(f"LOADING 상태가 아닌 세션에 시험 로드 무시: session_id={self.session_id}, state={self.state.value}")
            return
        if not test.questions:
            self.fail("Invalid test data")
            return

        self.test = test
        self.state = SessionState.IN_PROGRESS
        logger.info(
            f"응시 시작: session_id={self.session_id}, test_id={test.id}, "
            f"questions={len(test.questions)}, time_limit={self.time_limit_seconds}s"
        )

    def fail(self, reason: str) -> None:
        """시험 로드 실패: LOADING -> ERROR"""
        if self.state != SessionState.LOADING:
            return
        self.state = SessionState.ERROR
        self.error = reason
        logger.warning(f"응시 세션 로드 실패: session_id={self.session_id}, reason={reason}")

    def select_answer(self, option_id: str) -> None:
        # 선택지 ID는 검증하지 않는다. 존재하지 않는 ID는 채점 시 오답으로 처리됨
        if not self.is_active:
            return
        self.answers[self.current_question.id] = option_id

    def go_to_next(self) -> None:
        if self.is_active and self.current_question_index < len(self.questions) - 1:
            self.current_question_index += 1

    def go_to_previous(self) -> None:
        if self.is_active and self.current_question_index > 0:
            self.current_question_index -= 1

    def jump_to(self, index: int) -> None:
        if self.is_active and 0 <= index < len(self.questions):
            self.current_question_index = index

    def tick(self) -> TestResultData | None:
        """1초 경과. 시간이 다 되면 자동 완료하고 결과를 반환"""
        if not self.is_active:
            return None
        self.time_remaining_seconds = max(0, self.time_remaining_seconds - 1)
        if self.time_remaining_seconds == 0:
            logger.info(f"제한 시간 종료, 자동 제출: session_id={self.session_id}")
            return self.finish()
        return None

    def finish(self) -> TestResultData | None:
        """IN_PROGRESS -> COMPLETED (최초 1회만 결과 반환, 이후 호출은 None)"""
        if not self.is_active:
            return None
        # 채점 전에 상태 전환 (이후 호출은 모두 None)
        self.state = SessionState.COMPLETED

        summary = score_test(self.questions, self.answers, self.test.topics)
        self.result = TestResultData(
            test_id=self.test.id,
            user_id=self.user_id,
            score=summary.score,
            total_questions=summary.total,
            time_taken_seconds=self.time_taken_seconds,
            answers=dict(self.answers),
            weak_topics=summary.weak_topics,
            correct_question_ids=summary.correct_ids,
            incorrect_question_ids=summary.incorrect_ids,
        )
        logger.info(
            f"응시 완료: session_id={self.session_id}, test_id={self.test.id}, "
            f"score={summary.score}/{summary.total}, time_taken={self.time_taken_seconds}s"
        )
        return self.result
