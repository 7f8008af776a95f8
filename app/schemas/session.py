from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from app.schemas.test import TestOption


class SessionStartRequest(BaseModel):
    """응시 시작 요청 스키마"""
    user_id: str | None = Field(None, description="응시 사용자 ID")


class AnswerSelectRequest(BaseModel):
    """답안 선택 요청 스키마 (선택지 ID는 검증하지 않음)"""
    option_id: str = Field(..., min_length=1, description="선택한 선택지 ID")


class JumpRequest(BaseModel):
    """문제 이동 요청 스키마"""
    index: int = Field(..., description="이동할 문제 인덱스 (0부터)")


class SessionQuestionView(BaseModel):
    """응시 중 노출되는 문제 (정답 제외)"""
    id: int
    text: str
    options: list[TestOption]


class TestResultData(BaseModel):
    """채점 결과 (세션 완료 시 1회 생성)"""
    test_id: int
    user_id: str | None = None
    score: int
    total_questions: int
    time_taken_seconds: int
    answers: dict[int, str]
    weak_topics: list[str] = Field(default_factory=list, max_length=3)
    correct_question_ids: list[int] = Field(default_factory=list)
    incorrect_question_ids: list[int] = Field(default_factory=list)


class TestSessionResponse(BaseModel):
    """응시 세션 상태 응답 스키마"""
    session_id: str
    test_id: int
    title: str
    state: Literal["loading", "in_progress", "completed", "error"]
    current_question_index: int
    current_question: SessionQuestionView | None
    questions: list[SessionQuestionView]
    answers: dict[int, str]
    time_remaining_seconds: int
    time_remaining_display: str
    progress_percent: int
    result: TestResultData | None = None


class TestFinishResponse(BaseModel):
    """응시 완료 응답 스키마 (저장 실패 시 warning 포함)"""
    session_id: str
    result: TestResultData
    persisted: bool
    result_id: int | None = None
    warning: str | None = None


class TestResultResponse(BaseModel):
    """저장된 응시 결과 응답 스키마"""
    id: int
    test_id: int
    user_id: str | None
    score: int
    total_questions: int
    time_taken: int
    answers: dict[int, str]
    weak_topics: list[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class TestResultListResponse(BaseModel):
    """응시 결과 목록 응답 스키마"""
    results: list[TestResultResponse]
    total: int
