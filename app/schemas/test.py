from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

DifficultyLevel = Literal["beginner", "intermediate", "advanced"]
QuestionType = Literal["mixed", "mcq", "written", "practical"]


class TestOption(BaseModel):
    """선택지 스키마"""
    id: Literal["A", "B", "C", "D"] = Field(..., description="선택지 ID (A-D)")
    text: str = Field(..., description="선택지 텍스트")


class TestQuestion(BaseModel):
    """문제 스키마"""
    id: int = Field(..., description="원문에 선언된 문제 번호")
    text: str = Field(..., description="문제 내용")
    options: list[TestOption] = Field(default_factory=list)
    correct_answer: str = Field(..., description="정답 선택지 ID")
    explanation: str | None = None

    @property
    def option_ids(self) -> list[str]:
        return [opt.id for opt in self.options]

    @property
    def is_well_formed(self) -> bool:
        """서로 다른 선택지가 2개 이상인지 여부"""
        return len(set(self.option_ids)) >= 2


class ParsedTest(BaseModel):
    """생성 텍스트 파싱 결과 (메타데이터는 호출자가 추가)"""
    title: str
    description: str
    questions: list[TestQuestion] = Field(..., min_length=1)
    raw_content: str


class TestCreateRequest(BaseModel):
    """시험 생성 요청 스키마"""
    subject_area: str = Field(..., description="과목/분야")
    topics: str | None = Field(None, description="집중할 주제 (콤마 구분)")
    difficulty_level: DifficultyLevel = Field("intermediate", description="난이도")
    question_type: QuestionType = Field("mixed", description="문제 유형")
    user_id: str | None = Field(None, description="요청 사용자 ID")

    @field_validator("subject_area")
    @classmethod
    def validate_subject_area(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("subject_area는 비어 있을 수 없습니다")
        return v

    @field_validator("topics")
    @classmethod
    def normalize_topics(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()


class TestResponse(BaseModel):
    """시험 응답 스키마 (정답 포함)"""
    id: int
    user_id: str | None
    title: str
    description: str
    questions: list[TestQuestion]
    subject_area: str
    difficulty_level: str
    topics: str | None
    question_type: str
    raw_content: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class TestSummaryResponse(BaseModel):
    """시험 목록용 요약 스키마"""
    id: int
    title: str
    subject_area: str
    difficulty_level: str
    topics: str | None
    question_count: int
    created_at: datetime


class TestListResponse(BaseModel):
    """시험 목록 응답 스키마"""
    tests: list[TestSummaryResponse]
    total: int
