from pydantic import BaseModel, Field

from app.schemas.test import DifficultyLevel


class AITestGenerationRequest(BaseModel):
    """AI 시험 생성 요청 스키마 (내부 사용)"""
    subject_area: str = Field(..., description="과목/분야")
    difficulty_level: DifficultyLevel = Field("intermediate", description="난이도")
    topics: str | None = Field(None, description="집중할 주제")
    question_count: int = Field(10, ge=1, le=50, description="문제 개수")
