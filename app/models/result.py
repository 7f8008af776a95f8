from sqlalchemy import ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin
from app.models.test import JSONType


class TestResult(Base, TimestampMixin):
    """응시 결과 (세션 완료 시 1회 저장)"""
    __tablename__ = "test_results"

    id: Mapped[int] = mapped_column(primary_key=True)
    test_id: Mapped[int] = mapped_column(ForeignKey("tests.id"), nullable=False, index=True)
    user_id: Mapped[str | None] = mapped_column(default=None, index=True)
    score: Mapped[int] = mapped_column(nullable=False)
    total_questions: Mapped[int] = mapped_column(nullable=False)
    time_taken: Mapped[int] = mapped_column(nullable=False)  # 초 단위
    # JSON 키는 문자열로 저장됨: {"1": "B", "2": "A"}
    answers: Mapped[dict[str, str]] = mapped_column(JSONType, nullable=False)
    weak_topics: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)

    test: Mapped["Test"] = relationship("Test", back_populates="results")
