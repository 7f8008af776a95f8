from sqlalchemy import JSON, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Test(Base, TimestampMixin):
    """생성된 시험 (생성 후 수정하지 않음)"""
    __tablename__ = "tests"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str | None] = mapped_column(default=None, index=True)
    title: Mapped[str] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    # [{"id": 1, "text": ..., "options": [{"id": "A", "text": ...}], "correct_answer": "A", "explanation": null}]
    questions: Mapped[list[dict]] = mapped_column(JSONType, nullable=False)
    subject_area: Mapped[str] = mapped_column(nullable=False)
    difficulty_level: Mapped[str] = mapped_column(nullable=False)
    topics: Mapped[str | None] = mapped_column(default=None)
    question_type: Mapped[str] = mapped_column(nullable=False, default="mixed")
    raw_content: Mapped[str | None] = mapped_column(Text, default=None)

    results: Mapped[list["TestResult"]] = relationship(
        "TestResult",
        back_populates="test",
    )
