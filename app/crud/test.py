from typing import Sequence

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.test import Test
from app.schemas.test import ParsedTest


async def create_test(
    session: AsyncSession,
    parsed: ParsedTest,
    subject_area: str,
    difficulty_level: str,
    topics: str | None = None,
    question_type: str = "mixed",
    user_id: str | None = None,
) -> Test:
    """파싱된 시험 저장"""
    test = Test(
        user_id=user_id,
        title=parsed.title,
        description=parsed.description,
        questions=[q.model_dump() for q in parsed.questions],
        subject_area=subject_area,
        difficulty_level=difficulty_level,
        topics=topics,
        question_type=question_type,
        raw_content=parsed.raw_content,
    )
    session.add(test)
    await session.commit()
    await session.refresh(test)
    return test


async def get_test_by_id(session: AsyncSession, test_id: int) -> Test | None:
    """ID로 시험 조회"""
    result = await session.execute(select(Test).where(Test.id == test_id))
    return result.scalar_one_or_none()


async def get_tests(
    session: AsyncSession,
    user_id: str | None = None,
    limit: int = 50,
) -> Sequence[Test]:
    """시험 목록 조회 (최신순, user_id가 있으면 해당 사용자만)"""
    stmt = select(Test)
    if user_id is not None:
        stmt = stmt.where(Test.user_id == user_id)
    stmt = stmt.order_by(desc(Test.created_at), desc(Test.id)).limit(limit)
    result = await session.execute(stmt)
    return result.scalars().all()
