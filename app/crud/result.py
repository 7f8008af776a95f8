from typing import Sequence

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.result import TestResult
from app.schemas.session import TestResultData


async def create_test_result(
    session: AsyncSession,
    result: TestResultData,
) -> TestResult:
    """응시 결과 저장"""
    record = TestResult(
        test_id=result.test_id,
        user_id=result.user_id,
        score=result.score,
        total_questions=result.total_questions,
        time_taken=result.time_taken_seconds,
        # JSON 키는 문자열만 가능
        answers={str(qid): option_id for qid, option_id in result.answers.items()},
        weak_topics=list(result.weak_topics),
    )
    session.add(record)
    await session.commit()
    await session.refresh(record)
    return record


async def get_results_by_test_id(
    session: AsyncSession,
    test_id: int,
) -> Sequence[TestResult]:
    """시험별 응시 결과 조회 (최신순)"""
    stmt = (
        select(TestResult)
        .where(TestResult.test_id == test_id)
        .order_by(desc(TestResult.created_at), desc(TestResult.id))
    )
    result = await session.execute(stmt)
    return result.scalars().all()
