import logging
from typing import Mapping, Sequence

from pydantic import BaseModel, Field

from app.schemas.test import TestQuestion

logger = logging.getLogger(__name__)

MAX_WEAK_TOPICS = 3

# 명시적 주제가 없을 때 문제 본문으로 주제를 추정하기 위한 키워드
TOPIC_KEYWORDS: dict[str, list[str]] = {
    "equations": ["equation", "solve", "value", "solve for"],
    "expressions": ["expression", "simplify", "equivalent", "terms"],
    "functions": ["function", "domain", "range", "graph", "f(x)"],
    "geometry": ["angle", "triangle", "circle", "polygon", "area", "volume"],
    "algebra": ["variable", "coefficient", "factor", "factorize", "polynomial"],
    "calculus": ["derivative", "integral", "limit", "differentiate", "integrate"],
    "statistics": ["probability", "mean", "median", "standard deviation", "normal distribution"],
    "logic": ["logic", "truth", "proposition", "logical", "argument"],
}


class ScoreSummary(BaseModel):
    """채점 요약"""
    score: int
    total: int
    correct_ids: list[int] = Field(default_factory=list)
    incorrect_ids: list[int] = Field(default_factory=list)
    weak_topics: list[str] = Field(default_factory=list)


def split_topics(topics: str | None) -> list[str]:
    """콤마 구분 주제 문자열을 소문자 목록으로 변환"""
    if not topics:
        return []
    return [t.strip().lower() for t in topics.split(",") if t.strip()]


def _keyword_topics(question_text: str) -> list[str]:
    text = question_text.lower()
    return [
        topic
        for topic, keywords in TOPIC_KEYWORDS.items()
        if any(keyword.lower() in text for keyword in keywords)
    ]


def rank_weak_topics(
    incorrect_questions: Sequence[TestQuestion],
    topics: str | None = None,
    limit: int = MAX_WEAK_TOPICS,
) -> list[str]:
    """틀린 문제로부터 취약 주제 추정

    명시적 주제가 있으면 틀린 문제마다 모든 주제에 1회씩 집계하고,
    없으면 키워드 사전으로 문제 본문과 매칭한다.
    동점은 먼저 집계된 순서를 유지한다.
    """
    explicit_topics = split_topics(topics)
    topic_misses: dict[str, int] = {}

    for question in incorrect_questions:
        matched = explicit_topics if explicit_topics else _keyword_topics(question.text)
        for topic in matched:
            topic_misses[topic] = topic_misses.get(topic, 0) + 1

    # sorted는 안정 정렬이므로 동점일 때 삽입 순서 유지
    ranked = sorted(topic_misses.items(), key=lambda item: item[1], reverse=True)
    return [topic for topic, _ in ranked[:limit]]


def score_test(
    questions: Sequence[TestQuestion],
    answers: Mapping[int, str],
    topics: str | None = None,
) -> ScoreSummary:
    """채점 및 취약 주제 계산 (예외를 발생시키지 않음)"""
    summary = ScoreSummary(score=0, total=len(questions))
    incorrect_questions: list[TestQuestion] = []

    for question in questions:
        if answers.get(question.id) == question.correct_answer:
            summary.score += 1
            summary.correct_ids.append(question.id)
        else:
            summary.incorrect_ids.append(question.id)
            incorrect_questions.append(question)

    summary.weak_topics = rank_weak_topics(incorrect_questions, topics)
    logger.debug(
        f"채점 완료: score={summary.score}/{summary.total}, weak_topics={summary.weak_topics}"
    )
    return summary
