"""LLM이 생성한 자유 형식 시험 텍스트 파서

입력 예시:

    **Algebra Basics Test**
    This test covers linear equations.

    1. Solve for x: 2x + 3 = 7
    A) 1
    B) 2
    ...

    Answer Key:
    1. B

형식이 흔들리는 모델 출력을 최대한 받아들이고, 깨진 문제는 조용히 버린다.
문제를 하나도 얻지 못한 경우에만 TestParseError를 발생시킨다.
"""
import logging
import re

from app.exceptions import TestParseError
from app.schemas.test import ParsedTest, TestOption, TestQuestion

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Generated Test"
DEFAULT_DESCRIPTION = "Test your knowledge with these questions."

_ANSWER_KEY_MARKERS = ("answer key", "answers:")
_ANSWER_LINE_RE = re.compile(r"(?:Question\s*)?(\d+)[.:]?\s*([A-D])", re.IGNORECASE)
_QUESTION_RES = (
    re.compile(r"\*\*\s*Question\s+(\d+)\s*[:.]?\s*\*\*", re.IGNORECASE),
    re.compile(r"^(\d+)\.(?:\s+|$)"),
    re.compile(r"^Question\s+(\d+)\s*[:.]", re.IGNORECASE),
)
_OPTION_RE = re.compile(r"^([A-D])[.)]?\s+(.+?)(\*\*)?$")
_OPTION_PREFIX_RE = re.compile(r"^[A-D][.)]")
_EXPLANATION_RE = re.compile(r"^\**\s*Explanation\s*\**\s*:\s*\**\s*(.+)$", re.IGNORECASE)
_LEADING_SEPARATOR_RE = re.compile(r"^[\s:.)]+")


def _strip_emphasis(line: str) -> str:
    return line.replace("**", "").lstrip("#").strip()


def _match_question(line: str) -> re.Match | None:
    for pattern in _QUESTION_RES:
        match = pattern.search(line)
        if match:
            return match
    return None


def _find_answer_key_index(lines: list[str]) -> int | None:
    for index, line in enumerate(lines):
        lowered = line.lower()
        if any(marker in lowered for marker in _ANSWER_KEY_MARKERS):
            return index
    return None


def _parse_answer_key(lines: list[str]) -> dict[int, str]:
    """정답표 파싱 (인식하지 못한 줄은 무시)"""
    answer_map: dict[int, str] = {}
    for line in lines:
        match = _ANSWER_LINE_RE.search(line.strip())
        if match:
            answer_map[int(match.group(1))] = match.group(2).upper()
    return answer_map


def _extract_header(lines: list[str]) -> tuple[str, str]:
    title = ""
    title_index = -1
    for index, line in enumerate(lines):
        if line.strip():
            title = _strip_emphasis(line)
            title_index = index
            break

    description_lines = []
    for line in lines[title_index + 1:]:
        if "question" in line.lower() or _match_question(line.strip()):
            break
        if line.strip() and "**" not in line:
            description_lines.append(line.strip())

    return title or DEFAULT_TITLE, " ".join(description_lines).strip() or DEFAULT_DESCRIPTION


class _QuestionDraft:
    def __init__(self, question_id: int):
        self.id = question_id
        self.text = ""
        self.options: list[TestOption] = []
        self.explanation: str | None = None

    def add_option(self, option_id: str, text: str) -> None:
        if any(opt.id == option_id for opt in self.options):
            return
        self.options.append(TestOption(id=option_id, text=text))

    def append_text(self, text: str) -> None:
        self.text = f"{self.text} {text}" if self.text else text

    @property
    def is_acceptable(self) -> bool:
        return self.id > 0 and len(self.options) > 0


def _scan_questions(lines: list[str]) -> list[_QuestionDraft]:
    drafts: list[_QuestionDraft] = []
    seen_ids: set[int] = set()
    current: _QuestionDraft | None = None

    def flush(draft: _QuestionDraft | None) -> None:
        if draft is None:
            return
        if not draft.is_acceptable:
            logger.debug(f"번호가 0이거나 선택지가 없는 문제 제외: id={draft.id}")
            return
        if draft.id in seen_ids:
            logger.debug(f"중복 문제 번호 제외: id={draft.id}")
            return
        seen_ids.add(draft.id)
        drafts.append(draft)

    index = 0
    while index < len(lines):
        line = lines[index].strip()
        index += 1
        if not line:
            continue

        question_match = _match_question(line)
        if question_match:
            flush(current)
            current = _QuestionDraft(int(question_match.group(1)))

            rest = line[question_match.end():].replace("**", "")
            rest = _LEADING_SEPARATOR_RE.sub("", rest).strip()
            if rest:
                current.text = rest
                continue

            # 문제 내용이 다음 줄에 있는 경우: 선택지나 다음 문제가 나올 때까지 누적
            while index < len(lines):
                next_line = lines[index].strip()
                if _OPTION_PREFIX_RE.match(next_line) or _match_question(next_line):
                    break
                if next_line and not next_line.startswith("**"):
                    current.append_text(next_line)
                index += 1
            continue

        if current is None:
            continue

        explanation_match = _EXPLANATION_RE.match(line)
        if explanation_match:
            current.explanation = explanation_match.group(1).replace("**", "").strip()
            continue

        option_match = _OPTION_RE.match(line)
        if option_match:
            current.add_option(option_match.group(1), option_match.group(2).strip())

    flush(current)
    return drafts


def parse_test_content(raw_content: str) -> ParsedTest:
    """생성된 시험 텍스트를 구조화된 문제 목록으로 변환

    Raises:
        TestParseError: 유효한 문제를 하나도 추출하지 못한 경우
    """
    raw_content = raw_content or ""
    logger.debug(f"시험 텍스트 파싱 시작: {raw_content[:100]!r}")

    lines = raw_content.splitlines()
    title, description = _extract_header(lines)

    answer_key_index = _find_answer_key_index(lines)
    answer_map: dict[int, str] = {}
    question_lines = lines
    if answer_key_index is not None:
        answer_map = _parse_answer_key(lines[answer_key_index + 1:])
        question_lines = lines[:answer_key_index]

    questions: list[TestQuestion] = []
    for draft in _scan_questions(question_lines):
        option_ids = [opt.id for opt in draft.options]
        correct_answer = answer_map.get(draft.id)
        if correct_answer not in option_ids:
            correct_answer = option_ids[0]

        question = TestQuestion(
            id=draft.id,
            text=draft.text or f"Question {draft.id}",
            options=draft.options,
            correct_answer=correct_answer,
            explanation=draft.explanation,
        )
        if not question.is_well_formed:
            logger.warning(f"선택지가 2개 미만인 문제: id={question.id}")
        questions.append(question)

    if not questions:
        logger.error(f"시험 텍스트에서 문제를 추출하지 못했습니다: {raw_content[:500]!r}")
        raise TestParseError()

    logger.info(
        f"시험 텍스트 파싱 완료: questions={len(questions)}, answer_key={len(answer_map)}개"
    )
    return ParsedTest(
        title=title,
        description=description,
        questions=questions,
        raw_content=raw_content,
    )
