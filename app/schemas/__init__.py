from app.schemas.ai import AITestGenerationRequest
from app.schemas.session import (
    AnswerSelectRequest,
    JumpRequest,
    SessionQuestionView,
    SessionStartRequest,
    TestFinishResponse,
    TestResultData,
    TestResultListResponse,
    TestResultResponse,
    TestSessionResponse,
)
from app.schemas.test import (
    ParsedTest,
    TestCreateRequest,
    TestListResponse,
    TestOption,
    TestQuestion,
    TestResponse,
    TestSummaryResponse,
)

__all__ = [
    "AITestGenerationRequest",
    "TestOption",
    "TestQuestion",
    "ParsedTest",
    "TestCreateRequest",
    "TestResponse",
    "TestSummaryResponse",
    "TestListResponse",
    "SessionStartRequest",
    "AnswerSelectRequest",
    "JumpRequest",
    "SessionQuestionView",
    "TestResultData",
    "TestSessionResponse",
    "TestFinishResponse",
    "TestResultResponse",
    "TestResultListResponse",
]
