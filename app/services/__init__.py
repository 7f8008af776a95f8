from app.services.ai_service import build_test_prompt, generate_test_content
from app.services.content_parser import parse_test_content
from app.services.generation_service import (
    generate_test,
    get_test,
    list_results,
    list_tests,
)
from app.services.scoring import rank_weak_topics, score_test
from app.services.session_service import (
    SessionRegistry,
    close_session,
    finish_session,
    get_session,
    jump_to,
    navigate,
    select_answer,
    start_session,
)

__all__ = [
    "build_test_prompt",
    "generate_test_content",
    "parse_test_content",
    "generate_test",
    "get_test",
    "list_tests",
    "list_results",
    "score_test",
    "rank_weak_topics",
    "SessionRegistry",
    "start_session",
    "get_session",
    "select_answer",
    "navigate",
    "jump_to",
    "finish_session",
    "close_session",
]
