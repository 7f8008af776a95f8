from app.crud.result import (
    create_test_result,
    get_results_by_test_id,
)
from app.crud.test import (
    create_test,
    get_test_by_id,
    get_tests,
)

__all__ = [
    "create_test",
    "get_test_by_id",
    "get_tests",
    "create_test_result",
    "get_results_by_test_id",
]
