from app.models.base import Base, get_db
from app.models.result import TestResult
from app.models.test import Test

__all__ = ["Base", "Test", "TestResult", "get_db"]
