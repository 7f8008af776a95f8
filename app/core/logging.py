# -*- coding: utf-8 -*-
import logging
import sys
from pathlib import Path

from app.core.config import settings

_configured = False


def setup_logging():
    """로깅 설정 (중복 호출 시 핸들러를 다시 붙이지 않음)"""
    global _configured
    if _configured:
        return

    log_level = logging.DEBUG if settings.environment == "development" else logging.INFO

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # 콘솔 핸들러
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(console_handler)

    # 파일 핸들러 (프로덕션)
    if settings.environment == "production":
        log_dir = Path("logs")
        log_dir.mkdir(exist_ok=True)

        file_handler = logging.FileHandler(log_dir / "app.log", encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.INFO)
        root_logger.addHandler(file_handler)

    # SQL 로그는 과도하므로 WARNING 이상만
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    _configured = True
