#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""로컬 개발용 .env 파일 생성"""
import os
from pathlib import Path

# 프로젝트 루트
project_root = Path(__file__).parent.parent.parent
env_file = project_root / ".env"

# 민감 정보(<...>)는 수동으로 입력해야 함
env_content = """# Database
# 로컬: sqlite, 서버: postgresql+asyncpg://<DB_USER>:<DB_PASSWORD>@localhost:5432/curate_test_db
DATABASE_URL=sqlite+aiosqlite:///./curate_test.db

# CORS
ALLOWED_ORIGINS=http://localhost:5173

# Environment
# 로컬 개발 시 development로 두면 상세 에러 메시지 확인 가능
ENVIRONMENT=development

# Gemini
GEMINI_API_KEY=<GEMINI_API_KEY>
GEMINI_MODEL=gemini-2.5-flash
GEMINI_MAX_CONCURRENT=2

# 시험 설정
TEST_QUESTION_COUNT=10
TEST_TIME_LIMIT_SECONDS=2700
TEST_SESSION_RETENTION_SECONDS=600
"""


def create_env_file():
    """.env 파일 생성 (UTF-8, BOM 없음)"""
    print(f"[INFO] .env 파일 생성 중: {env_file}")

    # 기존 파일이 있으면 백업
    if env_file.exists():
        backup_file = project_root / ".env.backup"
        print(f"[INFO] 기존 .env 파일 백업: {backup_file}")
        backup_file.write_text(env_file.read_text(encoding="utf-8"), encoding="utf-8")

    with open(env_file, "w", encoding="utf-8", newline="\n") as f:
        f.write(env_content)

    print("[OK] .env 파일 생성 완료")
    print(f"[INFO] 파일 위치: {env_file}")

    # Windows에서는 chmod 스킵
    if os.name != "nt":
        os.chmod(env_file, 0o600)
        print("[INFO] 파일 권한 설정: 600")


if __name__ == "__main__":
    try:
        create_env_file()
        print("\n[OK] 작업 완료")
    except OSError as e:
        print(f"\n[ERROR] 에러 발생: {e.__class__.__name__}: {str(e)}")
        raise SystemExit(1)
