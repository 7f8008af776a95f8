from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """환경변수 / .env 기반 애플리케이션 설정"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite+aiosqlite:///./curate_test.db"

    # Environment: development | production | test
    environment: str = "development"

    # CORS (콤마 구분)
    allowed_origins: str = "http://localhost:5173"

    # Gemini
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash"
    gemini_max_concurrent: int = 2
    gemini_max_retries: int = 5
    # 캐시된 Gemini 클라이언트 유효 시간 (키 교체 반영 주기)
    gemini_client_ttl_seconds: float = 3600.0

    # 시험 설정
    test_question_count: int = 10
    test_time_limit_seconds: int = 45 * 60
    # 완료된 세션을 메모리에서 제거하기까지의 보관 시간
    test_session_retention_seconds: float = 600.0

    @property
    def allowed_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


settings = Settings()
