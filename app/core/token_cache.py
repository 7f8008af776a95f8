"""만료 시간이 있는 단일 값 캐시

LLM 클라이언트처럼 자격 증명에 묶인 객체를 전역 변수 대신 명시적인 객체로 보관하고,
필요한 곳에 주입해서 사용한다.
"""
import logging
import time
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TokenCache(Generic[T]):
    """loader로 값을 생성하고 ttl_seconds 동안 재사용하는 캐시"""

    def __init__(
        self,
        loader: Callable[[], T],
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        name: str = "token",
    ):
        self._loader = loader
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._name = name
        self._value: T | None = None
        self._loaded_at: float | None = None

    @property
    def is_valid(self) -> bool:
        if self._loaded_at is None:
            return False
        return self._clock() - self._loaded_at < self._ttl_seconds

    def get(self) -> T:
        """캐시된 값 반환 (없거나 만료되면 다시 로드)"""
        if not self.is_valid:
            if self._loaded_at is not None:
                logger.debug(f"{self._name} 캐시 만료, 다시 로드합니다")
            self._value = self._loader()
            self._loaded_at = self._clock()
        return self._value

    def invalidate(self) -> None:
        """캐시 무효화 (다음 get()에서 다시 로드)"""
        if self._loaded_at is not None:
            logger.info(f"{self._name} 캐시 무효화")
        self._value = None
        self._loaded_at = None
