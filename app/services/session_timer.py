import asyncio
import logging
from typing import Awaitable, Callable

from app.schemas.session import TestResultData
from app.services.session_state import TestSession

logger = logging.getLogger(__name__)

ExpireCallback = Callable[[TestResultData], Awaitable[None]]


class SessionTimer:
    """세션의 tick()을 interval마다 호출하는 asyncio 타이머

    시간이 다 되어 세션이 자동 완료되면 on_expire를 한 번 호출하고 종료한다.
    세션 정리 경로(삭제, 수동 제출, 서버 종료)에서는 반드시 cancel()/stop()을 호출해야 한다.
    """

    def __init__(
        self,
        session: TestSession,
        on_expire: ExpireCallback,
        interval: float = 1.0,
    ):
        self.session = session
        self.on_expire = on_expire
        self.interval = interval
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(
            self._run(),
            name=f"session-timer-{self.session.session_id}",
        )

    async def _run(self) -> None:
        try:
            while self.session.is_active:
                await asyncio.sleep(self.interval)
                result = self.session.tick()
                if result is not None:
                    await self.on_expire(result)
                    return
        except asyncio.CancelledError:
            logger.debug(f"세션 타이머 취소: session_id={self.session.session_id}")
            raise
        except Exception as e:
            logger.error(
                f"세션 타이머 오류: session_id={self.session.session_id}, "
                f"error={e.__class__.__name__}: {e}",
                exc_info=True,
            )

    def cancel(self) -> None:
        """타이머 취소 (여러 번 호출해도 안전)"""
        if self._task is None or self._task.done():
            return
        # 만료 콜백 안에서 자기 자신을 취소하지 않음
        if self._task is asyncio.current_task():
            return
        self._task.cancel()

    async def stop(self) -> None:
        """취소 후 태스크 종료까지 대기"""
        task = self._task
        self.cancel()
        if task is None or task is asyncio.current_task():
            return
        try:
            await task
        except asyncio.CancelledError:
            pass
