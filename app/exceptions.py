"""커스텀 예외 클래스 정의"""


class BaseAppError(Exception):
    """애플리케이션 기본 예외 클래스"""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class GeminiServiceUnavailableError(BaseAppError):
    """Gemini API 서비스 일시적 과부하 에러 (503)"""

    def __init__(self, message: str = "Gemini API가 일시적으로 과부하 상태입니다. 잠시 후 다시 시도해주세요."):
        super().__init__(message, status_code=503)


class GeminiAPIKeyError(BaseAppError):
    """Gemini API 키 관련 에러 (403)"""

    def __init__(self, message: str = "Gemini API 키 문제로 시험 생성에 실패했습니다. 관리자에게 문의하세요."):
        super().__init__(message, status_code=403)


class TestGenerationError(BaseAppError):
    """LLM이 사용할 수 없는 응답을 반환했을 때 (502)"""

    def __init__(self, message: str = "시험 생성에 실패했습니다. 잠시 후 다시 시도해주세요."):
        super().__init__(message, status_code=502)


class TestParseError(BaseAppError):
    """생성된 텍스트에서 문제를 하나도 추출하지 못했을 때 (422)"""

    def __init__(self, message: str = "사용할 수 있는 시험을 만들지 못했습니다. 다시 생성해주세요."):
        super().__init__(message, status_code=422)


class TestNotFoundError(BaseAppError):
    """시험을 찾을 수 없을 때 발생하는 예외 (404)"""

    def __init__(self, test_id: int):
        super().__init__(f"시험을 찾을 수 없습니다: {test_id}", status_code=404)


class TestSessionNotFoundError(BaseAppError):
    """응시 세션을 찾을 수 없을 때 발생하는 예외 (404)"""

    def __init__(self, session_id: str):
        super().__init__(f"응시 세션을 찾을 수 없습니다: {session_id}", status_code=404)


class TestSessionClosedError(BaseAppError):
    """진행 중이 아닌 세션에 답안/이동 요청을 했을 때 (409)"""

    def __init__(self, session_id: str, state: str):
        super().__init__(f"진행 중인 세션이 아닙니다: {session_id} (state={state})", status_code=409)
