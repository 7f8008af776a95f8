import asyncio
import logging
import os
import random

from google import genai
from google.genai import types
from google.genai.errors import ClientError, ServerError

from app.core.config import settings
from app.core.token_cache import TokenCache
from app.exceptions import GeminiAPIKeyError, GeminiServiceUnavailableError, TestGenerationError
from app.schemas.ai import AITestGenerationRequest

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are an expert test creator that generates high-quality educational assessments."
)

# 동시 Gemini API 요청 수 제한 (과부하 방지)
_gemini_semaphore: asyncio.Semaphore | None = None


def create_gemini_client() -> genai.Client:
    """설정/환경변수의 API 키로 Gemini 클라이언트 생성"""
    api_key = settings.gemini_api_key or os.getenv("GEMINI_API_KEY")
    if not api_key:
        raise GeminiAPIKeyError("GEMINI_API_KEY가 설정되지 않았습니다")
    return genai.Client(api_key=api_key)


def create_client_cache() -> TokenCache[genai.Client]:
    """Gemini 클라이언트 캐시 생성 (앱 시작 시 1회)"""
    return TokenCache(
        create_gemini_client,
        ttl_seconds=settings.gemini_client_ttl_seconds,
        name="gemini-client",
    )


def get_gemini_semaphore() -> asyncio.Semaphore:
    """Gemini API 동시 요청 제한 Semaphore 싱글톤"""
    global _gemini_semaphore
    if _gemini_semaphore is None:
        max_concurrent = settings.gemini_max_concurrent
        _gemini_semaphore = asyncio.Semaphore(max_concurrent)
        logger.info(f"Gemini API 동시 요청 제한 설정: 최대 {max_concurrent}개")
    return _gemini_semaphore


def build_test_prompt(request: AITestGenerationRequest) -> str:
    """시험 생성 프롬프트"""
    prompt = (
        f"You are an expert educator. Create a test with {request.question_count} "
        f"multiple choice questions on the subject: \"{request.subject_area}\".\n"
        f"The questions should be at a {request.difficulty_level} level."
    )

    if request.topics and request.topics.strip():
        prompt += f" Focus specifically on the following topics: {request.topics.strip()}."

    prompt += f"""

Formatting Guidelines:
- Provide a title and a brief 2-3 sentence description of the test.
- Number each question (1 to {request.question_count}).
- Each question must include 4 options labeled A, B, C, and D.
- Only one correct answer per question.
- Ensure a mix of conceptual understanding, factual recall, and application-based questions.
- Avoid repeating the same structure or phrasing across questions.

At the end, include an "Answer Key" section listing the correct option for each question like:
Answer Key:
1. B
2. A
...

Generate only the test and answer key, no explanations."""
    return prompt


async def generate_test_content(
    request: AITestGenerationRequest,
    client_cache: TokenCache[genai.Client],
) -> str:
    """Gemini로 시험 원문 생성 (재시도 로직 포함, 동시 요청 제한)

    Returns:
        파싱 전 원문 텍스트

    Raises:
        GeminiAPIKeyError: API 키 문제 (캐시된 클라이언트 무효화)
        GeminiServiceUnavailableError: 503 재시도 초과
        TestGenerationError: 빈 응답
    """
    client = client_cache.get()
    semaphore = get_gemini_semaphore()
    prompt = build_test_prompt(request)

    max_retries = settings.gemini_max_retries
    base_delay = 2.0
    max_delay = 16.0

    async with semaphore:
        logger.debug(f"Gemini 시험 생성 요청 시작: subject_area={request.subject_area}")

        for attempt in range(max_retries):
            try:
                # Gemini 클라이언트는 동기 API이므로 executor로 실행
                loop = asyncio.get_running_loop()
                response = await loop.run_in_executor(
                    None,
                    lambda: client.models.generate_content(
                        model=settings.gemini_model,
                        contents=prompt,
                        config=types.GenerateContentConfig(
                            system_instruction=SYSTEM_INSTRUCTION,
                            temperature=0.5,
                            max_output_tokens=4000,
                        ),
                    ),
                )

                result = (response.text or "").strip()
                if not result:
                    logger.error(f"Gemini 응답이 비어 있음: subject_area={request.subject_area}")
                    raise TestGenerationError()

                if attempt > 0:
                    logger.info(f"Gemini API 호출 성공 (시도 {attempt + 1}/{max_retries})")
                return result

            except ClientError as e:
                error_message = str(e).lower()
                if "403" in error_message or "permission_denied" in error_message or "leaked" in error_message:
                    logger.error(
                        f"Gemini API 키 문제 감지: status_code=403, error_type={type(e).__name__}"
                    )
                    client_cache.invalidate()
                    raise GeminiAPIKeyError()
                logger.error(
                    f"Gemini API ClientError: status_code={getattr(e, 'code', 'unknown')}, "
                    f"error_type={type(e).__name__}"
                )
                raise
            except ServerError as e:
                error_message = str(e)
                if "503" in error_message or "UNAVAILABLE" in error_message or "overloaded" in error_message.lower():
                    if attempt < max_retries - 1:
                        # 지수 백오프 + jitter(±20%)
                        delay = min(base_delay * (2 ** attempt), max_delay)
                        jitter = delay * 0.2 * (random.random() * 2 - 1)
                        delay_with_jitter = max(0.5, delay + jitter)

                        logger.warning(
                            f"Gemini API 503 에러 발생 (시도 {attempt + 1}/{max_retries}). "
                            f"{delay_with_jitter:.1f}초 후 재시도합니다. (에러: {error_message[:100]})"
                        )
                        await asyncio.sleep(delay_with_jitter)
                        continue

                    logger.error(
                        f"Gemini API 503 에러: 최대 재시도 횟수({max_retries}) 도달. 에러 메시지: {error_message}"
                    )
                    raise GeminiServiceUnavailableError()

                logger.error(f"Gemini API ServerError (503 아님): {error_message}")
                raise
