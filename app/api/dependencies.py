from fastapi import Request
from google import genai

from app.core.token_cache import TokenCache
from app.services.session_service import SessionRegistry


def get_session_registry(request: Request) -> SessionRegistry:
    """앱 수명 동안 유지되는 응시 세션 보관소"""
    return request.app.state.session_registry


def get_llm_client_cache(request: Request) -> TokenCache[genai.Client]:
    """앱 수명 동안 유지되는 Gemini 클라이언트 캐시"""
    return request.app.state.llm_client_cache
