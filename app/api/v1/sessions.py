from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_session_registry
from app.models.base import get_db
from app.schemas import session as session_schema
from app.services import session_service
from app.services.session_service import SessionRegistry

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("/{session_id}", response_model=session_schema.TestSessionResponse)
async def get_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
):
    """응시 세션 상태 조회 API"""
    return session_service.get_session(registry, session_id)


@router.post("/{session_id}/answer", response_model=session_schema.TestSessionResponse)
async def select_answer(
    session_id: str,
    request: session_schema.AnswerSelectRequest,
    registry: SessionRegistry = Depends(get_session_registry),
):
    """현재 문제 답안 선택 API"""
    return session_service.select_answer(registry, session_id, request.option_id)


@router.post("/{session_id}/next", response_model=session_schema.TestSessionResponse)
async def go_to_next(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
):
    """다음 문제 이동 API"""
    return session_service.navigate(registry, session_id, "next")


@router.post("/{session_id}/previous", response_model=session_schema.TestSessionResponse)
async def go_to_previous(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
):
    """이전 문제 이동 API"""
    return session_service.navigate(registry, session_id, "previous")


@router.post("/{session_id}/jump", response_model=session_schema.TestSessionResponse)
async def jump_to(
    session_id: str,
    request: session_schema.JumpRequest,
    registry: SessionRegistry = Depends(get_session_registry),
):
    """문제 번호 선택 이동 API"""
    return session_service.jump_to(registry, session_id, request.index)


@router.post("/{session_id}/finish", response_model=session_schema.TestFinishResponse)
async def finish_session(
    session_id: str,
    db: AsyncSession = Depends(get_db),
    registry: SessionRegistry = Depends(get_session_registry),
):
    """응시 완료 API (결과 저장 실패 시에도 200, warning 포함)"""
    return await session_service.finish_session(db, registry, session_id)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
):
    """응시 세션 종료 API (타이머 취소)"""
    session_service.close_session(registry, session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
