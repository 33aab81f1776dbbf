"""
Generate Routes: request/stream 전송 (SSE).

- POST /api/generate → {prompt} 요청, text/event-stream 응답
- POST /api/generate/{session_id}/cancel → 진행 중인 생성 취소

SSE 이벤트 형식:
    data: <json>\\n\\n
첫 이벤트는 항상 status(connecting) → 연결 확인용.
"""

import logging
from collections.abc import AsyncGenerator
from typing import Any

from fastapi import APIRouter, Body, HTTPException, Request
from fastapi.responses import StreamingResponse

from src.app.dependencies import get_controller
from src.app.providers.base import ProviderError
from src.core.generation import validate_prompt
from src.core.sessions import SessionRegistry
from src.domain.errors import GenerationError
from src.domain.schemas import ErrorEvent, OutboundEvent

logger = logging.getLogger(__name__)

# Routers
api_router = APIRouter()  # API endpoints

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@api_router.post("")
async def generate_stream(
    request: Request,
    payload: dict[str, Any] | None = Body(default=None),
) -> StreamingResponse:
    """
    앱 설명 → 생성 이벤트 스트림.

    세션은 요청 1개 범위: body 반복이 시작될 때 등록, 스트림이 끝나면 제거.
    X-Session-Id는 미리 예약한 ID.

    Raises:
        HTTPException(400): prompt 누락
        HTTPException(503): 백엔드 구성 실패 (API 키 누락 등)
    """
    try:
        prompt = validate_prompt((payload or {}).get("prompt"))
    except GenerationError as e:
        raise HTTPException(status_code=400, detail=e.message) from e

    try:
        controller = get_controller(request.app.state)
    except ProviderError as e:
        logger.error(f"Backend unavailable: {e}")
        raise HTTPException(status_code=503, detail=e.message) from e

    registry: SessionRegistry = request.app.state.registry
    # 등록은 body 반복이 시작될 때: 본문 전에 연결이 끊겨도 세션/토큰이 남지 않음
    session_id = registry.reserve_id()

    async def event_generator() -> AsyncGenerator[str, None]:
        """SSE 이벤트 생성기."""
        try:
            registry.create(channel="sse", session_id=session_id)
        except GenerationError as e:
            logger.error(f"SSE session not registered: {e}")
            yield ErrorEvent(message=e.message).to_sse()
            return

        events: AsyncGenerator[OutboundEvent, None] | None = None
        logger.info(f"SSE generation started: {session_id}")
        try:
            events = controller.start(session_id, prompt)
            async for event in events:
                yield event.to_sse()
        except GenerationError as e:
            logger.error(f"SSE generation rejected ({session_id}): {e}")
            yield ErrorEvent(message=e.message).to_sse()
        finally:
            if events is not None:
                await events.aclose()
            registry.remove(session_id)
            logger.info(f"SSE generation closed: {session_id}")

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={**SSE_HEADERS, "X-Session-Id": session_id},
    )


@api_router.post("/{session_id}/cancel")
async def cancel_generation(request: Request, session_id: str) -> dict[str, Any]:
    """
    SSE 생성 취소.

    진행 중인 생성이 없으면 no-op (cancelled=False).
    """
    registry: SessionRegistry = request.app.state.registry
    if registry.get(session_id) is None:
        raise HTTPException(status_code=404, detail="Session not found")

    cancelled = registry.cancel(session_id)
    return {"session_id": session_id, "cancelled": cancelled}
