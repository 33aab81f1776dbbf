"""
WebSocket Routes: 양방향 생성 채널.

- WS /ws
  inbound:  {"type": "generate", "prompt": str} | {"type": "cancel"}
  outbound: OutboundEvent JSON (status, code_start, code, analysis,
            complete, cancelled, error)

연결 1개 = 세션 1개. 수신 루프는 생성 중에도 계속 돌아야 cancel을 받을 수 있으므로
생성은 별도 task에서 전송한다.
"""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from src.app.dependencies import get_controller
from src.app.providers.base import ProviderError
from src.core.sessions import SessionRegistry
from src.domain.constants import INBOUND_CANCEL, INBOUND_GENERATE
from src.domain.errors import ErrorCodes, GenerationError, TransportError
from src.domain.schemas import ErrorEvent, OutboundEvent

logger = logging.getLogger(__name__)

router = APIRouter()


@dataclass
class InboundMessage:
    """파싱된 inbound 메시지."""
    type: str
    prompt: Any = None


async def receive_inbound(websocket: WebSocket) -> str:
    """
    다음 inbound 프레임 → 텍스트.

    바이너리 프레임은 UTF-8로 디코딩해서 텍스트와 같이 처리.

    Raises:
        WebSocketDisconnect: 연결 종료
        TransportError: 텍스트도 바이트도 없음, UTF-8 아님
    """
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(code=message.get("code", 1000))

    text = message.get("text")
    if text is not None:
        return text

    data = message.get("bytes")
    if data is None:
        raise TransportError(ErrorCodes.INVALID_MESSAGE, "Invalid message: empty frame")
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise TransportError(
            ErrorCodes.INVALID_MESSAGE,
            "Invalid message: binary frame is not UTF-8",
        ) from e


def parse_inbound(raw: str) -> InboundMessage:
    """
    inbound 텍스트 → InboundMessage.

    Raises:
        TransportError: JSON 아님, 객체 아님, 알 수 없는 type
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise TransportError(
            ErrorCodes.INVALID_MESSAGE,
            f"Invalid message: {e.msg}",
        ) from e

    if not isinstance(data, dict):
        raise TransportError(
            ErrorCodes.INVALID_MESSAGE,
            "Invalid message: expected a JSON object",
        )

    message_type = data.get("type")
    if message_type not in (INBOUND_GENERATE, INBOUND_CANCEL):
        raise TransportError(
            ErrorCodes.UNKNOWN_MESSAGE_TYPE,
            f"Unknown message type: {message_type!r}",
        )

    return InboundMessage(type=message_type, prompt=data.get("prompt"))


async def _send(websocket: WebSocket, event: OutboundEvent) -> None:
    await websocket.send_text(event.to_json())


async def _pump(
    websocket: WebSocket,
    session_id: str,
    events: AsyncGenerator[OutboundEvent, None],
) -> None:
    """생성 이벤트를 순서대로 전송. 전송 실패(연결 끊김) 시 생성을 닫는다."""
    try:
        async for event in events:
            await _send(websocket, event)
    except Exception as e:
        # 연결 끊김 등 전송 실패 → 생성 중단
        logger.info(f"Stopped streaming to {session_id}: {e}")
    finally:
        await events.aclose()


@router.websocket("/ws")
async def generation_socket(websocket: WebSocket) -> None:
    """
    WebSocket 생성 채널.

    - 잘못된 메시지: 로그 후 error 이벤트, 채널 유지
    - 생성 중 generate 재요청: error 이벤트 (기존 생성 유지)
    - 연결 종료: 진행 중인 생성 취소 후 세션 제거
    """
    await websocket.accept()

    registry: SessionRegistry = websocket.app.state.registry
    session_id = registry.create(channel=websocket)
    session = registry.get(session_id)
    logger.info(f"Client connected: {session_id}")

    try:
        while True:
            try:
                message = parse_inbound(await receive_inbound(websocket))
            except TransportError as e:
                logger.warning(f"Malformed message from {session_id}: {e}")
                await _send(websocket, ErrorEvent(message=e.message))
                continue

            if message.type == INBOUND_CANCEL:
                registry.cancel(session_id)
                continue

            try:
                controller = get_controller(websocket.app.state)
                events = controller.start(session_id, message.prompt)
            except (GenerationError, ProviderError) as e:
                logger.warning(f"Generation rejected for {session_id}: {e}")
                await _send(websocket, ErrorEvent(message=e.message))
                continue

            if session is not None:
                session.task = asyncio.create_task(
                    _pump(websocket, session_id, events)
                )

    except WebSocketDisconnect:
        pass
    finally:
        registry.cancel(session_id)
        if session is not None and session.task is not None:
            await asyncio.gather(session.task, return_exceptions=True)
        registry.remove(session_id)
        logger.info(f"Client disconnected: {session_id}")
