"""
Session Registry: 연결 단위 세션 상태와 취소 핸들.

동시성 모델:
- 단일 이벤트 루프 (cooperative) → 같은 키에 대한 writer는 항상 1개
- 별도 락 없음. 멀티스레드로 옮길 경우 세션별 cancel_token 접근을 직렬화할 것

취소 핸들:
- 생성 시작 시 등록, 종료 시 (성공/실패/취소 모두) 해제
- 해제된 뒤 도착한 cancel은 no-op
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from src.core.ids import generate_session_id
from src.domain.errors import ErrorCodes, SessionConflictError

logger = logging.getLogger(__name__)


class CancellationToken:
    """
    협력적 취소 토큰.

    controller가 이벤트 처리 직전과 다음 이벤트 대기 중에 관찰한다.
    예외 기반 중단(task.cancel)은 사용하지 않음.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


@dataclass
class Session:
    """클라이언트 연결 1개에 대응하는 서버측 상태."""
    session_id: str
    channel: Any = None  # WebSocket 또는 "sse"
    cancel_token: CancellationToken | None = None
    task: asyncio.Task | None = None

    @property
    def generating(self) -> bool:
        return self.cancel_token is not None


class SessionRegistry:
    """
    session_id → Session 테이블.

    Usage:
        registry = SessionRegistry()
        session_id = registry.create(channel=websocket)
        registry.cancel(session_id)
        registry.remove(session_id)
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def session_ids(self) -> list[str]:
        return list(self._sessions)

    def reserve_id(self) -> str:
        """살아있는 세션과 겹치지 않는 새 ID. 등록은 하지 않음."""
        session_id = generate_session_id()
        # uuid4 충돌은 사실상 없지만 살아있는 세션과 겹치면 재발급
        while session_id in self._sessions:
            logger.warning(f"Session id collision, regenerating: {session_id}")
            session_id = generate_session_id()
        return session_id

    def create(self, channel: Any = None, session_id: str | None = None) -> str:
        """
        세션 등록.

        Args:
            channel: WebSocket 또는 "sse"
            session_id: reserve_id()로 미리 받아둔 ID (없으면 새로 발급)

        Raises:
            SessionConflictError: 지정한 ID가 이미 사용 중
        """
        if session_id is None:
            session_id = self.reserve_id()
        elif session_id in self._sessions:
            raise SessionConflictError(
                ErrorCodes.SESSION_CONFLICT,
                "Session id already in use",
                session_id=session_id,
            )

        self._sessions[session_id] = Session(session_id=session_id, channel=channel)
        return session_id

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def remove(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def set_cancel_handle(
        self,
        session_id: str,
        token: CancellationToken | None,
    ) -> None:
        """취소 핸들 설정/해제. 없는 세션이면 무시."""
        session = self._sessions.get(session_id)
        if session is not None:
            session.cancel_token = token

    def clear_cancel_handle(self, session_id: str, token: CancellationToken) -> None:
        """
        자기 토큰일 때만 해제 (멱등).

        이미 해제됐거나 다른 생성의 토큰이면 아무것도 하지 않음.
        """
        session = self._sessions.get(session_id)
        if session is not None and session.cancel_token is token:
            session.cancel_token = None

    def cancel(self, session_id: str) -> bool:
        """
        진행 중인 생성 취소.

        Returns:
            취소 신호를 보냈으면 True, 핸들이 없으면 False (no-op)
        """
        session = self._sessions.get(session_id)
        if session is None or session.cancel_token is None:
            return False
        session.cancel_token.cancel()
        return True
