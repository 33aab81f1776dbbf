"""
Data schemas for the generation relay.

규칙:
- 모든 outbound 이벤트는 `type` 태그가 붙은 독립 JSON 객체
- code/analysis 이벤트는 누적값 (diff 아님)
- 직렬화는 to_dict() 단일 경로 (WebSocket, SSE 공통)
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

# =============================================================================
# Outbound Events (서버 → 클라이언트)
# =============================================================================


@dataclass
class OutboundEvent:
    """
    클라이언트로 전송되는 이벤트의 기반 클래스.

    서브클래스는 `type` 태그와 payload 필드만 정의한다.
    """
    type: ClassVar[str] = ""

    def payload(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, **self.payload()}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    def to_sse(self) -> str:
        """SSE 한 줄: `data: <json>\\n\\n`."""
        return f"data: {self.to_json()}\n\n"


@dataclass
class StatusEvent(OutboundEvent):
    """진행 단계 알림 (connecting, thinking, generating)."""
    type: ClassVar[str] = "status"
    phase: str = ""
    message: str = ""

    def payload(self) -> dict[str, Any]:
        return {"phase": self.phase, "message": self.message}


@dataclass
class CodeStartEvent(OutboundEvent):
    """코드 영역 진입. 생성당 최대 1회."""
    type: ClassVar[str] = "code_start"


@dataclass
class CodeEvent(OutboundEvent):
    """누적 코드 payload."""
    type: ClassVar[str] = "code"
    content: str = ""

    def payload(self) -> dict[str, Any]:
        return {"content": self.content}


@dataclass
class AnalysisEvent(OutboundEvent):
    """누적 분석 텍스트 (마커 이전 prefix, trim 적용)."""
    type: ClassVar[str] = "analysis"
    content: str = ""

    def payload(self) -> dict[str, Any]:
        return {"content": self.content}


@dataclass
class CompleteEvent(OutboundEvent):
    """
    생성 완료.

    코드 영역에 진입하지 못했어도 정상 종료 (code="").
    """
    type: ClassVar[str] = "complete"
    code: str = ""
    usage: dict[str, Any] | None = None
    cost: float | None = None

    def payload(self) -> dict[str, Any]:
        return {"code": self.code, "usage": self.usage, "cost": self.cost}


@dataclass
class CancelledEvent(OutboundEvent):
    """취소 확인."""
    type: ClassVar[str] = "cancelled"


@dataclass
class ErrorEvent(OutboundEvent):
    """사람이 읽을 수 있는 에러 메시지."""
    type: ClassVar[str] = "error"
    message: str = ""

    def payload(self) -> dict[str, Any]:
        return {"message": self.message}


# =============================================================================
# Run Log (생성 1회 단위 실행 기록)
# =============================================================================


class GenerationOutcome(str, Enum):
    """생성 종료 상태."""
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class RunLog:
    """
    실행 로그.

    session/generation 단위 실행 결과 및 메타데이터.
    """
    run_id: str
    session_id: str
    started_at: str  # ISO 8601
    finished_at: str | None = None
    result: GenerationOutcome = GenerationOutcome.PENDING

    # Stream stats
    backend_events: int = 0
    outbound_events: dict[str, int] = field(default_factory=dict)
    code_chars: int = 0

    # Backend metadata
    usage: dict[str, Any] | None = None
    cost: float | None = None
    model: str | None = None
    stop_reason: str | None = None

    # Error (if failed)
    error_code: str | None = None
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "session_id": self.session_id,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "result": self.result.value,
            "backend_events": self.backend_events,
            "outbound_events": dict(self.outbound_events),
            "code_chars": self.code_chars,
            "usage": self.usage,
            "cost": self.cost,
            "model": self.model,
            "stop_reason": self.stop_reason,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }
