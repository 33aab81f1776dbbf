"""
Error definitions for the generation relay.

규칙:
- 조용한 실패 금지 → 코드가 붙은 예외로 명시적 실패
- 모든 실패는 GenerationController 경계에서 error 이벤트로 변환
- 취소는 에러가 아님 → GenerationCancelled 신호로 구분
"""

from typing import Any


class GenerationError(Exception):
    """
    생성 요청 처리 중 발생하는 에러의 기반 클래스.

    Usage:
        raise InputError(ErrorCodes.PROMPT_REQUIRED, "Prompt is required")
    """

    def __init__(self, code: str, message: str, **context: Any) -> None:
        self.code = code
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        if ctx_str:
            return f"[{self.code}] {self.message} ({ctx_str})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        return {
            "code": self.code,
            "message": self.message,
            **self.context,
        }


class InputError(GenerationError):
    """잘못된 입력 (prompt 누락 등). 생성은 시작되지 않음."""
    pass


class TransportError(GenerationError):
    """잘못된 inbound 메시지. 채널은 유지됨."""
    pass


class SessionNotFoundError(GenerationError):
    """등록되지 않은 세션 ID."""
    pass


class GenerationInProgressError(GenerationError):
    """세션에 이미 진행 중인 생성이 있음."""
    pass


class SessionConflictError(GenerationError):
    """지정한 세션 ID가 이미 사용 중."""
    pass


class GenerationCancelled(Exception):
    """
    취소 신호.

    GenerationError와 분리: 에러 이벤트가 아니라 cancelled 이벤트로 보고된다.
    """

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"generation cancelled: session_id={session_id}")


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수."""

    # === Input ===
    PROMPT_REQUIRED = "PROMPT_REQUIRED"

    # === Transport ===
    INVALID_MESSAGE = "INVALID_MESSAGE"
    UNKNOWN_MESSAGE_TYPE = "UNKNOWN_MESSAGE_TYPE"

    # === Session ===
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    GENERATION_IN_PROGRESS = "GENERATION_IN_PROGRESS"
    SESSION_CONFLICT = "SESSION_CONFLICT"

    # === Backend ===
    BACKEND_KEY_MISSING = "BACKEND_KEY_MISSING"
    BACKEND_NOT_INSTALLED = "BACKEND_NOT_INSTALLED"
    BACKEND_FAILED = "BACKEND_FAILED"
    BACKEND_STREAM_ENDED = "BACKEND_STREAM_ENDED"
