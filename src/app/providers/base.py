"""
Generation Backend 추상 인터페이스.

백엔드 교체 가능하게 설계:
- controller는 StreamEvent 4종만 안다 (전송 방식은 모름)
- 백엔드별 요청 포맷은 provider 내부에 숨김

StreamEvent (백엔드 → core, 읽기 전용):
- TextDelta: 부분 텍스트
- MessageSnapshot: 지금까지의 전체 메시지 (버퍼 교체)
- SystemMarker: 구조/시스템 마커 (init 등)
- FinalResult: 최종 결과 + usage/cost 메타데이터
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from src.domain.constants import SYSTEM_PROMPT, USER_PROMPT_PREFIX

# =============================================================================
# Request
# =============================================================================


@dataclass
class GenerationRequest:
    """
    백엔드 호출 요청.

    단일 턴, 도구 사용 없음.
    """
    prompt: str
    system_prompt: str = SYSTEM_PROMPT

    @property
    def user_message(self) -> str:
        return f"{USER_PROMPT_PREFIX}{self.prompt}"


@dataclass
class LLMCallParams:
    """
    Messages API 샘플링 파라미터.

    None인 값은 요청에서 빠지고 API 기본값을 따른다.
    """
    max_tokens: int | None = None
    temperature: float | None = None
    top_p: float | None = None

    def to_dict(self) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if self.max_tokens is not None:
            params["max_tokens"] = self.max_tokens
        if self.temperature is not None:
            params["temperature"] = self.temperature
        if self.top_p is not None:
            params["top_p"] = self.top_p
        return params


# =============================================================================
# Stream Events
# =============================================================================


@dataclass(frozen=True)
class TextDelta:
    text: str


@dataclass(frozen=True)
class MessageSnapshot:
    text: str


@dataclass(frozen=True)
class SystemMarker:
    subtype: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FinalResult:
    usage: dict[str, Any] | None = None
    cost: float | None = None
    stop_reason: str | None = None
    model: str | None = None


StreamEvent = TextDelta | MessageSnapshot | SystemMarker | FinalResult


# =============================================================================
# Provider Exceptions
# =============================================================================

class ProviderError(Exception):
    """Provider 관련 에러."""

    def __init__(self, code: str, message: str, **context: Any) -> None:
        self.code = code
        self.message = message
        self.context = context
        super().__init__(f"[{code}] {message}")


class BackendError(ProviderError):
    """생성 호출 실패 (abort 제외)."""
    pass


# =============================================================================
# Abstract Backend
# =============================================================================

class GenerationBackend(ABC):
    """
    텍스트 생성 백엔드 추상 인터페이스.

    역할: 요청 1개 → StreamEvent 스트림
    """

    @abstractmethod
    def stream(self, request: GenerationRequest) -> AsyncIterator[StreamEvent]:
        """
        생성 스트림 시작.

        Args:
            request: 생성 요청

        Returns:
            StreamEvent 비동기 이터레이터 (백엔드 전달 순서 그대로)

        Raises:
            BackendError: 호출 실패 (이터레이션 중 발생)
        """
        ...
