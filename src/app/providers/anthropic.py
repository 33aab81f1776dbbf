"""
Anthropic (Claude) Provider.

Messages API 스트리밍 → StreamEvent 정규화:
- message_start → SystemMarker("init")
- content_block_delta(text_delta) → TextDelta (stream_partial=True일 때만)
- message_stop → MessageSnapshot(전체 텍스트) + FinalResult(usage, cost)

스트림 open(HTTP 응답 헤더 수신)까지만 재시도 (SDK max_retries). 첫 이벤트 이후에는 재시도하지 않음.
"""

import logging
import os
from collections.abc import AsyncIterator
from typing import Any

from src.domain.errors import ErrorCodes

from .base import (
    BackendError,
    FinalResult,
    GenerationBackend,
    GenerationRequest,
    LLMCallParams,
    MessageSnapshot,
    StreamEvent,
    SystemMarker,
    TextDelta,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"


class ClaudeProvider(GenerationBackend):
    """
    Claude API Provider.

    Usage:
        provider = ClaudeProvider(model="claude-sonnet-4-20250514")
        async for event in provider.stream(GenerationRequest(prompt="todo app")):
            ...
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        max_tokens: int = 16000,
        temperature: float | None = None,
        top_p: float | None = None,
        stream_partial: bool = True,
        pricing: dict[str, float] | None = None,
        max_retries: int = 3,
    ):
        """
        Args:
            model: 모델 ID (config에서 주입)
            api_key: API 키 (환경변수 MY_ANTHROPIC_KEY 또는 ANTHROPIC_API_KEY 사용 가능)
            max_tokens: 최대 토큰 수
            temperature: 샘플링 온도 (None이면 API 기본값)
            top_p: top-p 샘플링 (None이면 API 기본값)
            stream_partial: False면 delta 없이 snapshot만 전달
            pricing: {"input_per_mtok": float, "output_per_mtok": float} (USD)
            max_retries: 스트림 open 재시도 횟수 (rate limit, 연결, timeout, 5xx)

        Raises:
            BackendError: API 키가 없을 때 (fail-fast)
        """
        self.model = model
        # API 키 결정: 인자 > MY_ANTHROPIC_KEY > ANTHROPIC_API_KEY
        self.api_key = (
            api_key
            or os.environ.get("MY_ANTHROPIC_KEY")
            or os.environ.get("ANTHROPIC_API_KEY")
        )

        # Fail-fast: 키가 없으면 즉시 에러 (첫 생성 때 모호한 에러 방지)
        if not self.api_key:
            raise BackendError(
                ErrorCodes.BACKEND_KEY_MISSING,
                "Anthropic API key is missing. "
                "Set MY_ANTHROPIC_KEY or ANTHROPIC_API_KEY.",
            )

        self.params = LLMCallParams(
            max_tokens=max_tokens,
            temperature=temperature,
            top_p=top_p,
        )
        self.stream_partial = stream_partial
        self.pricing = pricing or {}
        self.max_retries = max_retries
        self._client: Any = None

    def _get_client(self) -> Any:
        """Anthropic 클라이언트 (lazy init)."""
        if self._client is None:
            try:
                import anthropic

                self._client = anthropic.AsyncAnthropic(
                    api_key=self.api_key,
                    max_retries=self.max_retries,
                )
            except ImportError as e:
                raise BackendError(
                    ErrorCodes.BACKEND_NOT_INSTALLED,
                    "anthropic package not installed. Run: pip install anthropic",
                ) from e
        return self._client

    async def stream(self, request: GenerationRequest) -> AsyncIterator[StreamEvent]:
        """
        생성 스트림.

        Raises:
            BackendError: API 호출/스트림 실패 (사용자 친화적 메시지 포함)
        """
        try:
            raw_stream = await self._open_stream(request)
        except BackendError:
            raise
        except Exception as e:
            logger.error(f"Failed to open generation stream: {e}", exc_info=True)
            raise self._to_backend_error(e) from e

        try:
            async for event in self._translate(raw_stream):
                yield event
        except BackendError:
            raise
        except Exception as e:
            logger.error(f"Generation stream failed: {e}", exc_info=True)
            raise self._to_backend_error(e) from e
        finally:
            close = getattr(raw_stream, "close", None)
            if close is not None:
                await close()

    async def _translate(self, raw_stream: Any) -> AsyncIterator[StreamEvent]:
        """raw 이벤트 → StreamEvent."""
        text_parts: list[str] = []
        usage: dict[str, Any] = {}
        stop_reason: str | None = None
        model_used = self.model

        async for raw in raw_stream:
            event_type = getattr(raw, "type", None)

            if event_type == "message_start":
                message = raw.message
                model_used = getattr(message, "model", None) or self.model
                usage.update(_usage_to_dict(getattr(message, "usage", None)))
                yield SystemMarker(
                    subtype="init",
                    data={"model": model_used, "message_id": getattr(message, "id", None)},
                )

            elif event_type == "content_block_delta":
                delta = raw.delta
                if getattr(delta, "type", None) != "text_delta":
                    continue
                text_parts.append(delta.text)
                if self.stream_partial:
                    yield TextDelta(text=delta.text)

            elif event_type == "message_delta":
                stop_reason = getattr(raw.delta, "stop_reason", None) or stop_reason
                usage.update(_usage_to_dict(getattr(raw, "usage", None)))

            elif event_type == "message_stop":
                yield MessageSnapshot(text="".join(text_parts))
                yield FinalResult(
                    usage=usage or None,
                    cost=self.compute_cost(usage),
                    stop_reason=stop_reason,
                    model=model_used,
                )

    def compute_cost(self, usage: dict[str, Any]) -> float | None:
        """usage × 설정 단가 (USD). 단가 미설정이면 None."""
        input_price = self.pricing.get("input_per_mtok")
        output_price = self.pricing.get("output_per_mtok")
        if input_price is None or output_price is None or not usage:
            return None

        input_tokens = usage.get("input_tokens") or 0
        output_tokens = usage.get("output_tokens") or 0
        cost = (input_tokens * input_price + output_tokens * output_price) / 1_000_000
        return round(cost, 6)

    async def _open_stream(self, request: GenerationRequest) -> Any:
        """
        스트림 open.

        rate limit / 연결 / timeout / 5xx 재시도는 SDK가 지수 백오프로 처리
        (클라이언트 생성 시 max_retries).
        """
        client = self._get_client()
        api_kwargs: dict[str, Any] = {
            "model": self.model,
            "system": request.system_prompt,
            "messages": [{"role": "user", "content": request.user_message}],
            "stream": True,
            **self.params.to_dict(),
        }
        return await client.messages.create(**api_kwargs)

    def _to_backend_error(self, error: Exception) -> BackendError:
        return BackendError(
            ErrorCodes.BACKEND_FAILED,
            self._get_user_friendly_error_message(error),
            model=self.model,
            error_type=type(error).__name__,
        )

    def _get_user_friendly_error_message(self, error: Exception) -> str:
        """사용자 친화적인 에러 메시지 생성."""
        try:
            import anthropic

            if isinstance(error, anthropic.APITimeoutError):
                return "The AI service timed out. Please try again in a moment."
            elif isinstance(error, anthropic.APIConnectionError):
                return "Could not reach the AI service. Check your connection."
            elif isinstance(error, anthropic.RateLimitError):
                return "Rate limit exceeded. Please wait a moment and try again."
            elif isinstance(error, anthropic.AuthenticationError):
                return "Authentication with the AI service failed. Check the API key."
            elif isinstance(error, anthropic.PermissionDeniedError):
                return "The API key is not allowed to perform this request."
            elif isinstance(error, anthropic.BadRequestError):
                return f"The AI service rejected the request: {error}"
        except ImportError:
            pass

        return str(error) or type(error).__name__


def _usage_to_dict(usage: Any) -> dict[str, Any]:
    """Anthropic Usage 객체 → dict (None 필드 제외)."""
    if usage is None:
        return {}
    if isinstance(usage, dict):
        return {k: v for k, v in usage.items() if v is not None}

    result: dict[str, Any] = {}
    for key in (
        "input_tokens",
        "output_tokens",
        "cache_creation_input_tokens",
        "cache_read_input_tokens",
    ):
        value = getattr(usage, key, None)
        if isinstance(value, int):
            result[key] = value
    return result
