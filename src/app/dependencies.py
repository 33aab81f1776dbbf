"""
App 의존성: config → backend / controller 조립.

라우트는 app.state만 보고 controller를 얻는다.
테스트에서는 app.state.backend를 가짜 백엔드로 교체.
"""

from typing import Any

from starlette.datastructures import State

from src.app.providers.anthropic import ClaudeProvider
from src.app.providers.base import BackendError, GenerationBackend
from src.core.classifier import FenceSpec, RegionClassifier
from src.core.generation import GenerationController
from src.domain.constants import DEFAULT_CLOSING_FENCE, DEFAULT_OPENING_FENCE
from src.domain.errors import ErrorCodes


def build_backend(config: dict[str, Any]) -> GenerationBackend:
    """
    ai 설정으로 백엔드 생성.

    Raises:
        BackendError: 지원하지 않는 provider, API 키 누락
    """
    ai_config = config.get("ai", {})
    provider = ai_config.get("provider", "anthropic")
    if provider != "anthropic":
        raise BackendError(
            ErrorCodes.BACKEND_FAILED,
            f"Unsupported AI provider: {provider}",
        )

    kwargs: dict[str, Any] = {
        "stream_partial": ai_config.get("stream_partial", True),
        "pricing": ai_config.get("pricing"),
    }
    for key in ("model", "max_tokens", "temperature", "top_p", "max_retries"):
        if ai_config.get(key) is not None:
            kwargs[key] = ai_config[key]
    return ClaudeProvider(**kwargs)


def build_classifier(config: dict[str, Any]) -> RegionClassifier:
    """generation.fence 설정으로 classifier 생성."""
    fence_config = config.get("generation", {}).get("fence", {})
    fence = FenceSpec(
        opening=fence_config.get("opening", DEFAULT_OPENING_FENCE),
        closing=fence_config.get("closing", DEFAULT_CLOSING_FENCE),
    )
    return RegionClassifier(fence)


def get_controller(state: State) -> GenerationController:
    """
    app.state에서 controller 조립.

    백엔드는 최초 요청 시 1회 생성 후 재사용.
    """
    config = getattr(state, "config", {}) or {}
    if getattr(state, "backend", None) is None:
        state.backend = build_backend(config)
    return GenerationController(
        registry=state.registry,
        backend=state.backend,
        classifier=build_classifier(config),
    )
