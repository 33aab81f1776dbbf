"""
Pytest fixtures for the Dreamware tests.

가짜 백엔드:
- ScriptedBackend: 정해진 StreamEvent 목록을 순서대로 전달
- PromptEchoBackend: 요청 prompt를 코드 영역에 그대로 담아 전달 (세션 격리 확인용)
실제 Anthropic API는 호출하지 않음.
"""

import asyncio
from collections.abc import AsyncIterator, Callable
from pathlib import Path

import pytest

from src.app.providers.base import (
    FinalResult,
    GenerationBackend,
    GenerationRequest,
    StreamEvent,
    SystemMarker,
    TextDelta,
)
from src.core.generation import GenerationController
from src.core.sessions import SessionRegistry

# =============================================================================
# Fake Backends
# =============================================================================


class ScriptedBackend(GenerationBackend):
    """
    스크립트된 이벤트를 흘려보내는 백엔드.

    Args:
        events: 순서대로 전달할 StreamEvent 목록
        error: 목록을 다 보낸 뒤 발생시킬 예외
        block: 목록을 다 보낸 뒤 취소될 때까지 대기 (취소 테스트용)
    """

    def __init__(
        self,
        events: list[StreamEvent],
        error: Exception | None = None,
        block: bool = False,
    ) -> None:
        self.events = list(events)
        self.error = error
        self.block = block
        self.requests: list[GenerationRequest] = []
        self.closed = False

    async def stream(self, request: GenerationRequest) -> AsyncIterator[StreamEvent]:
        self.requests.append(request)
        try:
            for event in self.events:
                # 다른 세션과 교차 실행되도록 양보
                await asyncio.sleep(0)
                yield event
            if self.error is not None:
                raise self.error
            if self.block:
                await asyncio.Event().wait()
        finally:
            self.closed = True


class PromptEchoBackend(GenerationBackend):
    """prompt를 코드 영역에 fragment 단위로 흘려보내는 백엔드."""

    async def stream(self, request: GenerationRequest) -> AsyncIterator[StreamEvent]:
        yield SystemMarker(subtype="init")
        for fragment in (
            f"Planning {request.prompt}.\n",
            "```html\n",
            f"<h1>{request.prompt}</h1>",
            "\n```",
        ):
            await asyncio.sleep(0)
            yield TextDelta(text=fragment)
        yield FinalResult(usage={"output_tokens": 4})


def delta_script(
    fragments: list[str],
    usage: dict | None = None,
    cost: float | None = None,
) -> list[StreamEvent]:
    """init → TextDelta* → FinalResult 순서의 스크립트."""
    return [
        SystemMarker(subtype="init", data={"model": "test-model"}),
        *(TextDelta(text=fragment) for fragment in fragments),
        FinalResult(usage=usage, cost=cost, stop_reason="end_turn", model="test-model"),
    ]


async def collect(events: AsyncIterator) -> list:
    """async iterator → list."""
    return [event async for event in events]


# =============================================================================
# Path Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """프로젝트 루트 경로."""
    return Path(__file__).parent.parent


# =============================================================================
# Generation Fixtures
# =============================================================================

@pytest.fixture
def scripted_backend() -> type[ScriptedBackend]:
    """ScriptedBackend 클래스 (테스트마다 스크립트 지정)."""
    return ScriptedBackend


@pytest.fixture
def echo_backend() -> PromptEchoBackend:
    """PromptEchoBackend 인스턴스."""
    return PromptEchoBackend()


@pytest.fixture
def make_script() -> Callable[..., list[StreamEvent]]:
    """delta_script factory."""
    return delta_script


@pytest.fixture
def drain() -> Callable:
    """collect helper."""
    return collect


@pytest.fixture
def registry() -> SessionRegistry:
    """빈 세션 레지스트리."""
    return SessionRegistry()


@pytest.fixture
def make_controller(registry: SessionRegistry) -> Callable[[GenerationBackend], GenerationController]:
    """백엔드만 바꿔 끼우는 controller factory."""

    def _make(backend: GenerationBackend) -> GenerationController:
        return GenerationController(registry, backend)

    return _make
