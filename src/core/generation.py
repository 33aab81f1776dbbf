"""
Generation Controller: 생성 요청 1회의 전체 생명주기.

상태 전이:
    Idle → Connecting → Streaming → {Completed | Cancelled | Failed} → Idle

- Connecting: connecting 상태 전송, GenerationState 할당, 취소 핸들 등록
- Streaming: 백엔드 이벤트마다 Accumulator → Classifier → Emitter
- Completed: final result → complete (코드 영역 미진입이면 code="")
- Cancelled: cancelled 1회 전송 후 이후 이벤트 없음
- Failed: error 이벤트 (사람이 읽을 수 있는 메시지)

모든 종료 상태의 exit action: 세션 취소 핸들 해제 (멱등)
→ 종료 후 도착한 cancel은 no-op.

취소는 협력적:
- 각 백엔드 이벤트 처리 직전에 확인
- 다음 이벤트 대기 중에도 관찰 (대기 중 취소되면 스트림을 닫고 즉시 종료)
- 처리 중인 이벤트는 끝까지 처리됨
"""

import asyncio
import logging
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import aclosing

from src.app.providers.base import (
    BackendError,
    FinalResult,
    GenerationBackend,
    GenerationRequest,
    MessageSnapshot,
    StreamEvent,
    SystemMarker,
    TextDelta,
)
from src.core.classifier import RegionClassifier
from src.core.emitter import DeltaEmitter, GenerationState
from src.core.logging import (
    complete_run_log,
    create_run_log,
    emit_run_log,
    record_outbound,
)
from src.core.sessions import CancellationToken, SessionRegistry
from src.domain.constants import (
    PHASE_CONNECTING,
    PHASE_GENERATING,
    PHASE_THINKING,
    STATUS_MESSAGES,
)
from src.domain.errors import (
    ErrorCodes,
    GenerationCancelled,
    GenerationInProgressError,
    InputError,
    SessionNotFoundError,
)
from src.domain.schemas import (
    CancelledEvent,
    CompleteEvent,
    ErrorEvent,
    GenerationOutcome,
    OutboundEvent,
    StatusEvent,
)

logger = logging.getLogger(__name__)


def validate_prompt(prompt: object) -> str:
    """
    prompt 검증.

    Raises:
        InputError: 누락/빈 문자열/문자열 아님
    """
    if not isinstance(prompt, str) or not prompt.strip():
        raise InputError(ErrorCodes.PROMPT_REQUIRED, "Prompt is required")
    return prompt


def _status(phase: str) -> StatusEvent:
    return StatusEvent(phase=phase, message=STATUS_MESSAGES[phase])


async def _next_event(
    iterator: AsyncIterator[StreamEvent],
) -> tuple[bool, StreamEvent | None]:
    try:
        return True, await iterator.__anext__()
    except StopAsyncIteration:
        return False, None


async def observe_stream(
    stream: AsyncIterator[StreamEvent],
    token: CancellationToken,
    session_id: str,
) -> AsyncIterator[StreamEvent]:
    """
    취소 토큰을 관찰하면서 백엔드 스트림을 전달.

    Raises:
        GenerationCancelled: 이벤트 처리 직전 또는 대기 중 취소됨
    """
    iterator = stream.__aiter__()
    pending: asyncio.Task | None = None
    try:
        while True:
            if token.cancelled:
                raise GenerationCancelled(session_id)

            pending = asyncio.create_task(_next_event(iterator))
            cancel_wait = asyncio.create_task(token.wait())
            try:
                await asyncio.wait(
                    {pending, cancel_wait},
                    return_when=asyncio.FIRST_COMPLETED,
                )
            finally:
                cancel_wait.cancel()

            if token.cancelled:
                # 대기 중 취소 → 진행 중인 읽기 중단, 도착한 이벤트도 처리하지 않음
                raise GenerationCancelled(session_id)

            has_event, event = pending.result()
            if not has_event:
                return
            yield event
    finally:
        if pending is not None and not pending.done():
            pending.cancel()
            await asyncio.gather(pending, return_exceptions=True)
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()


class GenerationController:
    """
    세션별 생성 오케스트레이션.

    Usage:
        controller = GenerationController(registry, backend)
        events = controller.start(session_id, "a pomodoro timer")
        async for event in events:
            await websocket.send_json(event.to_dict())

    start()가 반환한 이터레이터는 끝까지 소비하거나 aclose() 해야 한다
    (취소 핸들 해제가 이터레이터 종료 시점에 일어남).
    """

    def __init__(
        self,
        registry: SessionRegistry,
        backend: GenerationBackend,
        classifier: RegionClassifier | None = None,
    ) -> None:
        self.registry = registry
        self.backend = backend
        self.classifier = classifier or RegionClassifier()

    def start(
        self,
        session_id: str,
        prompt: object,
    ) -> AsyncGenerator[OutboundEvent, None]:
        """
        생성 시작 (Idle → Connecting).

        검증은 동기적으로 수행: 실패 시 세션 상태는 변경되지 않음.

        Raises:
            InputError: prompt 누락
            SessionNotFoundError: 등록되지 않은 세션
            GenerationInProgressError: 이미 진행 중인 생성이 있음
        """
        valid_prompt = validate_prompt(prompt)

        session = self.registry.get(session_id)
        if session is None:
            raise SessionNotFoundError(
                ErrorCodes.SESSION_NOT_FOUND,
                "Session not found",
                session_id=session_id,
            )
        if session.generating:
            raise GenerationInProgressError(
                ErrorCodes.GENERATION_IN_PROGRESS,
                "A generation is already in progress for this session",
                session_id=session_id,
            )

        token = CancellationToken()
        self.registry.set_cancel_handle(session_id, token)
        return self._run(session_id, valid_prompt, token)

    async def _run(
        self,
        session_id: str,
        prompt: str,
        token: CancellationToken,
    ) -> AsyncGenerator[OutboundEvent, None]:
        state = GenerationState()
        emitter = DeltaEmitter(self.classifier)
        run_log = create_run_log(session_id)
        outcome = GenerationOutcome.PENDING
        final: FinalResult | None = None
        error_code: str | None = None
        error_message: str | None = None

        def out(event: OutboundEvent) -> OutboundEvent:
            record_outbound(run_log, event)
            return event

        try:
            yield out(_status(PHASE_CONNECTING))

            stream = self.backend.stream(GenerationRequest(prompt=prompt))
            streaming = False

            async with aclosing(observe_stream(stream, token, session_id)) as events:
                async for backend_event in events:
                    run_log.backend_events += 1

                    if not streaming:
                        # Connecting → Streaming: 첫 백엔드 이벤트 (종류 무관)
                        streaming = True
                        yield out(_status(PHASE_THINKING))

                    if isinstance(backend_event, TextDelta):
                        for event in emitter.feed_delta(state, backend_event.text):
                            yield out(event)

                    elif isinstance(backend_event, MessageSnapshot):
                        for event in emitter.feed_snapshot(state, backend_event.text):
                            yield out(event)

                    elif isinstance(backend_event, SystemMarker):
                        if backend_event.subtype == "init":
                            yield out(_status(PHASE_GENERATING))

                    elif isinstance(backend_event, FinalResult):
                        final = backend_event
                        outcome = GenerationOutcome.COMPLETED
                        self.registry.clear_cancel_handle(session_id, token)
                        yield out(
                            CompleteEvent(
                                code=state.last_code,
                                usage=backend_event.usage,
                                cost=backend_event.cost,
                            )
                        )
                        return

            raise BackendError(
                ErrorCodes.BACKEND_STREAM_ENDED,
                "The generation stream ended without a result",
            )

        except GenerationCancelled:
            outcome = GenerationOutcome.CANCELLED
            self.registry.clear_cancel_handle(session_id, token)
            logger.info(f"Generation cancelled: {session_id}")
            yield out(CancelledEvent())

        except Exception as e:
            outcome = GenerationOutcome.FAILED
            error_code = getattr(e, "code", type(e).__name__)
            error_message = getattr(e, "message", None) or str(e) or type(e).__name__
            logger.error(f"Generation error ({session_id}): {e}", exc_info=True)
            self.registry.clear_cancel_handle(session_id, token)
            yield out(ErrorEvent(message=error_message))

        finally:
            self.registry.clear_cancel_handle(session_id, token)
            if outcome == GenerationOutcome.PENDING:
                # 소비자가 중간에 닫음 (연결 종료 등)
                outcome = GenerationOutcome.CANCELLED
            complete_run_log(
                run_log,
                outcome,
                code=state.last_code,
                usage=final.usage if final else None,
                cost=final.cost if final else None,
                model=final.model if final else None,
                stop_reason=final.stop_reason if final else None,
                error_code=error_code,
                error_message=error_message,
            )
            emit_run_log(run_log)
