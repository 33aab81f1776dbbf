"""
Delta Emitter: 분류 결과 → outbound 이벤트.

중복 억제 정책:
- analysis: trim된 텍스트가 마지막 전송값과 다를 때만 전송
- code: 영역 진입 이후 fragment마다 전송 (누적값이라 클라이언트에서 멱등)
- code_start: not-entered → entered 전이 순간 정확히 1회

순서 보장 (생성 1회 내):
    analysis* → code_start → code+

두 가지 입력 형태를 같은 규칙으로 처리:
- feed_delta: 부분 텍스트 delta → 버퍼에 append 후 재분류
- feed_snapshot: 지금까지의 전체 메시지 → 버퍼 교체 후 재분류
"""

from dataclasses import dataclass

from src.core.classifier import Classification, RegionClassifier, append
from src.domain.schemas import (
    AnalysisEvent,
    CodeEvent,
    CodeStartEvent,
    OutboundEvent,
)


@dataclass
class GenerationState:
    """
    생성 1회 범위의 가변 상태.

    생성 시작 시 새로 만들고 종료 시 폐기 (재사용 금지).
    """
    buffer: str = ""
    code_started: bool = False
    last_code: str = ""
    last_analysis: str = ""


class DeltaEmitter:
    """fragment/snapshot 하나당 0개 이상의 outbound 이벤트 생성."""

    def __init__(self, classifier: RegionClassifier | None = None) -> None:
        self.classifier = classifier or RegionClassifier()

    def feed_delta(self, state: GenerationState, fragment: str) -> list[OutboundEvent]:
        state.buffer = append(state.buffer, fragment)
        return self._emit(state)

    def feed_snapshot(self, state: GenerationState, text: str) -> list[OutboundEvent]:
        state.buffer = text or ""
        return self._emit(state)

    def _emit(self, state: GenerationState) -> list[OutboundEvent]:
        result = self.classifier.classify(state.buffer)
        events: list[OutboundEvent] = []

        if not state.code_started and not result.entered:
            self._emit_analysis(state, result, events)
            return events

        if not state.code_started:
            # 전이 fragment에 섞인 마커 이전 텍스트는 code_start보다 먼저 flush
            self._emit_analysis(state, result, events)
            state.code_started = True
            events.append(CodeStartEvent())

        # snapshot이 마커를 잃어도 영역은 되돌리지 않음
        if result.entered:
            state.last_code = result.code
        events.append(CodeEvent(content=state.last_code))
        return events

    @staticmethod
    def _emit_analysis(
        state: GenerationState,
        result: Classification,
        events: list[OutboundEvent],
    ) -> None:
        if result.analysis and result.analysis != state.last_analysis:
            events.append(AnalysisEvent(content=result.analysis))
            state.last_analysis = result.analysis
