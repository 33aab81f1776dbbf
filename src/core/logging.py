"""
Run logging: 생성 1회 단위 실행 기록.

규칙:
- Run Log는 항상 남김 (완료/취소/실패 모두)
- 사용자 입력(prompt)과 생성된 코드 원문은 기록하지 않음 → 길이/카운트만
"""

import json
import logging
from datetime import UTC, datetime
from typing import Any

from src.core.ids import generate_run_id
from src.domain.schemas import GenerationOutcome, OutboundEvent, RunLog

logger = logging.getLogger(__name__)


def create_run_log(session_id: str) -> RunLog:
    """
    새 RunLog 생성.

    Args:
        session_id: 세션 ID

    Returns:
        초기화된 RunLog
    """
    now = datetime.now(UTC).isoformat()
    return RunLog(
        run_id=generate_run_id(),
        session_id=session_id,
        started_at=now,
    )


def record_outbound(run_log: RunLog, event: OutboundEvent) -> None:
    """outbound 이벤트 타입별 카운트."""
    counts = run_log.outbound_events
    counts[event.type] = counts.get(event.type, 0) + 1


def complete_run_log(
    run_log: RunLog,
    outcome: GenerationOutcome,
    code: str = "",
    usage: dict[str, Any] | None = None,
    cost: float | None = None,
    model: str | None = None,
    stop_reason: str | None = None,
    error_code: str | None = None,
    error_message: str | None = None,
) -> None:
    """
    RunLog 완료 처리.

    Args:
        run_log: RunLog 인스턴스
        outcome: 종료 상태
        code: 마지막 코드 payload (길이만 기록)
        usage: 백엔드 usage 메타데이터
        cost: 비용 (USD)
        model: 실제 응답한 모델
        stop_reason: 백엔드 종료 사유 (end_turn, max_tokens 등)
        error_code: 에러 코드 (실패 시)
        error_message: 에러 메시지 (실패 시)
    """
    run_log.finished_at = datetime.now(UTC).isoformat()
    run_log.result = outcome
    run_log.code_chars = len(code)
    run_log.usage = usage
    run_log.cost = cost
    run_log.model = model
    run_log.stop_reason = stop_reason

    if outcome == GenerationOutcome.FAILED:
        run_log.error_code = error_code
        run_log.error_message = error_message


def emit_run_log(run_log: RunLog) -> None:
    """RunLog를 JSON 한 줄로 로그 출력."""
    line = json.dumps(run_log.to_dict(), ensure_ascii=False)
    if run_log.result == GenerationOutcome.FAILED:
        logger.warning(f"Generation run: {line}")
    else:
        logger.info(f"Generation run: {line}")
