"""
Core layer: 증분 응답 분류기 + 세션/취소 관리.

역할:
- fragment 누적, 코드 영역 분류, outbound 이벤트 결정
- 세션 레지스트리, 생성 생명주기 (취소 포함)
"""

from .classifier import Classification, FenceSpec, RegionClassifier, append
from .emitter import DeltaEmitter, GenerationState
from .generation import GenerationController, validate_prompt
from .ids import generate_run_id, generate_session_id
from .logging import complete_run_log, create_run_log, emit_run_log
from .sessions import CancellationToken, Session, SessionRegistry

__all__ = [
    # classifier
    "append",
    "FenceSpec",
    "Classification",
    "RegionClassifier",
    # emitter
    "GenerationState",
    "DeltaEmitter",
    # sessions
    "CancellationToken",
    "Session",
    "SessionRegistry",
    # generation
    "GenerationController",
    "validate_prompt",
    # ids
    "generate_session_id",
    "generate_run_id",
    # logging
    "create_run_log",
    "complete_run_log",
    "emit_run_log",
]
