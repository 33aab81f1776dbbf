"""
ID 생성: session_id, run_id

규칙:
- session_id: 연결마다 새로 발급, 동시 접속 클라이언트 간 충돌 방지 (uuid4)
- run_id: 생성 1회마다 새로 발급
"""

import uuid
from datetime import UTC, datetime


def generate_session_id() -> str:
    """
    Session ID 생성.

    고유성 보장: UUID v4 (122bit 엔트로피)
    포맷: 32자리 hex

    Returns:
        session_id 문자열
    """
    return uuid.uuid4().hex


def generate_run_id() -> str:
    """
    Run ID 생성.

    고유성 보장: UUID v4
    포맷: RUN-{timestamp}-{uuid[:8]}

    Returns:
        run_id 문자열
    """
    now = datetime.now(UTC)
    timestamp = now.strftime("%Y%m%d%H%M%S")
    unique = uuid.uuid4().hex[:8]

    return f"RUN-{timestamp}-{unique}"
