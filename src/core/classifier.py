"""
Fragment accumulation and region classification.

누적 버퍼 전체를 매번 다시 분류한다 (fragment 단위 분류 금지):
- 마커가 두 fragment에 걸쳐 도착해도 자연스럽게 재조립됨
- 버퍼는 append-only → 한번 진입하면 되돌아가지 않음 (monotonic)
"""

import re
from dataclasses import dataclass

from src.domain.constants import DEFAULT_CLOSING_FENCE, DEFAULT_OPENING_FENCE


def append(buffer: str, fragment: str | None) -> str:
    """버퍼에 fragment 연결. 잘라내기/정규화 없음."""
    if not fragment:
        return buffer
    return buffer + fragment


@dataclass(frozen=True)
class FenceSpec:
    """코드 영역 구분자."""
    opening: str = DEFAULT_OPENING_FENCE
    closing: str = DEFAULT_CLOSING_FENCE


@dataclass(frozen=True)
class Classification:
    """
    분류 결과.

    entered=False면 code는 항상 "".
    analysis는 마커 이전 prefix (trim 적용).
    """
    entered: bool
    analysis: str
    code: str


class RegionClassifier:
    """
    누적 버퍼에서 분석 텍스트와 코드 payload를 분리.

    Usage:
        classifier = RegionClassifier()
        result = classifier.classify("Intro\\n```html\\n<div>")
        # result.entered == True, result.code == "<div>"
    """

    def __init__(self, fence: FenceSpec | None = None) -> None:
        self.fence = fence or FenceSpec()
        # 마커 직후 개행 1개는 건너뜀, 첫 closing에서 종료 (non-greedy)
        self._payload_re = re.compile(
            re.escape(self.fence.opening)
            + r"\n?(.*?)(?:"
            + re.escape(self.fence.closing)
            + r"|\Z)",
            re.DOTALL,
        )

    def classify(self, buffer: str) -> Classification:
        marker_at = buffer.find(self.fence.opening)
        if marker_at < 0:
            return Classification(entered=False, analysis=buffer.strip(), code="")

        analysis = buffer[:marker_at].strip()
        match = self._payload_re.search(buffer, marker_at)
        code = match.group(1) if match else ""
        return Classification(entered=True, analysis=analysis, code=code)
