"""
Generation Backend Abstraction.

백엔드 교체 가능하게 설계.
모델명은 config만 SSOT.
"""

from .anthropic import ClaudeProvider
from .base import (
    BackendError,
    FinalResult,
    GenerationBackend,
    GenerationRequest,
    MessageSnapshot,
    ProviderError,
    StreamEvent,
    SystemMarker,
    TextDelta,
)

__all__ = [
    "GenerationBackend",
    "GenerationRequest",
    "StreamEvent",
    "TextDelta",
    "MessageSnapshot",
    "SystemMarker",
    "FinalResult",
    "ProviderError",
    "BackendError",
    "ClaudeProvider",
]
