"""Domain layer: errors, schemas, constants."""

from .errors import (
    ErrorCodes,
    GenerationCancelled,
    GenerationError,
    GenerationInProgressError,
    InputError,
    SessionConflictError,
    SessionNotFoundError,
    TransportError,
)
from .schemas import (
    AnalysisEvent,
    CancelledEvent,
    CodeEvent,
    CodeStartEvent,
    CompleteEvent,
    ErrorEvent,
    GenerationOutcome,
    OutboundEvent,
    RunLog,
    StatusEvent,
)

__all__ = [
    "ErrorCodes",
    "GenerationCancelled",
    "GenerationError",
    "GenerationInProgressError",
    "InputError",
    "SessionConflictError",
    "SessionNotFoundError",
    "TransportError",
    "OutboundEvent",
    "StatusEvent",
    "CodeStartEvent",
    "CodeEvent",
    "AnalysisEvent",
    "CompleteEvent",
    "CancelledEvent",
    "ErrorEvent",
    "GenerationOutcome",
    "RunLog",
]
