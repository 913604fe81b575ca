"""
Result values passed between pipeline stages.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .event_schemas import EventBusMessage


class DecodeErrorKind(str, Enum):
    """Reasons a message body could not be turned into a typed event."""

    MALFORMED_JSON = 'MalformedJson'
    MISSING_DISCRIMINATOR = 'MissingDiscriminator'
    UNKNOWN_DISCRIMINATOR = 'UnknownDiscriminator'
    INVALID_SHAPE = 'InvalidShape'


@dataclass(frozen=True)
class DecodeResult:
    """Either a decoded event or the reason decoding failed."""

    event: Optional[EventBusMessage] = None
    error_kind: Optional[DecodeErrorKind] = None
    detail: str = ''

    @property
    def ok(self) -> bool:
        return self.event is not None

    @classmethod
    def success(cls, event: EventBusMessage) -> 'DecodeResult':
        return cls(event=event)

    @classmethod
    def failure(cls, error_kind: DecodeErrorKind, detail: str) -> 'DecodeResult':
        return cls(error_kind=error_kind, detail=detail)


class OutcomeKind(str, Enum):
    """What happened to a message inside the pipeline."""

    PERSISTED = 'Persisted'
    DROPPED_INVALID = 'DroppedInvalid'
    DECODE_FAILED = 'DecodeFailed'
    PERSIST_FAILED = 'PersistFailed'
    PROCESSING_ERROR = 'ProcessingError'


@dataclass(frozen=True)
class ProcessingOutcome:
    """Terminal result of processing one message."""

    success: bool
    kind: OutcomeKind
    details: str = ''
    context: Any = None

    @classmethod
    def persisted(cls, details: str, context: Any = None) -> 'ProcessingOutcome':
        return cls(success=True, kind=OutcomeKind.PERSISTED, details=details, context=context)

    @classmethod
    def dropped(cls, details: str, context: Any = None) -> 'ProcessingOutcome':
        # Permanently malformed events are acknowledged, never retried.
        return cls(success=True, kind=OutcomeKind.DROPPED_INVALID, details=details, context=context)

    @classmethod
    def failed(cls, kind: OutcomeKind, details: str, context: Any = None) -> 'ProcessingOutcome':
        return cls(success=False, kind=kind, details=details, context=context)
