"""
Event decoding and processing pipeline.

This package turns raw queue message bodies into typed events and drives them
through their processing strategies:

- envelope: SNS envelope unwrapping and legacy escape repair
- registry / decoder: discriminator based polymorphic decoding
- dispatcher: strategy resolution from explicit collaborators
- event_processor: per-message delete / dead-letter settlement
"""

from .event_schemas import EventBusMessage

from .outcome import (
    DecodeErrorKind,
    DecodeResult,
    OutcomeKind,
    ProcessingOutcome,
)

from .envelope import (
    NormalizedBody,
    correct_json_escaping,
    normalize_message_body,
)

from .registry import (
    EventRegistration,
    EventRegistry,
)

from .decoder import EventDecoder

from .dispatcher import (
    EventBusMessageProcessor,
    EventDispatcher,
    ProcessorContext,
)

from .event_processor import (
    BatchResult,
    EventProcessor,
    MessageDisposition,
    MessageResult,
)

__all__ = [
    # Event Schemas
    'EventBusMessage',

    # Results
    'DecodeErrorKind',
    'DecodeResult',
    'OutcomeKind',
    'ProcessingOutcome',

    # Envelope
    'NormalizedBody',
    'correct_json_escaping',
    'normalize_message_body',

    # Registry and decoding
    'EventRegistration',
    'EventRegistry',
    'EventDecoder',

    # Dispatch
    'EventBusMessageProcessor',
    'EventDispatcher',
    'ProcessorContext',

    # Batch processing
    'BatchResult',
    'EventProcessor',
    'MessageDisposition',
    'MessageResult',
]
