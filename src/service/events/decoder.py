"""
Polymorphic decoding of normalized message bodies.
"""

import json

from pydantic import ValidationError

from service.handlers.utils.observability import logger

from .outcome import DecodeErrorKind, DecodeResult
from .registry import EventRegistry

DISCRIMINATOR_FIELD = 'Subject'


class EventDecoder:
    """Decodes JSON text into the event model registered for its ``Subject``."""

    def __init__(self, registry: EventRegistry):
        self.registry = registry

    def decode(self, text: str) -> DecodeResult:
        """
        Decode normalized JSON text into a typed event.

        Args:
            text: JSON text produced by the envelope normalizer

        Returns:
            DecodeResult holding the event, or the failure kind and detail
        """
        try:
            document = json.loads(text)
        except (TypeError, ValueError) as e:
            return DecodeResult.failure(DecodeErrorKind.MALFORMED_JSON, f"Invalid JSON: {e}")

        if not isinstance(document, dict):
            return DecodeResult.failure(
                DecodeErrorKind.MALFORMED_JSON,
                f"Expected a JSON object, got {type(document).__name__}",
            )

        if DISCRIMINATOR_FIELD not in document:
            return DecodeResult.failure(
                DecodeErrorKind.MISSING_DISCRIMINATOR,
                f"Missing {DISCRIMINATOR_FIELD} property for polymorphic deserialization",
            )

        subject = document[DISCRIMINATOR_FIELD]
        registration = self.registry.get(subject) if isinstance(subject, str) else None
        if registration is None:
            return DecodeResult.failure(
                DecodeErrorKind.UNKNOWN_DISCRIMINATOR,
                f"Unknown {DISCRIMINATOR_FIELD} type: {subject}",
            )

        try:
            event = registration.event_model.from_document(document, subject=subject)
        except ValidationError as e:
            logger.warning(
                "Event does not match its registered shape",
                extra={"subject": subject, "errors": e.errors(include_url=False)},
            )
            return DecodeResult.failure(DecodeErrorKind.INVALID_SHAPE, str(e))

        return DecodeResult.success(event)
