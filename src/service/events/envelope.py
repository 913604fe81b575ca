"""
Envelope normalization for inbound queue message bodies.

Bodies arrive either as the event JSON itself or wrapped in an SNS
notification whose ``Message`` field holds the event as an escaped string.
Some legacy publishers also over-escape their payloads. This module turns any
of those shapes into plain JSON text for the decoder, and reports failure as a
value instead of raising.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from service.handlers.utils.observability import logger

from .outcome import DecodeErrorKind

NOTIFICATION_TYPE = 'Notification'

# A backslash directly in front of a double quote
_ESCAPED_QUOTE = re.compile(r'\\(?=")')


@dataclass(frozen=True)
class NormalizedBody:
    """JSON text ready for decoding, or the reason none could be produced."""

    text: Optional[str] = None
    enveloped: bool = False
    error_kind: Optional[DecodeErrorKind] = None
    detail: str = ''

    @property
    def ok(self) -> bool:
        return self.text is not None


def correct_json_escaping(text: str) -> str:
    """
    Repair legacy over-escaped JSON.

    Args:
        text: Possibly over-escaped JSON text

    Returns:
        The text with unicode-escaped quotes decoded, escaping backslashes in
        front of quotes removed, ``\\\\`` and ``\\/`` collapsed, and one pair of
        surrounding quotes stripped
    """
    corrected = text.replace('\\u0022', '"')
    corrected = _ESCAPED_QUOTE.sub('', corrected)
    corrected = corrected.replace('\\"', '"').replace('\\\\', '\\')
    corrected = corrected.replace('\\/', '/')
    if len(corrected) >= 2 and corrected.startswith('"') and corrected.endswith('"'):
        corrected = corrected[1:-1]
    return corrected


def _try_parse(text: str) -> Tuple[bool, Any]:
    # Only an object is an event or an envelope; a bare string is double-encoded JSON.
    try:
        document = json.loads(text)
    except (TypeError, ValueError):
        return False, None
    return isinstance(document, dict), document


def parse_with_repair(text: str) -> Tuple[Optional[str], Any]:
    """
    Parse a JSON object, retrying once with escape repair if the first parse fails.

    Returns:
        Tuple of (text that parsed, parsed object); text is None when neither
        attempt yields a JSON object
    """
    parsed, document = _try_parse(text)
    if parsed:
        return text, document

    logger.debug("Initial parse failed, attempting with escape correction")
    repaired = correct_json_escaping(text)
    parsed, document = _try_parse(repaired)
    if parsed:
        return repaired, document
    return None, None


def _notification_message(document: Any) -> Optional[str]:
    """Return the inner message when the document is a notification envelope."""
    if not isinstance(document, dict):
        return None

    fields = {str(key).lower(): value for key, value in document.items()}
    message = fields.get('message')
    if fields.get('type') == NOTIFICATION_TYPE and isinstance(message, str) and message:
        return message
    return None


def normalize_message_body(body: Optional[str]) -> NormalizedBody:
    """
    Unwrap and repair a raw message body.

    Args:
        body: Raw queue message body

    Returns:
        NormalizedBody holding the JSON text to decode, or a MalformedJson failure
    """
    if not body:
        return NormalizedBody(error_kind=DecodeErrorKind.MALFORMED_JSON, detail='Message body is empty')

    text, document = parse_with_repair(body)
    if text is None:
        return NormalizedBody(
            error_kind=DecodeErrorKind.MALFORMED_JSON,
            detail='Message body is not a JSON object, even after escape correction',
        )

    inner = _notification_message(document)
    if inner is None:
        logger.debug("Processing as direct message")
        return NormalizedBody(text=text)

    logger.debug("Detected SNS notification, extracting inner message", extra={"inner_message": inner})
    inner_text, _ = parse_with_repair(inner)
    if inner_text is None:
        return NormalizedBody(
            enveloped=True,
            error_kind=DecodeErrorKind.MALFORMED_JSON,
            detail='Notification message is not a JSON object, even after escape correction',
        )
    return NormalizedBody(text=inner_text, enveloped=True)
