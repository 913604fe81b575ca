"""
Event Schemas for queued event bus messages.

Every event kind is a frozen Pydantic model identifying itself through the
``Subject`` discriminator. Fields are snake_case in Python and PascalCase on
the wire; inbound documents are matched case-insensitively.
"""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_pascal


class EventBusMessage(BaseModel):
    """Base schema shared by all event bus messages."""

    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        frozen=True,
        extra='ignore',
    )

    subject: str = ''

    @classmethod
    def from_document(cls, document: Dict[str, Any], subject: str) -> 'EventBusMessage':
        """
        Build the event from a decoded JSON object.

        Keys are matched against the wire names without regard to case, and
        ``Subject`` is pinned to the discriminator that selected this model.
        Null values are dropped so the field default applies.

        Args:
            document: Parsed JSON object
            subject: Discriminator used to select this model

        Raises:
            pydantic.ValidationError: If a field cannot be coerced to its type
        """
        wire_names = {
            (field.alias or name).lower(): field.alias or name
            for name, field in cls.model_fields.items()
        }
        normalized: Dict[str, Any] = {}
        for key, value in document.items():
            wire_name = wire_names.get(str(key).lower())
            if wire_name is not None and value is not None:
                normalized[wire_name] = value
        normalized['Subject'] = subject
        return cls.model_validate(normalized)

    def to_json(self) -> str:
        """Serialize with wire field names and no discriminator envelope."""
        return self.model_dump_json(by_alias=True)
