"""
Discriminator registry for event bus messages.

The registry maps a ``Subject`` value to the model that decodes it and the
factory that builds its processing strategy. It is constructed once at cold
start, populated by each event kind's owning module, then frozen and shared
read-only by the decoder and the dispatcher.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Type

from service.handlers.utils.errors import EventRegistrationError
from service.handlers.utils.observability import logger

from .event_schemas import EventBusMessage

if TYPE_CHECKING:
    from .dispatcher import EventBusMessageProcessor, ProcessorContext

StrategyFactory = Callable[['ProcessorContext'], 'EventBusMessageProcessor']


@dataclass(frozen=True)
class EventRegistration:
    """Everything bound to one discriminator."""

    subject: str
    event_model: Type[EventBusMessage]
    strategy_factory: StrategyFactory


class EventRegistry:
    """Registry of event kinds keyed by discriminator."""

    def __init__(self):
        self._registrations: Dict[str, EventRegistration] = {}
        self._frozen = False

    def register(
        self,
        subject: str,
        event_model: Type[EventBusMessage],
        strategy_factory: StrategyFactory,
    ) -> EventRegistration:
        """
        Bind a discriminator to its event model and strategy factory.

        Registering the identical binding twice is a no-op.

        Raises:
            EventRegistrationError: If the registry is frozen, the subject is
                blank, or the subject is already bound differently
        """
        if self._frozen:
            raise EventRegistrationError(f"Registry is frozen, cannot register '{subject}'", subject=subject)
        if not subject or not subject.strip():
            raise EventRegistrationError("Subject must be a non-empty string", subject=subject)
        if not issubclass(event_model, EventBusMessage):
            raise EventRegistrationError(
                f"{event_model.__name__} is not an EventBusMessage", subject=subject
            )

        registration = EventRegistration(subject=subject, event_model=event_model, strategy_factory=strategy_factory)
        existing = self._registrations.get(subject)
        if existing is not None:
            if existing == registration:
                return existing
            raise EventRegistrationError(
                f"Subject '{subject}' is already registered to {existing.event_model.__name__}",
                subject=subject,
            )

        self._registrations[subject] = registration
        logger.debug(f"Registered event type for {subject}", extra={"event_model": event_model.__name__})
        return registration

    def freeze(self) -> 'EventRegistry':
        """Make the registry read-only."""
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, subject: str) -> Optional[EventRegistration]:
        """Get the registration for a discriminator, if any."""
        return self._registrations.get(subject)

    def subjects(self) -> List[str]:
        """List registered discriminators."""
        return list(self._registrations)

    def __contains__(self, subject: object) -> bool:
        return subject in self._registrations

    def __len__(self) -> int:
        return len(self._registrations)
