"""
Strategy dispatch for decoded events.

Each registered event kind carries a factory that builds its processing
strategy from a ``ProcessorContext``. The context enumerates every
collaborator a strategy may ask for; asking for one that was not supplied is
a deployment defect and raises immediately.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from typing import Any, Optional

from service.dal import StoreClient
from service.handlers.utils.errors import CapabilityNotRegisteredError
from service.handlers.utils.observability import logger, tracer

from .event_schemas import EventBusMessage
from .outcome import ProcessingOutcome
from .registry import EventRegistry


@dataclass(frozen=True)
class ProcessorContext:
    """Collaborators available to processing strategies."""

    dynamodb_client: Optional[StoreClient] = None
    partition_count: Optional[int] = None

    def require(self, capability: str, subject: Optional[str] = None) -> Any:
        """
        Get a collaborator, failing fast when it is missing.

        Raises:
            CapabilityNotRegisteredError: If the capability is unknown or unset
        """
        known = {field.name for field in fields(self)}
        value = getattr(self, capability) if capability in known else None
        if value is None:
            raise CapabilityNotRegisteredError(capability, subject=subject)
        return value


class EventBusMessageProcessor(ABC):
    """Processing strategy for one event kind."""

    @abstractmethod
    async def process_event(
        self,
        message: EventBusMessage,
        deadline: Optional[float] = None,
    ) -> ProcessingOutcome:
        """
        Validate, transform and persist one event.

        Args:
            message: Decoded event
            deadline: Event loop time after which I/O is abandoned

        Returns:
            Outcome of processing; strategies do not raise for per-message failures
        """


class EventDispatcher:
    """Routes decoded events to the strategy bound to their discriminator."""

    def __init__(self, registry: EventRegistry, context: ProcessorContext):
        self.registry = registry
        self.context = context

    def resolve(self, event: EventBusMessage) -> EventBusMessageProcessor:
        """
        Build the strategy for an event.

        Raises:
            CapabilityNotRegisteredError: If the strategy needs a missing collaborator
            LookupError: If the event's subject has no registration
        """
        registration = self.registry.get(event.subject)
        if registration is None or not isinstance(event, registration.event_model):
            raise LookupError(f"No strategy registered for {type(event).__name__} with subject '{event.subject}'")
        return registration.strategy_factory(self.context)

    @tracer.capture_method
    async def dispatch(self, event: EventBusMessage, deadline: Optional[float] = None) -> ProcessingOutcome:
        """Resolve the strategy for an event and run it."""
        strategy = self.resolve(event)
        tracer.put_annotation("subject", event.subject)
        return await strategy.process_event(event, deadline=deadline)

    def verify(self) -> None:
        """
        Build every registered strategy once.

        Raises:
            CapabilityNotRegisteredError: If any strategy needs a missing collaborator
        """
        for subject in self.registry.subjects():
            registration = self.registry.get(subject)
            registration.strategy_factory(self.context)
            logger.debug(f"Verified strategy for {subject}")
