"""
Business Logic Layer Module.

This module contains the processing strategies, one per event kind. Each
strategy validates its event, derives the aggregate record and persists it,
and each owning module exposes the call that registers its event kind.
"""

from service.logic.client_tracking_strategy import (
    ClientTrackingStrategy,
    register_client_tracking_events,
)

__all__ = [
    "ClientTrackingStrategy",
    "register_client_tracking_events",
]
