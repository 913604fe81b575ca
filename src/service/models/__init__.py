"""
Service Models Package

This package contains the Pydantic domain models for the event kinds the
service processes and the aggregate records derived from them.
"""

from .client_tracking import (
    CLIENT_TRACKING_SUBJECT,
    ClientTrackingAggregatePayload,
    ClientTrackingEvent,
)

__all__ = [
    "CLIENT_TRACKING_SUBJECT",
    "ClientTrackingAggregatePayload",
    "ClientTrackingEvent",
]
