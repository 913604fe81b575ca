"""
Client tracking domain models.

This module defines the inbound client tracking event and the aggregate record
derived from it for the export table.
"""

from datetime import datetime, timezone
from typing import Annotated, Dict, Optional

from pydantic import BaseModel, Field

from service.events.event_schemas import EventBusMessage

CLIENT_TRACKING_SUBJECT = 'ClientTracking'


class ClientTrackingEvent(EventBusMessage):
    """A client session observed on an organization's network."""

    origin: str = ''
    scope: str = ''
    date_time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    gpns_enabled: bool = False
    schema_name: str = ''
    schema_version: str = ''
    ip_address: str = ''
    mac_address: str = ''
    user_agent_raw: str = ''
    client_device_type_id: str = ''
    platform_type_id: str = ''
    browser_type_id: str = ''
    member_name: str = ''
    member_id: int = 0
    member_number: str = ''
    org_number: str = ''
    zone_type: str = ''
    change_type: str = ''
    auth_method: str = ''
    zone_plan_name: str = ''
    currency_code: str = ''
    price: float = 0.0
    time_zone_id: str = ''


class ClientTrackingAggregatePayload(BaseModel):
    """Store-bound record awaiting export."""

    event_name: Annotated[str, Field(
        min_length=1,
        description='Event name, partition key of the aggregate row',
        examples=[CLIENT_TRACKING_SUBJECT]
    )]

    org_number: Annotated[str, Field(
        min_length=1,
        description='Organization number, sort key of the aggregate row'
    )]

    properties: Annotated[Dict[str, str], Field(
        default_factory=dict,
        description='Flattened event fields keyed by wire name'
    )]

    ready_to_export_utc: Annotated[int, Field(
        description='Unix timestamp (UTC seconds) from which the row may be exported'
    )]

    exported_at: Annotated[Optional[int], Field(
        default=None,
        description='Unix timestamp (UTC seconds) of the export, None until exported'
    )] = None
