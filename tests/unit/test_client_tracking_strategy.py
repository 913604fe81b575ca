"""
Unit tests for the client tracking processing strategy.
"""

import re
import time

import pytest

from service.events import EventBusMessage, OutcomeKind
from service.handlers.utils.errors import DALError
from service.logic import ClientTrackingStrategy
from service.models.client_tracking import ClientTrackingAggregatePayload, ClientTrackingEvent

PARTITION_PATTERN = re.compile(r'^EXPORT-(\d+)$')


@pytest.fixture
def client_tracking_event(client_tracking_event_data) -> ClientTrackingEvent:
    return ClientTrackingEvent.from_document(client_tracking_event_data, subject="ClientTracking")


@pytest.fixture
def strategy(mock_store) -> ClientTrackingStrategy:
    return ClientTrackingStrategy(dynamodb_client=mock_store, partition_count=4)


class TestValidation:
    """Test cases for event validation."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["OrgNumber", "TimeZoneId", "MacAddress"])
    async def test_missing_required_field_is_dropped_without_write(
        self, mock_store, strategy, client_tracking_event_data, missing
    ):
        """Test that an event missing a required field is acknowledged without a write."""
        client_tracking_event_data.pop(missing)
        event = ClientTrackingEvent.from_document(client_tracking_event_data, subject="ClientTracking")

        outcome = await strategy.process_event(event)

        assert outcome.success
        assert outcome.kind == OutcomeKind.DROPPED_INVALID
        mock_store.put_item.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field_name", ["org_number", "time_zone_id", "mac_address"])
    async def test_blank_required_field_is_dropped(self, mock_store, strategy, client_tracking_event, field_name):
        """Test that whitespace-only required fields count as missing."""
        event = client_tracking_event.model_copy(update={field_name: "   "})

        outcome = await strategy.process_event(event)

        assert outcome.success
        assert outcome.kind == OutcomeKind.DROPPED_INVALID
        mock_store.put_item.assert_not_called()

    @pytest.mark.asyncio
    async def test_wrong_event_type_is_dropped(self, mock_store, strategy):
        """Test that an event of another kind is not persisted."""
        outcome = await strategy.process_event(EventBusMessage(subject="Other"))

        assert outcome.success
        assert outcome.kind == OutcomeKind.DROPPED_INVALID
        mock_store.put_item.assert_not_called()

    def test_partition_count_must_be_positive(self, mock_store):
        """Test that a non-positive partition count is rejected."""
        with pytest.raises(ValueError):
            ClientTrackingStrategy(dynamodb_client=mock_store, partition_count=0)


class TestTransform:
    """Test cases for aggregate payload building."""

    def test_build_aggregate_payload(self, client_tracking_event):
        """Test that every event field is flattened to a string."""
        before = int(time.time())

        payload = ClientTrackingStrategy.build_aggregate_payload(client_tracking_event)

        assert isinstance(payload, ClientTrackingAggregatePayload)
        assert payload.event_name == "ClientTracking"
        assert payload.org_number == "ORG-1001"
        assert payload.exported_at is None
        assert before <= payload.ready_to_export_utc <= int(time.time()) + 1
        assert all(isinstance(value, str) for value in payload.properties.values())
        assert payload.properties["MacAddress"] == "AA:BB:CC:DD:EE:FF"
        assert payload.properties["TimeZoneId"] == "America/Chicago"
        assert payload.properties["MemberId"] == "42"
        assert payload.properties["Price"] == "9.99"
        assert payload.properties["Subject"] == "ClientTracking"
        assert payload.properties["DateTime"].startswith("2024-05-01T12:30:00")
        assert set(payload.properties) == {field.alias for field in ClientTrackingEvent.model_fields.values()}

    def test_export_partition_shard_range(self, strategy):
        """Test that shards stay within the configured partition count."""
        shards = {strategy.export_partition_shard() for _ in range(200)}

        for shard in shards:
            match = PARTITION_PATTERN.match(shard)
            assert match is not None
            assert 0 <= int(match.group(1)) < 4

    def test_single_partition_always_zero(self, mock_store):
        """Test that one partition always yields EXPORT-0."""
        strategy = ClientTrackingStrategy(dynamodb_client=mock_store, partition_count=1)

        assert {strategy.export_partition_shard() for _ in range(20)} == {"EXPORT-0"}

    def test_build_item_omits_empty_properties(self, strategy):
        """Test that an empty property map is not written."""
        payload = ClientTrackingAggregatePayload(
            event_name="ClientTracking",
            org_number="ORG-1",
            properties={},
            ready_to_export_utc=1700000000,
        )

        item = strategy.build_item(payload)

        assert "Properties" not in item
        assert item["ExportedAt"] is None
        assert item["ReadyToExportUtc"] == 1700000000


class TestPersist:
    """Test cases for the store write."""

    @pytest.mark.asyncio
    async def test_valid_event_is_written_once(self, mock_store, strategy, client_tracking_event):
        """Test that a valid event produces exactly one partitioned write."""
        outcome = await strategy.process_event(client_tracking_event, deadline=99.5)

        assert outcome.success
        assert outcome.kind == OutcomeKind.PERSISTED
        assert isinstance(outcome.context, ClientTrackingAggregatePayload)

        mock_store.put_item.assert_awaited_once()
        item = mock_store.put_item.await_args.args[0]
        assert mock_store.put_item.await_args.kwargs == {"deadline": 99.5}
        assert item["EventName"] == "ClientTracking"
        assert item["OrgNumber"] == "ORG-1001"
        assert item["ExportedAt"] is None
        assert isinstance(item["ReadyToExportUtc"], int)
        assert item["Properties"]["MacAddress"] == "AA:BB:CC:DD:EE:FF"

        match = PARTITION_PATTERN.match(item["ExportPartition"])
        assert match is not None
        assert 0 <= int(match.group(1)) < 4

    @pytest.mark.asyncio
    async def test_write_failure_is_reported_not_raised(self, mock_store, strategy, client_tracking_event):
        """Test that a failed write becomes a failed outcome carrying the payload."""
        mock_store.put_item.side_effect = DALError("boom", operation="PutItem", table_name="t")

        outcome = await strategy.process_event(client_tracking_event)

        assert not outcome.success
        assert outcome.kind == OutcomeKind.PERSIST_FAILED
        assert isinstance(outcome.context, ClientTrackingAggregatePayload)
        assert outcome.context.org_number == "ORG-1001"
        assert "boom" in outcome.details

    @pytest.mark.asyncio
    async def test_timeout_is_reported_not_raised(self, mock_store, strategy, client_tracking_event):
        """Test that a deadline expiry during the write becomes a failed outcome."""
        mock_store.put_item.side_effect = TimeoutError()

        outcome = await strategy.process_event(client_tracking_event)

        assert not outcome.success
        assert outcome.kind == OutcomeKind.PERSIST_FAILED
