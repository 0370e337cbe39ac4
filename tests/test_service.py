"""
Unit tests for DisasterService.

Covers:
- audit trail on create / update
- post-commit disaster_updated events
- not-found and validation failures (no event emitted)
- tag filtering
"""

import asyncio

import pytest

from disaster_api.broadcast import DISASTER_UPDATED
from disaster_api.errors import NotFoundError, ValidationError
from disaster_api.models import DisasterInput
from disaster_api.service import DisasterService

FLOOD = {"title": "Flood", "description": "Flooding in Riverside", "ownerId": "u1"}


def run(coro):
    return asyncio.run(coro)


# =============================================================================
# Test create
# =============================================================================

class TestCreate:

    def test_audit_trail_starts_with_single_create_entry(self, service):
        record = run(service.create(FLOOD))

        assert len(record.audit_trail) == 1
        assert record.audit_trail[0].action == "create"
        assert record.audit_trail[0].user_id == "u1"

    def test_missing_owner_is_recorded_as_unknown(self, service):
        record = run(service.create({"title": "Fire", "description": "Warehouse fire"}))

        assert record.owner_id is None
        assert record.audit_trail[0].user_id == "unknown"

    def test_store_assigns_id_and_created_at(self, service, store):
        record = run(service.create(FLOOD))

        assert record.id
        assert record.created_at.tzinfo is not None
        assert store.get(record.id)["title"] == "Flood"

    def test_accepts_validated_input_model(self, service):
        record = run(service.create(DisasterInput(title="Storm", description="Wind", tags=["storm"])))

        assert record.tags == ["storm"]

    def test_tags_keep_order_and_duplicates(self, service):
        record = run(service.create({**FLOOD, "tags": ["b", "a", "b"]}))

        assert record.tags == ["b", "a", "b"]

    @pytest.mark.parametrize("fields", [
        {"description": "no title"},
        {"title": "no description"},
        {"title": "   ", "description": "blank title"},
        {"title": "Flood", "description": ""},
        {**FLOOD, "severity": "high"},
        {**FLOOD, "coordinates": {"latitude": 95.0, "longitude": 0.0}},
    ])
    def test_invalid_fields_raise_validation_error(self, service, publisher, store, fields):
        with pytest.raises(ValidationError):
            run(service.create(fields))

        assert publisher.events == []
        assert store.count == 0

    def test_emits_one_event_with_created_record(self, service, publisher):
        record = run(service.create(FLOOD))

        assert publisher.events == [(DISASTER_UPDATED, record.to_json())]
        assert publisher.events[0][1]["auditTrail"][0]["userId"] == "u1"

    def test_event_is_emitted_after_the_write(self, store):
        seen = []

        class CheckingPublisher:
            def publish(self, event, payload):
                seen.append(store.get(payload["id"]) is not None)

        run(DisasterService(store, CheckingPublisher()).create(FLOOD))

        assert seen == [True]


# =============================================================================
# Test update
# =============================================================================

class TestUpdate:

    def test_n_updates_give_n_plus_one_entries(self, service):
        record = run(service.create(FLOOD))
        for i in range(3):
            record = run(service.update(record.id, {**FLOOD, "ownerId": f"u{i + 2}"}))

        assert len(record.audit_trail) == 4
        assert [e.action for e in record.audit_trail] == ["create", "update", "update", "update"]
        assert [e.user_id for e in record.audit_trail] == ["u1", "u2", "u3", "u4"]

    def test_replaces_fields_wholesale(self, service):
        created = run(service.create({**FLOOD, "locationName": "Riverside", "tags": ["flood"]}))

        updated = run(service.update(created.id, {"title": "Flood (receding)", "description": "Water going down"}))

        assert updated.title == "Flood (receding)"
        assert updated.location_name is None
        assert updated.tags == []
        assert updated.owner_id is None
        assert updated.audit_trail[-1].user_id == "unknown"

    def test_keeps_id_and_created_at(self, service):
        created = run(service.create(FLOOD))

        updated = run(service.update(created.id, {**FLOOD, "title": "Flood 2"}))

        assert updated.id == created.id
        assert updated.created_at == created.created_at
        assert updated.audit_trail[0] == created.audit_trail[0]

    def test_unknown_id_raises_not_found_without_event(self, service, publisher):
        with pytest.raises(NotFoundError):
            run(service.update("missing", FLOOD))

        assert publisher.events == []

    def test_emits_updated_record(self, service, publisher):
        created = run(service.create(FLOOD))
        updated = run(service.update(created.id, {**FLOOD, "ownerId": "u2"}))

        assert publisher.events[-1] == (DISASTER_UPDATED, updated.to_json())
        assert len(publisher.events) == 2


# =============================================================================
# Test delete / read
# =============================================================================

class TestDelete:

    def test_removes_record_and_emits_sentinel(self, service, publisher):
        record = run(service.create(FLOOD))

        run(service.delete(record.id))

        assert run(service.list()) == []
        assert publisher.events[-1] == (DISASTER_UPDATED, {"deleted": record.id})

    def test_unknown_id_raises_not_found_without_event(self, service, publisher):
        with pytest.raises(NotFoundError):
            run(service.delete("missing"))

        assert publisher.events == []

    def test_get_after_delete_is_not_found(self, service):
        record = run(service.create(FLOOD))
        run(service.delete(record.id))

        with pytest.raises(NotFoundError):
            run(service.get(record.id))


class TestList:

    def test_tag_filter_is_exact_and_case_sensitive(self, service):
        a = run(service.create({**FLOOD, "tags": ["flood", "urgent"]}))
        b = run(service.create({**FLOOD, "tags": ["Flood"]}))
        c = run(service.create({**FLOOD, "tags": ["flooding"]}))

        assert [r.id for r in run(service.list("flood"))] == [a.id]
        assert [r.id for r in run(service.list("Flood"))] == [b.id]
        assert {r.id for r in run(service.list())} == {a.id, b.id, c.id}

    def test_unmatched_tag_returns_empty(self, service):
        run(service.create({**FLOOD, "tags": ["flood"]}))

        assert run(service.list("earthquake")) == []

    def test_audit_trail_lookup(self, service):
        record = run(service.create(FLOOD))
        run(service.update(record.id, {**FLOOD, "ownerId": "u2"}))

        trail = run(service.audit_trail(record.id))

        assert [e.action for e in trail] == ["create", "update"]


# =============================================================================
# Scenario
# =============================================================================

def test_create_update_delete_scenario(service, publisher):
    created = run(service.create(FLOOD))
    assert [(e.action, e.user_id) for e in created.audit_trail] == [("create", "u1")]

    updated = run(service.update(created.id, {"title": "Flood", "description": "...", "ownerId": "u2"}))
    assert len(updated.audit_trail) == 2
    assert updated.audit_trail[1].user_id == "u2"

    run(service.delete(created.id))
    assert created.id not in [r.id for r in run(service.list())]
    assert (DISASTER_UPDATED, {"deleted": created.id}) in publisher.events
    assert len(publisher.events) == 3
