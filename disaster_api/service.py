"""
Disaster record service
=======================
CRUD over the disaster store with the two bits of bookkeeping every mutation
needs:

1. an audit-trail entry (``create`` attached before the first write,
   ``update`` appended in the same write as the field replacement)
2. one ``disaster_updated`` event, emitted only after the store write has
   returned

Events go to an injected publisher (anything with ``publish(event, payload)``),
normally the WSManager.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError as PydanticValidationError

from .audit import create_entry, update_entry, utcnow
from .broadcast import DISASTER_UPDATED
from .errors import NotFoundError, ValidationError
from .models import AuditEntry, DisasterInput, DisasterRecord
from .store import DisasterStore

logger = logging.getLogger(__name__)

Fields = Union[DisasterInput, Mapping[str, Any]]


def validate_fields(fields: Fields) -> DisasterInput:
    if isinstance(fields, DisasterInput):
        return fields
    try:
        return DisasterInput.model_validate(fields)
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid disaster fields",
            details=e.errors(include_url=False, include_context=False, include_input=False),
        ) from e


class DisasterService:

    def __init__(self, store: DisasterStore, events):
        self.store = store
        self.events = events

    def _emit(self, payload: Dict):
        self.events.publish(DISASTER_UPDATED, payload)

    # ── mutate ──

    async def create(self, fields: Fields) -> DisasterRecord:
        data = validate_fields(fields)
        now = utcnow()
        doc = data.to_document()
        doc["created_at"] = now
        doc["audit_trail"] = [create_entry(data.owner_id, now)]

        stored = await run_in_threadpool(self.store.insert, doc)
        record = DisasterRecord.from_document(stored)
        logger.info(f"Created disaster {record.id} ({record.title!r}) by {doc['audit_trail'][0]['user_id']}")
        self._emit(record.to_json())
        return record

    async def update(self, disaster_id: str, fields: Fields) -> DisasterRecord:
        data = validate_fields(fields)
        entry = update_entry(data.owner_id)

        stored = await run_in_threadpool(self.store.update, disaster_id, data.to_document(), entry)
        if stored is None:
            raise NotFoundError(f"Disaster {disaster_id} not found")
        record = DisasterRecord.from_document(stored)
        logger.info(f"Updated disaster {record.id} by {entry['user_id']} "
                    f"(audit trail: {len(record.audit_trail)} entries)")
        self._emit(record.to_json())
        return record

    async def delete(self, disaster_id: str):
        removed = await run_in_threadpool(self.store.delete, disaster_id)
        if not removed:
            raise NotFoundError(f"Disaster {disaster_id} not found")
        logger.info(f"Deleted disaster {disaster_id}")
        self._emit({"deleted": disaster_id})

    # ── read ──

    async def list(self, tag: Optional[str] = None) -> List[DisasterRecord]:
        docs = await run_in_threadpool(self.store.list, tag)
        return [DisasterRecord.from_document(d) for d in docs]

    async def get(self, disaster_id: str) -> DisasterRecord:
        doc = await run_in_threadpool(self.store.get, disaster_id)
        if doc is None:
            raise NotFoundError(f"Disaster {disaster_id} not found")
        return DisasterRecord.from_document(doc)

    async def audit_trail(self, disaster_id: str) -> List[AuditEntry]:
        return (await self.get(disaster_id)).audit_trail
