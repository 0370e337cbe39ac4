"""
Pydantic models
===============
Request bodies are explicit allow-lists (``extra="forbid"``); unknown keys
are rejected instead of being merged into stored records.

On the wire every model speaks camelCase (``locationName``, ``auditTrail``)
and accepts the snake_case field names as well.  Store documents use the
snake_case names.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

AuditAction = Literal["create", "update"]


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class RequestModel(ApiModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


# ── Record models ─────────────────────────────────────────────────────────

class Coordinates(RequestModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class AuditEntry(ApiModel):
    action: AuditAction
    user_id: str
    timestamp: datetime


class DisasterInput(RequestModel):
    """Fields a client may set on create, and must resend in full on update."""
    title: str
    description: str
    location_name: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    tags: List[str] = []
    owner_id: Optional[str] = None

    @field_validator("title", "description")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump()


class DisasterRecord(ApiModel):
    id: str
    title: str
    description: str
    location_name: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    tags: List[str] = []
    owner_id: Optional[str] = None
    created_at: datetime
    audit_trail: List[AuditEntry] = []

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "DisasterRecord":
        """Build from a store document (snake_case keys plus ``id``)."""
        return cls.model_validate(doc)


# ── Enrichment / verification ────────────────────────────────────────────

class GeocodeRequest(RequestModel):
    description: str


class GeocodeResult(ApiModel):
    location_name: str
    latitude: float
    longitude: float


IMAGE_REFERENCE_KEYS = ("imageReference", "image_reference", "image_url")


class VerifyImageRequest(RequestModel):
    """Accepts any of ``IMAGE_REFERENCE_KEYS``; when several are sent the first one listed wins."""
    image_reference: str = Field(validation_alias=AliasChoices(*IMAGE_REFERENCE_KEYS))

    @model_validator(mode="before")
    @classmethod
    def _merge_reference_keys(cls, data: Any) -> Any:
        if isinstance(data, dict) and any(k in data for k in IMAGE_REFERENCE_KEYS):
            data = dict(data)
            values = [data.pop(k) for k in IMAGE_REFERENCE_KEYS if k in data]
            data["imageReference"] = values[0]
        return data


class VerificationResult(ApiModel):
    verification_result: str


# ── Feed ─────────────────────────────────────────────────────────────────

class SocialMediaPost(ApiModel):
    post: str
    user: str
