"""
JSON:API envelope encoding and decoding.

Requests and responses wrap each resource as::

    {"data": {"type": "...", "id": "...", "attributes": {...}, "meta": {...}}}

Collection responses carry a list under ``data`` instead.
"""
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel

from .config import (
    BULK_IMPORT_JOB_TYPE,
    EVENT_TYPE,
    LIST_TYPE,
    MAX_BULK_IMPORT_PROFILES,
    METRIC_TYPE,
    PROFILE_TYPE,
)
from .exceptions import BulkImportSizeError
from .models import NewEvent, NewProfile
from .updaters import UpdateRequest

ModelT = TypeVar("ModelT", bound=BaseModel)


class Document(BaseModel, Generic[ModelT]):
    data: ModelT


class CollectionDocument(BaseModel, Generic[ModelT]):
    data: List[ModelT]


def wrap(
    resource_type: str,
    attributes: Optional[Dict[str, Any]] = None,
    id: Optional[str] = None,
    meta: Optional[Dict[str, Any]] = None,
    relationships: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Wrap a resource in a ``{"data": ...}`` envelope, omitting empty members."""
    data: Dict[str, Any] = {"type": resource_type}
    if id is not None:
        data["id"] = id
    if attributes is not None:
        data["attributes"] = attributes
    if meta:
        data["meta"] = meta
    if relationships:
        data["relationships"] = relationships
    return {"data": data}


def unwrap(body: bytes, model: Type[ModelT]) -> ModelT:
    """Decode a single-resource envelope into ``model``."""
    return Document[model].model_validate_json(body).data


def unwrap_list(body: bytes, model: Type[ModelT]) -> List[ModelT]:
    """Decode a collection envelope into a list of ``model``."""
    return CollectionDocument[model].model_validate_json(body).data


def _dump_attributes(attributes: BaseModel) -> Dict[str, Any]:
    # Unset fields are omitted, but explicit nulls inside properties are kept.
    payload = attributes.model_dump(mode="json", exclude_none=True, exclude={"properties"})
    properties = attributes.model_dump(mode="json", include={"properties"}).get("properties")
    if properties:
        payload["properties"] = properties
    return payload


def encode_new_profile(profile: NewProfile) -> Dict[str, Any]:
    return wrap(PROFILE_TYPE, _dump_attributes(profile.attributes))


def encode_profile_update(update: UpdateRequest, profile_id: Optional[str] = None) -> Dict[str, Any]:
    """Envelope for ``PATCH /profiles/{id}`` and ``POST /profile-import``.

    Only attributes present in ``update`` are sent. Properties to remove are
    sent under ``meta.patch_properties.unset``.
    """
    return wrap(PROFILE_TYPE, update.attributes, id=profile_id, meta=update.meta)


def encode_new_event(event: NewEvent, profile_id: str, metric_name: str) -> Dict[str, Any]:
    """Envelope for ``POST /events``.

    The profile reference and the metric definition are nested inside the
    event attributes so one request ties the event to both.
    """
    attributes = _dump_attributes(event.attributes)
    attributes["profile"] = wrap(PROFILE_TYPE, id=profile_id)
    attributes["metric"] = wrap(METRIC_TYPE, {"name": metric_name})
    return wrap(EVENT_TYPE, attributes)


def encode_bulk_import(
    profiles: Sequence[NewProfile],
    list_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Envelope for ``POST /profile-bulk-import-jobs``.

    Raises ``BulkImportSizeError`` for an empty batch or one above the API
    limit, before anything is sent.
    """
    count = len(profiles)
    if count == 0:
        raise BulkImportSizeError("klaviyo: bulk import requires at least one profile")
    if count > MAX_BULK_IMPORT_PROFILES:
        raise BulkImportSizeError(
            f"klaviyo: bulk import accepts at most {MAX_BULK_IMPORT_PROFILES} "
            f"profiles, got {count}"
        )

    records = [
        wrap(PROFILE_TYPE, _dump_attributes(p.attributes))["data"]
        for p in profiles
    ]
    relationships = None
    if list_id:
        relationships = {"lists": {"data": [{"type": LIST_TYPE, "id": list_id}]}}

    return wrap(
        BULK_IMPORT_JOB_TYPE,
        {"profiles": {"data": records}},
        relationships=relationships,
    )
