"""
Data models for the Klaviyo client.

These Pydantic models describe the ``attributes`` part of each JSON:API
resource. Envelope wrapping (``{"data": {"type", "id", "attributes"}}``) is
handled separately in ``klaviyo_client.envelope`` so the models stay close
to what a caller reads and writes.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, JsonValue

from . import updaters


class Location(BaseModel):
    """Postal and geographic location of a profile. Every field is optional."""
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    region: Optional[str] = None
    zip: Optional[str] = None
    timezone: Optional[str] = None


class ProfileAttributes(BaseModel):
    """Attributes of a profile as sent on create.

    ``properties`` holds custom properties and accepts any JSON value.
    """
    email: Optional[str] = None
    phone_number: Optional[str] = None
    external_id: Optional[str] = None
    anonymous_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    organization: Optional[str] = None
    title: Optional[str] = None
    image: Optional[str] = None
    location: Optional[Location] = None
    properties: Dict[str, JsonValue] = Field(default_factory=dict)


class ExistingProfileAttributes(ProfileAttributes):
    """Profile attributes as returned by the API, with server timestamps."""
    created: Optional[datetime] = None
    updated: Optional[datetime] = None
    last_event_date: Optional[datetime] = None


class NewProfile(BaseModel):
    """Profile that has not been created yet."""
    attributes: ProfileAttributes = Field(default_factory=ProfileAttributes)

    def to_updaters(self) -> List[updaters.Unit]:
        """Convert the set fields of this profile into update units.

        Fields left as ``None`` produce no unit, so applying the result to an
        existing profile only touches what this profile actually carries. An
        empty ``email`` counts as unset. Other empty strings are kept and clear
        the field.
        """
        attrs = self.attributes
        units: List[updaters.Unit] = []

        for key in updaters.PROFILE_KEYS:
            value = getattr(attrs, key)
            if value is None or (key == "email" and value == ""):
                continue
            units.append(updaters.SetAttribute(key, value))

        if attrs.location is not None:
            location_units = [
                updaters.SetAttribute(key, value)
                for key, value in attrs.location.model_dump(exclude_none=True).items()
            ]
            if location_units:
                units.append(updaters.with_location(*location_units))

        if attrs.properties:
            units.append(updaters.with_properties(
                *(updaters.with_value(k, v) for k, v in attrs.properties.items())
            ))

        return units


class ExistingProfile(BaseModel):
    """Profile returned by the API."""
    id: str
    type: str = "profile"
    attributes: ExistingProfileAttributes = Field(default_factory=ExistingProfileAttributes)


class EventAttributes(BaseModel):
    """Attributes of an event as sent on create.

    The profile and metric the event belongs to are passed separately to
    ``KlaviyoClient.create_event`` and nested into the payload there.
    """
    time: Optional[datetime] = None
    value: float = 0
    unique_id: Optional[str] = None
    properties: Dict[str, JsonValue] = Field(default_factory=dict)


class NewEvent(BaseModel):
    """Event that has not been created yet."""
    attributes: EventAttributes = Field(default_factory=EventAttributes)


class ExistingEventAttributes(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    timestamp: Optional[int] = None
    occurred_at: Optional[datetime] = Field(default=None, alias="datetime")
    uuid: Optional[str] = None
    event_properties: Dict[str, JsonValue] = Field(default_factory=dict)


class ExistingEvent(BaseModel):
    """Event returned by the API."""
    id: str
    type: str = "event"
    attributes: ExistingEventAttributes = Field(default_factory=ExistingEventAttributes)


class BulkImportJob(BaseModel):
    """Profile bulk import job as acknowledged by the API.

    Only the id is relied upon; the job runs asynchronously on the server.
    """
    id: str
    type: str = "profile-bulk-import-job"
    attributes: Dict[str, Any] = Field(default_factory=dict)
