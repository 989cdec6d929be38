"""
Partial profile updates.

An update is an ordered sequence of units. ``compose`` applies them in order
into a fresh ``UpdateRequest``:

- ``SetAttribute`` sets one key (last write wins).
- ``SetNested`` builds a fresh nested object (location, properties) from its
  own units and sets it under one key.
- ``Unset`` appends property names to the unset list.

Keys that no unit touches never appear in the resulting attributes, so an
update cannot clear server-side data by accident.

    >>> from klaviyo_client import updaters as u
    >>> request = u.compose([
    ...     u.with_phone_number("+15005550006"),
    ...     u.with_location(u.with_city("New York")),
    ...     u.unset_properties("skype"),
    ... ])
    >>> request.attributes
    {'phone_number': '+15005550006', 'location': {'city': 'New York'}}
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

PROFILE_KEYS = (
    "email",
    "phone_number",
    "external_id",
    "anonymous_id",
    "first_name",
    "last_name",
    "organization",
    "title",
    "image",
)


@dataclass(frozen=True)
class SetAttribute:
    key: str
    value: Any


@dataclass(frozen=True)
class SetNested:
    key: str
    units: Tuple["Unit", ...]


@dataclass(frozen=True)
class Unset:
    names: Tuple[str, ...]


Unit = Union[SetAttribute, SetNested, Unset]


@dataclass
class UpdateRequest:
    """Accumulated result of applying update units."""
    attributes: Dict[str, Any] = field(default_factory=dict)
    unset: List[str] = field(default_factory=list)

    @property
    def meta(self) -> Optional[Dict[str, Any]]:
        """``meta`` member of the request envelope, or None when nothing is unset."""
        if not self.unset:
            return None
        return {"patch_properties": {"unset": list(self.unset)}}


def _apply(units: Iterable[Unit], target: Dict[str, Any], unset: List[str]) -> None:
    for unit in units:
        if isinstance(unit, SetAttribute):
            target[unit.key] = unit.value
        elif isinstance(unit, SetNested):
            nested: Dict[str, Any] = {}
            _apply(unit.units, nested, unset)
            target[unit.key] = nested
        elif isinstance(unit, Unset):
            for name in unit.names:
                if name not in unset:
                    unset.append(name)
        else:
            raise TypeError(f"unsupported update unit: {unit!r}")


def compose(units: Iterable[Unit]) -> UpdateRequest:
    """Apply ``units`` in order and return the accumulated request.

    A property that is both set and unset in the same call is unset: it is
    removed from ``properties`` and kept in the unset list.
    """
    request = UpdateRequest()
    _apply(units, request.attributes, request.unset)

    properties = request.attributes.get("properties")
    if request.unset and isinstance(properties, dict):
        touched = bool(properties)
        for name in request.unset:
            properties.pop(name, None)
        if touched and not properties:
            del request.attributes["properties"]

    return request


# Profile attributes

def with_email(email: str) -> SetAttribute:
    return SetAttribute("email", email)


def with_phone_number(phone_number: str) -> SetAttribute:
    return SetAttribute("phone_number", phone_number)


def with_external_id(external_id: str) -> SetAttribute:
    return SetAttribute("external_id", external_id)


def with_anonymous_id(anonymous_id: str) -> SetAttribute:
    return SetAttribute("anonymous_id", anonymous_id)


def with_first_name(first_name: str) -> SetAttribute:
    return SetAttribute("first_name", first_name)


def with_last_name(last_name: str) -> SetAttribute:
    return SetAttribute("last_name", last_name)


def with_organization(organization: str) -> SetAttribute:
    return SetAttribute("organization", organization)


def with_title(title: str) -> SetAttribute:
    return SetAttribute("title", title)


def with_image(image: str) -> SetAttribute:
    """Set the profile image URL."""
    return SetAttribute("image", image)


def with_location(*units: Unit) -> SetNested:
    """Set the profile location from location units (``with_city`` etc.)."""
    return SetNested("location", tuple(units))


def with_properties(*units: Unit) -> SetNested:
    """Set custom properties from property units (``with_value``).

    Properties not named here are left untouched on the server.
    """
    return SetNested("properties", tuple(units))


def unset_properties(*names: str) -> Unset:
    """Remove the named custom properties from the profile."""
    return Unset(tuple(names))


# Location

def with_address1(address1: str) -> SetAttribute:
    return SetAttribute("address1", address1)


def with_address2(address2: str) -> SetAttribute:
    return SetAttribute("address2", address2)


def with_city(city: str) -> SetAttribute:
    return SetAttribute("city", city)


def with_country(country: str) -> SetAttribute:
    return SetAttribute("country", country)


def with_latitude(latitude: float) -> SetAttribute:
    return SetAttribute("latitude", latitude)


def with_longitude(longitude: float) -> SetAttribute:
    return SetAttribute("longitude", longitude)


def with_region(region: str) -> SetAttribute:
    return SetAttribute("region", region)


def with_zip(zip_code: str) -> SetAttribute:
    return SetAttribute("zip", zip_code)


def with_timezone(timezone: str) -> SetAttribute:
    return SetAttribute("timezone", timezone)


# Properties

def with_value(name: str, value: Any) -> SetAttribute:
    """Set a single custom property to any JSON value."""
    return SetAttribute(name, value)
