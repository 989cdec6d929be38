import json
from datetime import datetime

import pytest
from pydantic import ValidationError

from conftest import PROFILE_ID, profile_payload
from klaviyo_client import (
    BulkImportSizeError,
    EventAttributes,
    ExistingEvent,
    ExistingProfile,
    NewEvent,
    NewProfile,
    ProfileAttributes,
)
from klaviyo_client import envelope
from klaviyo_client import updaters as u


def test_wrap_omits_empty_members():
    assert envelope.wrap("profile", {"email": "a@b.com"}) == {
        "data": {"type": "profile", "attributes": {"email": "a@b.com"}}
    }
    assert envelope.wrap("profile", id="X") == {"data": {"type": "profile", "id": "X"}}


def test_new_profile_skips_unset_fields():
    profile = NewProfile(attributes=ProfileAttributes(email="a@b.com", first_name="Sarah"))
    assert envelope.encode_new_profile(profile) == {
        "data": {
            "type": "profile",
            "attributes": {"email": "a@b.com", "first_name": "Sarah"},
        }
    }


def test_profile_update_carries_id_and_unset_meta():
    update = u.compose([u.with_title("CTO"), u.unset_properties("skype")])
    assert envelope.encode_profile_update(update, PROFILE_ID) == {
        "data": {
            "type": "profile",
            "id": PROFILE_ID,
            "attributes": {"title": "CTO"},
            "meta": {"patch_properties": {"unset": ["skype"]}},
        }
    }


def test_profile_upsert_without_id():
    update = u.compose([u.with_email("a@b.com")])
    assert envelope.encode_profile_update(update) == {
        "data": {"type": "profile", "attributes": {"email": "a@b.com"}}
    }


def test_new_event_nests_profile_and_metric():
    event = NewEvent(attributes=EventAttributes(
        time=datetime(2024, 1, 30, 5, 10),
        value=0,
        properties={"EventName": "EmailSent", "PointClaimed": "1500"},
    ))
    body = envelope.encode_new_event(event, "01HN6AFEHGF6F77WJRKT1C9JHG", "Reward")
    assert body == {
        "data": {
            "type": "event",
            "attributes": {
                "time": "2024-01-30T05:10:00",
                "value": 0.0,
                "properties": {"EventName": "EmailSent", "PointClaimed": "1500"},
                "profile": {"data": {"type": "profile", "id": "01HN6AFEHGF6F77WJRKT1C9JHG"}},
                "metric": {"data": {"type": "metric", "attributes": {"name": "Reward"}}},
            },
        }
    }


def test_bulk_import_wraps_profiles():
    profiles = [
        NewProfile(attributes=ProfileAttributes(email=f"user{i}@example.com"))
        for i in range(2)
    ]
    body = envelope.encode_bulk_import(profiles, list_id="Y6nRLr")
    assert body["data"]["type"] == "profile-bulk-import-job"
    assert body["data"]["attributes"]["profiles"]["data"] == [
        {"type": "profile", "attributes": {"email": "user0@example.com"}},
        {"type": "profile", "attributes": {"email": "user1@example.com"}},
    ]
    assert body["data"]["relationships"] == {
        "lists": {"data": [{"type": "list", "id": "Y6nRLr"}]}
    }


def test_bulk_import_rejects_empty_batch():
    with pytest.raises(BulkImportSizeError):
        envelope.encode_bulk_import([])


def test_bulk_import_rejects_oversized_batch():
    profiles = [NewProfile(attributes=ProfileAttributes(email="a@b.com"))] * 10_001
    with pytest.raises(BulkImportSizeError, match="10000"):
        envelope.encode_bulk_import(profiles)


def test_bulk_import_accepts_limit():
    profiles = [NewProfile(attributes=ProfileAttributes(email="a@b.com"))] * 10_000
    body = envelope.encode_bulk_import(profiles)
    assert len(body["data"]["attributes"]["profiles"]["data"]) == 10_000
    assert "relationships" not in body["data"]


def test_unwrap_profile():
    body = json.dumps({"data": profile_payload(), "links": {}}).encode()
    profile = envelope.unwrap(body, ExistingProfile)
    assert profile.id == PROFILE_ID
    assert profile.attributes.location.city == "New York"
    assert profile.attributes.properties == {"pseudonym": "Dr. Octopus"}
    assert profile.attributes.created.year == 2023


def test_unwrap_event_list():
    body = json.dumps({
        "data": [{
            "type": "event",
            "id": "4kt8e6Q5xzh",
            "attributes": {
                "timestamp": 1706591400,
                "datetime": "2024-01-30T05:10:00+00:00",
                "uuid": "d13e0400-bf2d-11ee-8001-dd51f1217edd",
                "event_properties": {"EventName": "EmailSent"},
            },
        }]
    }).encode()
    events = envelope.unwrap_list(body, ExistingEvent)
    assert len(events) == 1
    assert events[0].attributes.uuid == "d13e0400-bf2d-11ee-8001-dd51f1217edd"
    assert events[0].attributes.occurred_at.hour == 5
    assert events[0].attributes.event_properties == {"EventName": "EmailSent"}


def test_unwrap_malformed_body_raises_validation_error():
    with pytest.raises(ValidationError):
        envelope.unwrap(b"{not json", ExistingProfile)
