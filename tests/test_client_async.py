import asyncio
import json

import httpx
import pytest
import respx

from conftest import API_HOST, PROFILE_ID, VALID_API_KEY, error_payload, profile_payload
from klaviyo_client import (
    BulkImportSizeError,
    EventAttributes,
    KlaviyoClient,
    NewEvent,
    NewProfile,
    ProfileAlreadyExistsError,
    ProfileAttributes,
    ProfileDoesNotExistError,
    TooManyRequestsError,
    params,
)
from klaviyo_client import updaters as u


def _client() -> KlaviyoClient:
    return KlaviyoClient(VALID_API_KEY, retry_wait_min=0, retry_wait_max=0, retry_max=1)


@pytest.mark.asyncio
@respx.mock
async def test_get_profiles_async():
    route = respx.get(host=API_HOST, path="/api/profiles").mock(
        return_value=httpx.Response(200, json={"data": [profile_payload()]})
    )

    async with _client() as client:
        profiles = await client.get_profiles_async(params.with_page_size(500))

    assert profiles[0].id == PROFILE_ID
    request = route.calls.last.request
    assert request.url.params["page[size]"] == "100"
    assert request.headers["authorization"] == f"Klaviyo-API-Key {VALID_API_KEY}"


@pytest.mark.asyncio
@respx.mock
async def test_get_profile_async_not_found():
    respx.get(host=API_HOST, path="/api/profiles/missing/").mock(
        return_value=httpx.Response(404, json=error_payload(404, "not_found"))
    )

    async with _client() as client:
        with pytest.raises(ProfileDoesNotExistError):
            await client.get_profile_async("missing")


@pytest.mark.asyncio
@respx.mock
async def test_create_profile_async_duplicate():
    respx.post(host=API_HOST, path="/api/profiles").mock(
        return_value=httpx.Response(409, json=error_payload(
            409, "duplicate_profile", meta={"duplicate_profile_id": PROFILE_ID},
        ))
    )

    async with _client() as client:
        with pytest.raises(ProfileAlreadyExistsError) as exc_info:
            await client.create_profile_async(
                NewProfile(attributes=ProfileAttributes(email="sarah.mason@klaviyo-demo.com"))
            )

    assert exc_info.value.duplicate_profile_id == PROFILE_ID


@pytest.mark.asyncio
@respx.mock
async def test_update_profile_async():
    route = respx.patch(host=API_HOST, path=f"/api/profiles/{PROFILE_ID}").mock(
        return_value=httpx.Response(200, json={"data": profile_payload(title="CTO")})
    )

    async with _client() as client:
        profile = await client.update_profile_async(
            PROFILE_ID, u.with_title("CTO"), u.unset_properties("skype"),
        )

    assert profile.attributes.title == "CTO"
    assert json.loads(route.calls.last.request.content)["data"] == {
        "type": "profile",
        "id": PROFILE_ID,
        "attributes": {"title": "CTO"},
        "meta": {"patch_properties": {"unset": ["skype"]}},
    }


@pytest.mark.asyncio
@respx.mock
async def test_create_or_update_profile_async():
    respx.post(host=API_HOST, path="/api/profile-import").mock(
        return_value=httpx.Response(201, json={"data": profile_payload()})
    )

    async with _client() as client:
        profile = await client.create_or_update_profile_async(
            u.with_email("sarah.mason@klaviyo-demo.com"),
        )

    assert profile.id == PROFILE_ID


@pytest.mark.asyncio
@respx.mock(assert_all_called=False)
async def test_bulk_import_async_validates_locally():
    route = respx.post(host=API_HOST, path="/api/profile-bulk-import-jobs")

    async with _client() as client:
        with pytest.raises(BulkImportSizeError):
            await client.bulk_import_profiles_async([])

    assert not route.called


@pytest.mark.asyncio
@respx.mock
async def test_bulk_import_async():
    respx.post(host=API_HOST, path="/api/profile-bulk-import-jobs").mock(
        return_value=httpx.Response(202, json={
            "data": {"type": "profile-bulk-import-job", "id": "job-1", "attributes": {}},
        })
    )

    async with _client() as client:
        job_id = await client.bulk_import_profiles_async(
            [NewProfile(attributes=ProfileAttributes(email="a@b.com"))]
        )

    assert job_id == "job-1"


@pytest.mark.asyncio
@respx.mock
async def test_events_async():
    create = respx.post(host=API_HOST, path="/api/events").mock(
        return_value=httpx.Response(202)
    )
    respx.get(host=API_HOST, path="/api/events").mock(
        return_value=httpx.Response(200, json={"data": [{
            "type": "event",
            "id": "4kt8e6Q5xzh",
            "attributes": {"uuid": "d13e0400", "event_properties": {"EventName": "EmailSent"}},
        }]})
    )

    async with _client() as client:
        await client.create_event_async(
            NewEvent(attributes=EventAttributes(properties={"EventName": "EmailSent"})),
            "01HN6AFEHGF6F77WJRKT1C9JHG",
            "Reward",
        )
        events = await client.get_events_async()

    assert create.called
    assert events[0].attributes.event_properties == {"EventName": "EmailSent"}


@pytest.mark.asyncio
@respx.mock
async def test_too_many_requests_async():
    route = respx.get(host=API_HOST, path="/api/events").mock(
        return_value=httpx.Response(429)
    )

    async with _client() as client:
        with pytest.raises(TooManyRequestsError):
            await client.get_events_async()

    assert route.call_count == 2


@pytest.mark.asyncio
@respx.mock
async def test_cancellation_is_not_retried():
    def cancelled(request):
        raise asyncio.CancelledError()

    respx.get(host=API_HOST, path="/api/events").mock(side_effect=cancelled)

    async with _client() as client:
        with pytest.raises(asyncio.CancelledError):
            await client.get_events_async()
