import pytest

from klaviyo_client import KlaviyoClient

VALID_API_KEY = "valid-api-key"
PROFILE_ID = "01H8HKMDG8F4MN7PSRZ4YQYNVQ"
API_HOST = "a.klaviyo.com"


def profile_payload(profile_id: str = PROFILE_ID, **overrides):
    attributes = {
        "email": "sarah.mason@klaviyo-demo.com",
        "phone_number": "+15005550006",
        "external_id": "63f64a2b-c6bf-40c7-b81f-bed08162edbe",
        "anonymous_id": "anon-63f64a2b-c6bf-40c7-b81f-bed08162edbe",
        "first_name": "Sarah",
        "last_name": "Mason",
        "organization": "Klaviyo",
        "title": "Engineer",
        "image": "https://images.pexels.com/photos/3760854/pexels-photo-3760854.jpeg",
        "created": "2023-08-23T12:00:00+00:00",
        "updated": "2023-08-23T12:00:00+00:00",
        "last_event_date": None,
        "location": {
            "address1": "89 E 42nd St",
            "address2": "1st floor",
            "city": "New York",
            "country": "United States",
            "latitude": 56.0,
            "longitude": 24.0,
            "region": "NY",
            "zip": "10017",
            "timezone": "America/New_York",
        },
        "properties": {"pseudonym": "Dr. Octopus"},
    }
    attributes.update(overrides)
    return {
        "type": "profile",
        "id": profile_id,
        "attributes": attributes,
        "links": {"self": f"https://a.klaviyo.com/api/profiles/{profile_id}/"},
    }


def error_payload(status: int, code: str, **extra):
    error = {
        "id": "7bd5b6ab-0cbd-4b0e-9c0b-3b9b5a3d6c1e",
        "status": status,
        "code": code,
        "title": "Error title",
        "detail": "Error detail",
        "source": {"pointer": "/data/"},
    }
    error.update(extra)
    return {"errors": [error]}


@pytest.fixture
def client():
    c = KlaviyoClient(
        VALID_API_KEY,
        retry_wait_min=0,
        retry_wait_max=0,
        retry_max=2,
    )
    yield c
    c.close()
