"""
Basic usage examples for the Klaviyo Python client.

Prerequisites:
- Install: `pip install -e .` from the repo root
- Set KLAVIYO_API_KEY to a private API key
"""
import os
from datetime import datetime, timezone

from klaviyo_client import (
    EventAttributes,
    KlaviyoClient,
    Location,
    NewEvent,
    NewProfile,
    ProfileAlreadyExistsError,
    ProfileAttributes,
    params,
    updaters as u,
)


def main():
    client = KlaviyoClient(api_key=os.environ["KLAVIYO_API_KEY"])

    print("=" * 60)
    print("Klaviyo Python Client - Basic Usage Examples")
    print("=" * 60)

    # Example 1: List profiles
    print("\n1. Getting Profiles...")
    profiles = client.get_profiles(
        params.with_page_size(5),
        params.with_fields("email", "phone_number"),
    )
    for p in profiles:
        print(f"  - {p.id}: {p.attributes.email}")

    # Example 2: Create a profile, falling back to the existing one
    print("\n2. Creating Profile...")
    new_profile = NewProfile(attributes=ProfileAttributes(
        email="sarah.mason@klaviyo-demo.com",
        first_name="Sarah",
        last_name="Mason",
        location=Location(city="New York", country="United States"),
        properties={"pseudonym": "Dr. Octopus"},
    ))
    try:
        profile = client.create_profile(new_profile)
        print(f"Created profile: {profile.id}")
    except ProfileAlreadyExistsError as e:
        profile = client.get_profile(e.duplicate_profile_id)
        print(f"Profile already exists: {profile.id}")

    # Example 3: Partial update
    print("\n3. Updating Profile...")
    profile = client.update_profile(
        profile.id,
        u.with_phone_number("+15005550006"),
        u.with_properties(u.with_value("skype", "sarah_mason_skype")),
        u.unset_properties("pseudonym"),
    )
    print(f"Properties now: {profile.attributes.properties}")

    # Example 4: Track an event
    print("\n4. Creating Event...")
    client.create_event(
        NewEvent(attributes=EventAttributes(
            time=datetime.now(timezone.utc),
            properties={"EventName": "EmailSent", "PointClaimed": "1500"},
        )),
        profile_id=profile.id,
        metric_name="Reward",
    )
    df = client.get_events_dataframe(params.with_sort("-datetime"))
    print(df.head())

    print("\n" + "=" * 60)
    print("Examples completed!")
    print("=" * 60)

    client.close()


if __name__ == "__main__":
    main()
