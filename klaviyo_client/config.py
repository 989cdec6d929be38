"""
Fixed configuration for the Klaviyo client.

The REST host and API revision are pinned at build time. Changing the
revision changes the wire format of every endpoint, so it is not exposed as
a constructor argument.
"""

REST_API_HOST = "https://a.klaviyo.com/api"
REVISION = "2024-02-15"
AUTH_SCHEME = "Klaviyo-API-Key"

# Resource type strings used inside JSON:API envelopes
PROFILE_TYPE = "profile"
EVENT_TYPE = "event"
METRIC_TYPE = "metric"
LIST_TYPE = "list"
BULK_IMPORT_JOB_TYPE = "profile-bulk-import-job"

# Endpoint paths, relative to REST_API_HOST
PROFILES_PATH = "profiles"
PROFILE_IMPORT_PATH = "profile-import"
PROFILE_BULK_IMPORT_JOBS_PATH = "profile-bulk-import-jobs"
EVENTS_PATH = "events"

# Transport defaults (seconds)
DEFAULT_TIMEOUT = 30
DEFAULT_RETRY_WAIT_MIN = 1.0
DEFAULT_RETRY_WAIT_MAX = 60.0
DEFAULT_RETRY_MAX = 4

# List endpoint paging
MIN_PAGE_SIZE = 1
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20

MAX_BULK_IMPORT_PROFILES = 10_000

USER_AGENT = "klaviyo-client-python/1.0.0"
