"""
Klaviyo Python Client

Overview
--------
Typed client library for the Klaviyo REST API (profiles and events). This
package provides a client with sync and async methods, Pydantic models,
composable query parameters and partial-update units, and a small exception
hierarchy that normalizes API errors.

Exports
-------
- ``KlaviyoClient``: main entry point for API access
- Pydantic models: ``NewProfile``, ``ExistingProfile``, ``ProfileAttributes``,
  ``Location``, ``NewEvent``, ``ExistingEvent``, ``EventAttributes``
- ``params`` and ``updaters`` modules for list queries and partial updates
- Exception hierarchy rooted at ``KlaviyoError``
"""
from . import params, updaters
from .client import KlaviyoClient
from .models import (
    Location,
    ProfileAttributes,
    NewProfile,
    ExistingProfile,
    EventAttributes,
    NewEvent,
    ExistingEvent,
)
from .exceptions import (
    KlaviyoError,
    KlaviyoAPIError,
    APIError,
    BadHTTPResponseError,
    BulkImportSizeError,
    InvalidAPIKeyError,
    ProfileAlreadyExistsError,
    ProfileDoesNotExistError,
    TooManyRequestsError,
)
from .retry import RetryPolicy

# Package semantic version. Keep in sync with packaging config in setup.py
__version__ = "1.0.0"
# Public API surface intended for ``from klaviyo_client import *`` consumers.
__all__ = [
    "KlaviyoClient",
    "RetryPolicy",
    "params",
    "updaters",
    "Location",
    "ProfileAttributes",
    "NewProfile",
    "ExistingProfile",
    "EventAttributes",
    "NewEvent",
    "ExistingEvent",
    "KlaviyoError",
    "KlaviyoAPIError",
    "APIError",
    "BadHTTPResponseError",
    "BulkImportSizeError",
    "InvalidAPIKeyError",
    "ProfileAlreadyExistsError",
    "ProfileDoesNotExistError",
    "TooManyRequestsError",
]
