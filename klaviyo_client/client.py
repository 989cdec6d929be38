"""
Klaviyo API Client

Overview
--------
This module implements the client for the Klaviyo REST API, including:
- Synchronous methods for profiles, profile imports and events
- Async counterparts sharing the same request pipeline
- Convenience helpers to convert list responses to pandas DataFrames

Design Notes
------------
- Network: Uses httpx. A caller may inject its own ``httpx.Client`` /
  ``httpx.AsyncClient`` as the transport; injected clients are not closed by
  ``close()``.
- Resiliency: Every request runs under a tenacity retry controller built from
  ``RetryPolicy``. HTTP 429 is reported as ``TooManyRequestsError`` once the
  retries are spent.
- Each attempt reads the full response body and closes the response before
  the outcome is evaluated, so connections always go back to the pool.
- The client holds no per-call state and can be shared between threads (sync
  methods) or tasks (async methods).
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import httpx
import pandas as pd

from .config import (
    AUTH_SCHEME,
    DEFAULT_RETRY_MAX,
    DEFAULT_RETRY_WAIT_MAX,
    DEFAULT_RETRY_WAIT_MIN,
    DEFAULT_TIMEOUT,
    EVENTS_PATH,
    PROFILE_BULK_IMPORT_JOBS_PATH,
    PROFILE_IMPORT_PATH,
    PROFILES_PATH,
    REST_API_HOST,
    REVISION,
    USER_AGENT,
)
from .envelope import (
    encode_bulk_import,
    encode_new_event,
    encode_new_profile,
    encode_profile_update,
    unwrap,
    unwrap_list,
)
from .exceptions import InvalidAPIKeyError, translate_error
from .models import BulkImportJob, ExistingEvent, ExistingProfile, NewEvent, NewProfile
from .params import Param, build_query, with_default_page_size
from .retry import RetryPolicy, check_response
from .updaters import Unit, compose

_BODY_METHODS = ("POST", "PATCH", "PUT")


class KlaviyoClient:
    """
    Klaviyo API Client

    Example:
        >>> from klaviyo_client import KlaviyoClient, params, updaters
        >>> client = KlaviyoClient(api_key="pk_...")
        >>> profiles = client.get_profiles(params.with_page_size(50))
        >>> client.update_profile(profiles[0].id, updaters.with_first_name("Sarah"))
    """

    def __init__(
        self,
        api_key: str,
        *,
        http_client: Optional[httpx.Client] = None,
        async_http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
        retry_wait_min: float = DEFAULT_RETRY_WAIT_MIN,
        retry_wait_max: float = DEFAULT_RETRY_WAIT_MAX,
        retry_max: int = DEFAULT_RETRY_MAX,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize Klaviyo client.

        Args:
            api_key: Private Klaviyo API key
            http_client: Transport for sync methods (built on demand if None)
            async_http_client: Transport for async methods (built lazily if None)
            timeout: Request timeout in seconds for clients built here
            retry_wait_min: Minimum backoff between retries in seconds
            retry_wait_max: Maximum backoff between retries in seconds
            retry_max: Number of retries after the first attempt
            logger: Logger for retry and request logging
        """
        if not api_key:
            raise InvalidAPIKeyError()

        self.api_key = api_key
        self.timeout = timeout
        self.retry_policy = RetryPolicy(
            wait_min=retry_wait_min,
            wait_max=retry_wait_max,
            max_retries=retry_max,
        )
        self._logger = logger if logger is not None else logging.getLogger(__name__)

        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=self.timeout)
        self._owns_async_client = async_http_client is None
        self._async_client = async_http_client
        self._close_task: Optional["asyncio.Task[None]"] = None

    def _get_headers(self, method: str) -> Dict[str, str]:
        """Build request headers including authentication and API revision."""
        headers = {
            "Authorization": f"{AUTH_SCHEME} {self.api_key}",
            "Accept": "application/json",
            "revision": REVISION,
            "User-Agent": USER_AGENT,
        }
        if method in _BODY_METHODS:
            headers["Content-Type"] = "application/json"
        return headers

    def _build_request(
        self,
        client: Any,
        method: str,
        endpoint: str,
        query: Optional[Dict[str, str]],
        body: Optional[Dict[str, Any]],
        timeout: Optional[float],
    ) -> httpx.Request:
        kwargs: Dict[str, Any] = {}
        if query:
            kwargs["params"] = query
        if body is not None:
            kwargs["json"] = body
        if timeout is not None:
            kwargs["timeout"] = timeout
        return client.build_request(
            method,
            f"{REST_API_HOST}/{endpoint}",
            headers=self._get_headers(method),
            **kwargs,
        )

    def _handle_response(self, response: httpx.Response) -> bytes:
        """Return the body of a successful response or raise a translated error."""
        if 200 <= response.status_code < 300:
            return response.content
        err = translate_error(response.status_code, response.content)
        self._logger.debug(
            "Klaviyo request failed: %s %s -> %s (%s)",
            response.request.method,
            response.request.url.path,
            response.status_code,
            type(err).__name__,
        )
        raise err

    # Request pipeline

    def _send_once(self, request: httpx.Request) -> httpx.Response:
        response = self._client.send(request, stream=True)
        try:
            response.read()
        finally:
            response.close()
        self._logger.debug(
            "%s %s -> %s", request.method, request.url.path, response.status_code
        )
        return check_response(response)

    def _request(
        self,
        method: str,
        endpoint: str,
        query: Optional[Dict[str, str]] = None,
        body: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> bytes:
        request = self._build_request(self._client, method, endpoint, query, body, timeout)
        retrying = self.retry_policy.retrying(self._logger)
        response = retrying(self._send_once, request)
        return self._handle_response(response)

    def _get_async_client(self) -> httpx.AsyncClient:
        if self._async_client is None:
            self._async_client = httpx.AsyncClient(timeout=self.timeout)
        return self._async_client

    async def _send_once_async(self, request: httpx.Request) -> httpx.Response:
        response = await self._get_async_client().send(request, stream=True)
        try:
            await response.aread()
        finally:
            await response.aclose()
        self._logger.debug(
            "%s %s -> %s", request.method, request.url.path, response.status_code
        )
        return check_response(response)

    async def _request_async(
        self,
        method: str,
        endpoint: str,
        query: Optional[Dict[str, str]] = None,
        body: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> bytes:
        client = self._get_async_client()
        request = self._build_request(client, method, endpoint, query, body, timeout)
        retrying = self.retry_policy.async_retrying(self._logger)
        response = await retrying(self._send_once_async, request)
        return self._handle_response(response)

    # Profiles API

    def get_profiles(self, *params: Param, timeout: Optional[float] = None) -> List[ExistingProfile]:
        """Get profiles.

        Args:
            params: Query parameters from ``klaviyo_client.params``. The page
                size defaults to 20 unless a ``with_page_size`` is given.
            timeout: Per-request timeout override in seconds

        Returns:
            List of ExistingProfile objects
        """
        query = build_query([with_default_page_size(), *params])
        body = self._request("GET", PROFILES_PATH, query=query, timeout=timeout)
        return unwrap_list(body, ExistingProfile)

    def get_profile(self, profile_id: str, *, timeout: Optional[float] = None) -> ExistingProfile:
        """Get a single profile by id.

        Raises:
            ProfileDoesNotExistError: no profile has this id
        """
        endpoint = f"{PROFILES_PATH}/{quote(profile_id, safe='')}/"
        body = self._request("GET", endpoint, timeout=timeout)
        return unwrap(body, ExistingProfile)

    def create_profile(self, profile: NewProfile, *, timeout: Optional[float] = None) -> ExistingProfile:
        """Create a new profile.

        Raises:
            ProfileAlreadyExistsError: a profile with the same identifiers
                exists; its id is in ``duplicate_profile_id``
        """
        body = self._request(
            "POST", PROFILES_PATH, body=encode_new_profile(profile), timeout=timeout
        )
        return unwrap(body, ExistingProfile)

    def update_profile(
        self,
        profile_id: str,
        *units: Unit,
        timeout: Optional[float] = None,
    ) -> ExistingProfile:
        """Update selected fields of an existing profile.

        Only fields set by ``units`` are sent; everything else is left as is
        on the server. Use ``updaters.unset_properties`` to remove custom
        properties.

        Args:
            profile_id: Id of the profile to update
            units: Update units from ``klaviyo_client.updaters``
            timeout: Per-request timeout override in seconds

        Returns:
            The updated ExistingProfile
        """
        payload = encode_profile_update(compose(units), profile_id)
        endpoint = f"{PROFILES_PATH}/{quote(profile_id, safe='')}"
        body = self._request("PATCH", endpoint, body=payload, timeout=timeout)
        return unwrap(body, ExistingProfile)

    def create_or_update_profile(
        self,
        *units: Unit,
        profile_id: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> ExistingProfile:
        """Create a profile or update the one matching its identifiers (upsert).

        The profile is matched on email, phone number or external id, or on
        ``profile_id`` when given.
        """
        payload = encode_profile_update(compose(units), profile_id)
        body = self._request("POST", PROFILE_IMPORT_PATH, body=payload, timeout=timeout)
        return unwrap(body, ExistingProfile)

    def bulk_import_profiles(
        self,
        profiles: Sequence[NewProfile],
        list_id: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
    ) -> str:
        """Submit a bulk import job for up to 10,000 profiles.

        Args:
            profiles: Profiles to create or update
            list_id: Optional list the imported profiles are added to
            timeout: Per-request timeout override in seconds

        Returns:
            Id of the created import job

        Raises:
            BulkImportSizeError: the batch is empty or too large; nothing is sent
        """
        payload = encode_bulk_import(profiles, list_id)
        body = self._request(
            "POST", PROFILE_BULK_IMPORT_JOBS_PATH, body=payload, timeout=timeout
        )
        return unwrap(body, BulkImportJob).id

    def get_profiles_dataframe(self, *params: Param, timeout: Optional[float] = None) -> pd.DataFrame:
        """Get profiles as a pandas DataFrame indexed by profile id.

        Location fields are flattened into ``location.<field>`` columns and
        custom properties into ``properties.<name>`` columns.
        """
        profiles = self.get_profiles(*params, timeout=timeout)
        return _profiles_frame(profiles)

    # Events API

    def get_events(self, *params: Param, timeout: Optional[float] = None) -> List[ExistingEvent]:
        """Get events.

        Args:
            params: Query parameters from ``klaviyo_client.params``
            timeout: Per-request timeout override in seconds

        Returns:
            List of ExistingEvent objects
        """
        body = self._request("GET", EVENTS_PATH, query=build_query(params), timeout=timeout)
        return unwrap_list(body, ExistingEvent)

    def create_event(
        self,
        event: NewEvent,
        profile_id: str,
        metric_name: str,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        """Create an event for an existing profile.

        The metric is created on the fly if it does not exist yet.
        """
        payload = encode_new_event(event, profile_id, metric_name)
        self._request("POST", EVENTS_PATH, body=payload, timeout=timeout)

    def get_events_dataframe(self, *params: Param, timeout: Optional[float] = None) -> pd.DataFrame:
        """Get events as a pandas DataFrame indexed by event time."""
        events = self.get_events(*params, timeout=timeout)
        return _events_frame(events)

    # Async API

    async def get_profiles_async(
        self, *params: Param, timeout: Optional[float] = None
    ) -> List[ExistingProfile]:
        """Async version of get_profiles."""
        query = build_query([with_default_page_size(), *params])
        body = await self._request_async("GET", PROFILES_PATH, query=query, timeout=timeout)
        return unwrap_list(body, ExistingProfile)

    async def get_profile_async(
        self, profile_id: str, *, timeout: Optional[float] = None
    ) -> ExistingProfile:
        """Async version of get_profile."""
        endpoint = f"{PROFILES_PATH}/{quote(profile_id, safe='')}/"
        body = await self._request_async("GET", endpoint, timeout=timeout)
        return unwrap(body, ExistingProfile)

    async def create_profile_async(
        self, profile: NewProfile, *, timeout: Optional[float] = None
    ) -> ExistingProfile:
        """Async version of create_profile."""
        body = await self._request_async(
            "POST", PROFILES_PATH, body=encode_new_profile(profile), timeout=timeout
        )
        return unwrap(body, ExistingProfile)

    async def update_profile_async(
        self, profile_id: str, *units: Unit, timeout: Optional[float] = None
    ) -> ExistingProfile:
        """Async version of update_profile."""
        payload = encode_profile_update(compose(units), profile_id)
        endpoint = f"{PROFILES_PATH}/{quote(profile_id, safe='')}"
        body = await self._request_async("PATCH", endpoint, body=payload, timeout=timeout)
        return unwrap(body, ExistingProfile)

    async def create_or_update_profile_async(
        self,
        *units: Unit,
        profile_id: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> ExistingProfile:
        """Async version of create_or_update_profile."""
        payload = encode_profile_update(compose(units), profile_id)
        body = await self._request_async(
            "POST", PROFILE_IMPORT_PATH, body=payload, timeout=timeout
        )
        return unwrap(body, ExistingProfile)

    async def bulk_import_profiles_async(
        self,
        profiles: Sequence[NewProfile],
        list_id: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
    ) -> str:
        """Async version of bulk_import_profiles."""
        payload = encode_bulk_import(profiles, list_id)
        body = await self._request_async(
            "POST", PROFILE_BULK_IMPORT_JOBS_PATH, body=payload, timeout=timeout
        )
        return unwrap(body, BulkImportJob).id

    async def get_events_async(
        self, *params: Param, timeout: Optional[float] = None
    ) -> List[ExistingEvent]:
        """Async version of get_events."""
        body = await self._request_async(
            "GET", EVENTS_PATH, query=build_query(params), timeout=timeout
        )
        return unwrap_list(body, ExistingEvent)

    async def create_event_async(
        self,
        event: NewEvent,
        profile_id: str,
        metric_name: str,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        """Async version of create_event."""
        payload = encode_new_event(event, profile_id, metric_name)
        await self._request_async("POST", EVENTS_PATH, body=payload, timeout=timeout)

    # Context manager support

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    def close(self):
        """Close the HTTP clients this instance created.

        Safe to call multiple times. Inside a running event loop the async
        client is closed by a scheduled task; prefer ``aclose`` there.
        """
        if self._owns_client:
            self._client.close()
        if self._owns_async_client and self._async_client is not None:
            async_client, self._async_client = self._async_client, None
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                asyncio.run(async_client.aclose())
            else:
                self._close_task = loop.create_task(async_client.aclose())

    async def aclose(self):
        """Close both HTTP clients this instance created."""
        if self._owns_client:
            self._client.close()
        if self._owns_async_client and self._async_client is not None:
            await self._async_client.aclose()
            self._async_client = None


def _profiles_frame(profiles: List[ExistingProfile]) -> pd.DataFrame:
    if not profiles:
        return pd.DataFrame()

    data = [
        {"id": p.id, **p.attributes.model_dump(mode="json", exclude_none=True)}
        for p in profiles
    ]
    df = pd.json_normalize(data)
    df.set_index("id", inplace=True)
    return df


def _events_frame(events: List[ExistingEvent]) -> pd.DataFrame:
    if not events:
        return pd.DataFrame()

    data = [
        {
            "id": e.id,
            "timestamp": e.attributes.occurred_at,
            "uuid": e.attributes.uuid,
            **{f"properties.{k}": v for k, v in e.attributes.event_properties.items()},
        }
        for e in events
    ]
    df = pd.DataFrame(data)
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    df.set_index("timestamp", inplace=True)
    return df
