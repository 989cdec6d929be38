"""
Exception classes for the Klaviyo client.

Every failure the client raises derives from ``KlaviyoError``. API failures
derive from ``KlaviyoAPIError`` and are normalized into a small set of
semantic errors so callers can branch on the exception class instead of
inspecting status codes.

Typical usage:
    >>> from klaviyo_client import KlaviyoClient, ProfileAlreadyExistsError
    >>> client = KlaviyoClient(api_key="pk_...")
    >>> try:
    ...     client.create_profile(profile)
    ... except ProfileAlreadyExistsError as e:
    ...     profile_id = e.duplicate_profile_id
"""
from typing import Any, List, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator


class KlaviyoError(Exception):
    """Base exception for everything raised by the client."""
    pass


class KlaviyoAPIError(KlaviyoError):
    """Base exception for failures reported by the Klaviyo API."""
    pass


class InvalidAPIKeyError(KlaviyoAPIError):
    """The API key is missing or was rejected (HTTP 401)."""

    def __init__(self, message: str = "klaviyo: invalid or missing API key"):
        super().__init__(message)


class TooManyRequestsError(KlaviyoAPIError):
    """The endpoint kept answering HTTP 429 after all retries were spent."""

    def __init__(self, message: str = "klaviyo: too many requests for calling endpoint"):
        super().__init__(message)


class ProfileDoesNotExistError(KlaviyoAPIError):
    """The requested profile does not exist (HTTP 404)."""

    def __init__(self, message: str = "klaviyo: a profile does not exist"):
        super().__init__(message)


class ProfileAlreadyExistsError(KlaviyoAPIError):
    """A profile with one of the given identifiers already exists (HTTP 409).

    The id of the existing profile is kept in ``duplicate_profile_id`` so the
    caller can fall back to an update.
    """

    def __init__(self, duplicate_profile_id: str):
        self.duplicate_profile_id = duplicate_profile_id
        super().__init__(
            "klaviyo: a profile already exists with one of these identifiers: "
            f"{duplicate_profile_id}"
        )


class BulkImportSizeError(ValueError, KlaviyoError):
    """A bulk import batch is empty or larger than the API allows."""
    pass


class _ErrorModel(BaseModel):
    """Reads JSON null members as if they were absent."""

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class ErrorSource(_ErrorModel):
    pointer: Optional[str] = None


class ErrorMeta(_ErrorModel):
    duplicate_profile_id: Optional[str] = None


class ErrorObject(_ErrorModel):
    """Single entry of the ``errors`` array in an API error response."""
    id: str = ""
    status: int = 0
    code: str = ""
    title: str = ""
    detail: str = ""
    source: ErrorSource = Field(default_factory=ErrorSource)
    meta: ErrorMeta = Field(default_factory=ErrorMeta)


class ErrorEnvelope(_ErrorModel):
    errors: List[ErrorObject] = Field(default_factory=list)


class APIError(KlaviyoAPIError):
    """Generic API error that did not map onto a semantic error.

    Exposes the fields of the first error object. All parsed error objects
    are kept in ``errors``.
    """

    def __init__(
        self,
        status: int,
        code: str = "",
        title: str = "",
        detail: str = "",
        id: str = "",
        source_pointer: Optional[str] = None,
        duplicate_profile_id: Optional[str] = None,
        errors: Optional[List[ErrorObject]] = None,
    ):
        self.id = id
        self.status = status
        self.code = code
        self.title = title
        self.detail = detail
        self.source_pointer = source_pointer
        self.duplicate_profile_id = duplicate_profile_id
        self.errors = errors or []
        super().__init__(
            f"Klaviyo API Error (ID: {id}, Status: {status}, Code: {code}) - {title}: {detail}"
        )

    @classmethod
    def from_error_object(
        cls, obj: ErrorObject, errors: List[ErrorObject], status_code: int = 0,
    ) -> "APIError":
        return cls(
            status=obj.status or status_code,
            code=obj.code,
            title=obj.title,
            detail=obj.detail,
            id=obj.id,
            source_pointer=obj.source.pointer,
            duplicate_profile_id=obj.meta.duplicate_profile_id,
            errors=errors,
        )


class BadHTTPResponseError(KlaviyoAPIError):
    """Non-success response whose body is not a Klaviyo error envelope.

    The raw status code and body are preserved. The parse failure is chained
    as ``__cause__`` and also available as ``cause``.
    """

    def __init__(self, status_code: int, body: bytes, cause: Exception):
        self.status_code = status_code
        self.body = body
        self.cause = cause
        super().__init__(f"klaviyo: bad HTTP response: {cause}")


def _classify(error: ErrorObject, status_code: int) -> Optional[KlaviyoAPIError]:
    status = error.status or status_code
    if status == 409 and error.code == "duplicate_profile":
        return ProfileAlreadyExistsError(error.meta.duplicate_profile_id or "")
    if status == 404 and error.code == "not_found":
        return ProfileDoesNotExistError()
    if status == 401 and error.code in ("not_authenticated", "authentication_failed"):
        return InvalidAPIKeyError()
    return None


def translate_error(status_code: int, body: bytes) -> KlaviyoAPIError:
    """Map a non-success response onto exactly one exception instance.

    Only the first error object is classified. HTTP 429 never reaches this
    function: the retry layer turns it into ``TooManyRequestsError`` first.
    """
    try:
        envelope = ErrorEnvelope.model_validate_json(body)
    except ValidationError as exc:
        err = BadHTTPResponseError(status_code, body, exc)
        err.__cause__ = exc
        return err

    if not envelope.errors:
        return APIError(
            status=status_code,
            title="Bad HTTP status",
            detail=body.decode("utf-8", errors="replace"),
        )

    first = envelope.errors[0]
    return _classify(first, status_code) or APIError.from_error_object(
        first, envelope.errors, status_code,
    )

