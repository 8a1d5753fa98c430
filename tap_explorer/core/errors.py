"""Error taxonomy shared by the pagination, OAuth and GraphQL clients.

Every error carries an HTTP-equivalent ``status_code`` so a caller that
fronts these clients with an HTTP surface can relay it unchanged.
"""

import json
from typing import Any

import httpx


class TapError(Exception):
    """Base class for all tap-explorer errors."""

    status_code: int = 500

    def __init__(self, message: str, *, details: Any = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Return an error payload suitable for printing or JSON responses."""
        payload: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class InvalidRequestError(TapError):
    """Missing or invalid input, rejected before any network call."""

    status_code = 400


class AuthenticationError(TapError):
    """Access token could not be obtained."""

    status_code = 401

    def __init__(self, message: str, *, details: Any = None, upstream_status: int | None = None):
        super().__init__(message, details=details)
        self.upstream_status = upstream_status

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if self.upstream_status is not None:
            payload["status"] = self.upstream_status
        return payload


class UpstreamHTTPError(TapError):
    """A non-2xx response from an OData, GraphQL or OAuth endpoint."""

    def __init__(
        self,
        message: str,
        *,
        status: int,
        status_text: str = "",
        details: Any = None,
        url: str | None = None,
    ):
        super().__init__(message, details=details)
        self.status = status
        self.status_text = status_text
        self.url = url
        self.status_code = status

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["status"] = self.status
        payload["statusText"] = self.status_text
        if self.url:
            payload["query"] = self.url
        return payload


class InvalidJSONResponseError(TapError):
    """The upstream answered 2xx but the body was not JSON."""

    def __init__(self, message: str, *, raw: str):
        super().__init__(message, details=raw)
        self.raw = raw


class SchemaError(TapError):
    """The introspection result is unusable."""


class GenerationError(TapError):
    """A random operation could not be generated from the schema."""


class UpstreamConnectionError(TapError):
    """The upstream could not be reached."""

    status_code = 502

    def __init__(self, message: str, *, url: str | None = None, details: Any = None):
        super().__init__(message, details=details)
        self.url = url

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if self.url:
            payload["query"] = self.url
        return payload


class UpstreamTimeoutError(UpstreamConnectionError):
    """The upstream did not answer within the client timeout."""

    status_code = 504


def parse_error_body(text: str) -> Any:
    """Parse an error body as JSON, falling back to ``{"message": text}``."""
    try:
        return json.loads(text)
    except ValueError:
        return {"message": text}


def transport_error(exc: httpx.RequestError, url: str) -> UpstreamConnectionError:
    """Map an httpx transport failure onto the error taxonomy."""
    if isinstance(exc, httpx.TimeoutException):
        return UpstreamTimeoutError(f"Request timed out: {url}", url=url, details=str(exc))
    return UpstreamConnectionError(f"Could not reach {url}", url=url, details=str(exc))
