"""GraphQL executor for running documents against a GraphQL endpoint.

Handles HTTP communication, error handling, and response parsing. ``execute``
relays the endpoint's response body as-is (GraphQL ``errors`` included), the
way a proxy would; ``execute_data`` unwraps ``data`` and raises on errors.
"""

from typing import Any

import httpx
from pydantic import BaseModel

from ..logging import get_logger, redact
from .auth import Auth
from .errors import (
    InvalidJSONResponseError,
    InvalidRequestError,
    TapError,
    UpstreamHTTPError,
    parse_error_body,
    transport_error,
)
from .introspection import INTROSPECTION_QUERY
from .ir import IRSchema
from .parser import SchemaParser
from .settings import get_settings

logger = get_logger(__name__)


class GraphQLError(TapError):
    """Exception raised when a GraphQL response carries errors."""

    status_code = 502

    def __init__(self, message: str, errors: list[dict[str, Any]]):
        super().__init__(message, details=errors)
        self.errors = errors


class GraphQLExecutor:
    """Executes GraphQL documents against an endpoint.

    Examples:
        executor = GraphQLExecutor(url, auth=BearerAuth(token))
        result = await executor.execute("{ missionary(id: 1) { name } }")

        schema = await executor.introspect()
    """

    def __init__(
        self,
        url: str,
        auth: Auth,
        *,
        timeout: float | None = None,
        user_agent: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the executor.

        Args:
            url: GraphQL endpoint URL
            auth: Authentication handler (implements Auth protocol)
            timeout: Request timeout in seconds (defaults to settings)
            user_agent: User-Agent header (defaults to settings)
            http_client: Pre-built client, mainly for tests
        """
        settings = get_settings()
        self.url = url
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self.user_agent = user_agent or settings.user_agent
        self._auth = auth
        self._client = http_client
        self._owns_client = http_client is None

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "*/*",
            "User-Agent": self.user_agent,
            "Cache-Control": "no-cache",
        }
        headers.update(self._auth.get_headers())
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self):
        """Close the HTTP client if this instance created it."""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Execute a raw GraphQL document and return the full response body.

        Raises:
            InvalidRequestError: If the query is blank
            UpstreamHTTPError: If the endpoint answers non-2xx
            UpstreamConnectionError: If the endpoint cannot be reached or times out
            InvalidJSONResponseError: If the response body is not JSON
        """
        if not query or not query.strip():
            raise InvalidRequestError("Missing query parameter")

        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = self._serialize_variables(variables)

        client = await self._get_client()
        headers = self._headers()
        logger.debug("POST %s headers=%s (%d byte query)", self.url, redact(headers), len(query))
        try:
            response = await client.post(self.url, json=payload, headers=headers)
        except httpx.RequestError as e:
            logger.warning("GraphQL request to %s failed: %s", self.url, e)
            raise transport_error(e, self.url) from e
        text = response.text
        logger.debug("GraphQL response: HTTP %d, %.1f KB", response.status_code, len(text) / 1024)

        if not response.is_success:
            logger.warning("GraphQL request failed: %d %s", response.status_code, response.reason_phrase)
            raise UpstreamHTTPError(
                f"GraphQL request failed: {response.status_code} {response.reason_phrase}",
                status=response.status_code,
                status_text=response.reason_phrase,
                details=parse_error_body(text),
                url=self.url,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise InvalidJSONResponseError("Invalid JSON response from GraphQL", raw=text) from e
        if not isinstance(body, dict):
            raise InvalidJSONResponseError("GraphQL response is not a JSON object", raw=text)
        return body

    async def execute_data(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Execute a document and return only its ``data``.

        Raises:
            GraphQLError: If the response contains errors
        """
        result = await self.execute(query, variables)

        if result.get("errors"):
            error_messages = "; ".join(e.get("message", str(e)) for e in result["errors"])
            raise GraphQLError(f"GraphQL errors: {error_messages}", result["errors"])

        return result.get("data") or {}

    async def introspect(self) -> IRSchema:
        """Fetch the endpoint's schema with INTROSPECTION_QUERY and parse it."""
        return SchemaParser.from_introspection(await self.fetch_introspection())

    async def fetch_introspection(self) -> dict[str, Any]:
        """Fetch the raw introspection result (``{"__schema": ...}``)."""
        return await self.execute_data(INTROSPECTION_QUERY)

    def _serialize_variables(self, variables: dict[str, Any]) -> dict[str, Any]:
        """Serialize variables for the GraphQL request.

        Handles Pydantic models by converting them to dicts.
        """
        result = {}
        for key, value in variables.items():
            if value is None:
                continue
            if isinstance(value, BaseModel):
                result[key] = value.model_dump(by_alias=True, exclude_none=True)
            elif isinstance(value, list):
                result[key] = [
                    v.model_dump(by_alias=True, exclude_none=True) if isinstance(v, BaseModel) else v
                    for v in value
                ]
            else:
                result[key] = value
        return result
