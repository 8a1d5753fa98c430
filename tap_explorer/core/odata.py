"""Async OData paginator.

Runs the requests that ``pagination`` describes: resolves the environment and
access token, issues the page request and interprets the response. Failures
are raised once; nothing is retried.
"""

from collections.abc import AsyncIterator, Callable
from datetime import datetime
from typing import Any

import httpx
from pydantic import ValidationError

from ..logging import get_logger, redact
from .environments import Environment, EnvironmentRegistry
from .errors import (
    AuthenticationError,
    InvalidJSONResponseError,
    InvalidRequestError,
    TapError,
    UpstreamHTTPError,
    parse_error_body,
    transport_error,
)
from .pagination import (
    PaginationParams,
    PaginationResponse,
    build_odata_query,
    interpret_response,
    odata_headers,
)
from .settings import get_settings
from .tokens import TokenProvider

logger = get_logger(__name__)


class ODataPaginator:
    """Fetches pages of an OData collection with cursor pagination.

    Example:
        paginator = ODataPaginator(token_provider=EnvironmentTokenProvider())
        page = await paginator.fetch_page(PaginationParams(environment="DEV"))
        while page.has_next_page and page.next_skip_token:
            ...
    """

    def __init__(
        self,
        environments: EnvironmentRegistry | None = None,
        token_provider: TokenProvider | None = None,
        http_client: httpx.AsyncClient | None = None,
        *,
        timeout: float | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.environments = environments or EnvironmentRegistry()
        self.token_provider = token_provider
        self.timeout = timeout if timeout is not None else get_settings().http_timeout_seconds
        self.clock = clock
        self._client = http_client
        self._owns_client = http_client is None

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

    @staticmethod
    def _coerce_params(params: PaginationParams | dict[str, Any]) -> PaginationParams:
        if isinstance(params, PaginationParams):
            return params
        try:
            return PaginationParams.model_validate(params)
        except ValidationError as e:
            if any(err["loc"] == ("environment",) for err in e.errors()):
                raise InvalidRequestError("Environment parameter is required") from e
            raise InvalidRequestError("Invalid pagination parameters", details=e.errors(include_url=False)) from e

    def _resolve_environment(self, params: PaginationParams) -> Environment:
        env = self.environments.get(params.environment)
        if env.kind != "odata":
            raise InvalidRequestError(
                "Environment is not an OData service",
                details={"environment": env.key},
            )
        return env

    async def _acquire_token(self, env: Environment) -> str:
        if self.token_provider is None:
            raise AuthenticationError("No access token supplied and no token provider configured")
        try:
            return await self.token_provider.get_token(env.key)
        except AuthenticationError:
            raise
        except TapError as e:
            raise AuthenticationError("Failed to obtain access token", details=e.to_dict()) from e

    async def fetch_page(self, params: PaginationParams | dict[str, Any]) -> PaginationResponse:
        """Fetch one page.

        Raises:
            InvalidRequestError: Missing/unknown environment or invalid parameters
            AuthenticationError: No token supplied and none could be obtained
            UpstreamHTTPError: The OData service answered non-2xx
            UpstreamConnectionError: The OData service could not be reached or timed out
            InvalidJSONResponseError: The OData service answered with non-JSON
        """
        params = self._coerce_params(params)
        env = self._resolve_environment(params)
        token = params.access_token or await self._acquire_token(env)

        query = build_odata_query(params, env.base_url)
        client = await self._get_client()
        logger.info("OData page %d of %s: %s", params.current_page, env.key, query.url)

        try:
            response = await client.get(query.url, headers=odata_headers(token, params.page_size))
        except httpx.RequestError as e:
            logger.warning("OData request to %s failed: %s", env.key, e)
            raise transport_error(e, query.url) from e

        if not response.is_success:
            details = parse_error_body(response.text)
            logger.warning(
                "OData pagination query failed: HTTP %d %s %s",
                response.status_code, response.reason_phrase, redact(details),
            )
            raise UpstreamHTTPError(
                "OData pagination query failed",
                status=response.status_code,
                status_text=response.reason_phrase,
                details=details,
                url=query.url,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise InvalidJSONResponseError("Invalid JSON response from OData service", raw=response.text) from e
        if not isinstance(payload, dict):
            raise InvalidJSONResponseError("OData response is not a JSON object", raw=response.text)

        return interpret_response(payload, params, query.url, self.clock)

    async def iterate_pages(
        self,
        params: PaginationParams | dict[str, Any],
        max_pages: int | None = None,
    ) -> AsyncIterator[PaginationResponse]:
        """Yield pages by following ``next_skip_token``.

        Stops when a page reports no next page, comes back empty (the full-page
        heuristic overshot), repeats the previous token, or ``max_pages`` is hit.
        The access token is resolved once and reused for every page.
        """
        params = self._coerce_params(params)
        env = self._resolve_environment(params)
        if not params.access_token:
            params = params.model_copy(update={"access_token": await self._acquire_token(env)})

        fetched = 0
        while True:
            page = await self.fetch_page(params)
            fetched += 1
            yield page

            if not page.has_next_page or not page.next_skip_token or not page.rows:
                break
            if max_pages is not None and fetched >= max_pages:
                break
            if page.next_skip_token == params.skip_token:
                logger.warning("Next skip token did not advance; stopping at page %d", page.current_page)
                break
            params = params.model_copy(
                update={
                    "skip_token": page.next_skip_token,
                    "current_page": params.current_page + 1,
                }
            )
