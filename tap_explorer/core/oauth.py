"""OAuth2 client-credentials token client.

Supports the three token request styles the target identity providers accept:

    basic  client id/secret in an HTTP Basic header
    form   client id/secret in the form body
    jwt    form body plus a jwt-bearer client assertion type
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from ..logging import get_logger
from .auth import BasicAuth
from .errors import AuthenticationError, InvalidJSONResponseError, InvalidRequestError, transport_error
from .settings import get_settings

logger = get_logger(__name__)

JWT_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"


class TokenRequestMethod(str, Enum):
    """How client credentials are presented to the token endpoint."""
    BASIC = "basic"
    FORM = "form"
    JWT = "jwt"


class ClientCredentials(BaseModel):
    """OAuth2 client-credentials grant parameters."""

    token_url: str
    client_id: str
    client_secret: str
    scope: str


class AccessToken(BaseModel):
    """A token issued by the token endpoint."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int
    expires_at: datetime

    def to_json_dict(self) -> dict[str, Any]:
        """Token metadata without the token value itself."""
        return {
            "token_type": self.token_type,
            "expires_in": self.expires_in,
            "expires_at": self.expires_at.isoformat(),
        }


class OAuthClient:
    """Requests client-credential access tokens.

    Example:
        client = OAuthClient()
        token = await client.fetch_token(credentials, TokenRequestMethod.BASIC)
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        timeout: float | None = None,
        user_agent: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        settings = get_settings()
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self.user_agent = user_agent or settings.user_agent
        self.clock = clock or (lambda: datetime.now(UTC))
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

    async def fetch_token(
        self,
        credentials: ClientCredentials,
        method: TokenRequestMethod = TokenRequestMethod.BASIC,
    ) -> AccessToken:
        """Request a new access token.

        Raises:
            InvalidRequestError: If a credential field is blank
            AuthenticationError: If the token endpoint answers non-2xx
            InvalidJSONResponseError: If the token response is not JSON
            UpstreamConnectionError: If the token endpoint cannot be reached or times out
        """
        missing = [k for k, v in credentials.model_dump().items() if not v]
        if missing:
            raise InvalidRequestError("Missing required parameters", details={"missing": missing})

        method = TokenRequestMethod(method)
        headers, form = self._build_request(credentials, method)
        client = await self._get_client()

        logger.info("Requesting %s token from %s", method.value, credentials.token_url)
        try:
            response = await client.post(credentials.token_url, data=form, headers=headers)
        except httpx.RequestError as e:
            logger.warning("Token request to %s failed: %s", credentials.token_url, e)
            raise transport_error(e, credentials.token_url) from e

        if not response.is_success:
            logger.warning("Token request failed with HTTP %d", response.status_code)
            raise AuthenticationError(
                "Failed to obtain access token",
                details=response.text,
                upstream_status=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise InvalidJSONResponseError("Invalid JSON response from token endpoint", raw=response.text) from e

        if not isinstance(body, dict) or not body.get("access_token"):
            raise AuthenticationError("Token response has no access_token", details=body)

        try:
            expires_in = int(body.get("expires_in", 0))
            return AccessToken(
                access_token=body["access_token"],
                token_type=body.get("token_type") or "Bearer",
                expires_in=expires_in,
                expires_at=self.clock() + timedelta(seconds=expires_in),
            )
        except (TypeError, ValueError, ValidationError) as e:
            raise AuthenticationError("Malformed token response", details=body) from e

    def _build_request(
        self,
        credentials: ClientCredentials,
        method: TokenRequestMethod,
    ) -> tuple[dict[str, str], dict[str, str]]:
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
            "User-Agent": self.user_agent,
            "Cache-Control": "no-cache",
        }
        form = {"grant_type": "client_credentials", "scope": credentials.scope}

        if method is TokenRequestMethod.BASIC:
            headers.update(BasicAuth(credentials.client_id, credentials.client_secret).get_headers())
        else:
            form["client_id"] = credentials.client_id
            form["client_secret"] = credentials.client_secret
            if method is TokenRequestMethod.JWT:
                form["client_assertion_type"] = JWT_ASSERTION_TYPE
        return headers, form
