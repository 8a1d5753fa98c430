"""Token providers: resolve an access token for a named environment."""

from typing import Protocol, runtime_checkable

from ..logging import get_logger
from .environments import Environment, EnvironmentRegistry
from .errors import InvalidRequestError
from .oauth import AccessToken, ClientCredentials, OAuthClient, TokenRequestMethod
from .token_cache import TokenCache

logger = get_logger(__name__)


@runtime_checkable
class TokenProvider(Protocol):
    """Anything that can hand out a bearer token for an environment."""

    async def get_token(self, environment: str) -> str:
        ...


class StaticTokenProvider:
    """Returns the same token for every environment."""

    def __init__(self, token: str):
        self.token = token

    async def get_token(self, environment: str) -> str:
        return self.token


class EnvironmentTokenProvider:
    """Fetches client-credential tokens using the environment registry.

    Each call without a cached token performs its own token request;
    concurrent callers are not coalesced. ``client_id`` replaces the
    environment's registered client id (for lanes with several registered
    clients); the secret is still read from the environment's variable.
    """

    def __init__(
        self,
        environments: EnvironmentRegistry | None = None,
        oauth_client: OAuthClient | None = None,
        cache: TokenCache | None = None,
        method: TokenRequestMethod = TokenRequestMethod.BASIC,
        client_id: str | None = None,
    ):
        self.environments = environments or EnvironmentRegistry()
        self.client_id = client_id
        self.oauth_client = oauth_client or OAuthClient()
        self.cache = cache
        self.method = method

    def credentials_for(self, env: Environment) -> ClientCredentials:
        """Build client credentials, reading the secret from the process environment.

        Raises:
            InvalidRequestError: If the secret variable is not set
        """
        secret = env.client_secret()
        if not secret:
            raise InvalidRequestError(
                "Client secret not configured",
                details={"envVar": env.secret_env_var},
            )
        return ClientCredentials(
            token_url=env.access_token_url,
            client_id=env.client_id,
            client_secret=secret,
            scope=env.scope,
        )

    async def get_access_token(self, environment: str) -> AccessToken:
        """Return a full AccessToken for the environment, cached when possible."""
        env = self.environments.get(environment).with_client_id(self.client_id)
        credentials = self.credentials_for(env)

        if self.cache is not None:
            cached = self.cache.get(env.key, credentials)
            if cached is not None:
                return cached

        token = await self.oauth_client.fetch_token(credentials, self.method)
        logger.info("Obtained %s token for %s (expires in %ds)", token.token_type, env.key, token.expires_in)
        if self.cache is not None:
            self.cache.put(env.key, credentials, token)
        return token

    async def get_token(self, environment: str) -> str:
        token = await self.get_access_token(environment)
        return token.access_token
