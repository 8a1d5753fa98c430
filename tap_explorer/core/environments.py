"""Known target environments.

INQ lanes are Dataverse/OData services authenticated against Entra ID; the
MIS and MOGS lanes are GraphQL services authenticated against Okta. Client
secrets never live here: each environment names the process environment
variable that holds its secret.
"""

import os
from typing import Literal

from pydantic import BaseModel

from .errors import InvalidRequestError

INQ_TOKEN_URL = "https://login.microsoftonline.com/61e6eeb3-5fd7-4aaa-ae3c-61e8deb09b79/oauth2/v2.0/token"
OKTA_DEV_TOKEN_URL = "https://dev-73389086.okta.com/oauth2/default/v1/token"
OKTA_STAGE_TOKEN_URL = "https://stage-73389086.okta.com/oauth2/default/v1/token"
OKTA_PROD_TOKEN_URL = "https://prod-73389086.okta.com/oauth2/default/v1/token"

INQ_NONPROD_CLIENT_ID = "563efa39-c095-4882-a49d-3ecd0cca40e3"
INQ_PROD_CLIENT_ID = "5e6b7d0b-7247-429b-b8c1-d911d8f13d40"
OKTA_CLIENT_ID = "0oa82h6j45rN8G1he5d7"


class Environment(BaseModel):
    """Connection details for one service lane."""

    key: str
    name: str
    kind: Literal["odata", "graphql"]
    base_url: str
    graph_url: str | None = None
    access_token_url: str
    client_id: str
    scope: str
    secret_env_var: str

    def client_secret(self) -> str | None:
        """Read the client secret from the process environment."""
        return os.environ.get(self.secret_env_var) or None

    def with_client_id(self, client_id: str | None) -> "Environment":
        """Return a copy using another registered client id."""
        if not client_id:
            return self
        return self.model_copy(update={"client_id": client_id})


def _inq(lane: str, host: str, client_id: str) -> Environment:
    return Environment(
        key=lane,
        name=f"INQ Dataverse {lane.title()}",
        kind="odata",
        base_url=f"https://{host}.api.crm.dynamics.com/api/data/v9.2",
        access_token_url=INQ_TOKEN_URL,
        client_id=client_id,
        scope=f"https://{host}.crm.dynamics.com/.default",
        secret_env_var=f"INQ_CLIENT_SECRET_{lane}",
    )


def _gql(key: str, name: str, base_url: str, token_url: str, scope: str, secret_env_var: str) -> Environment:
    return Environment(
        key=key,
        name=name,
        kind="graphql",
        base_url=base_url,
        graph_url=f"{base_url}/graphql",
        access_token_url=token_url,
        client_id=OKTA_CLIENT_ID,
        scope=scope,
        secret_env_var=secret_env_var,
    )


DEFAULT_ENVIRONMENTS = [
    _inq("DEV", "inq-dev", INQ_NONPROD_CLIENT_ID),
    _inq("TEST", "inq-test", INQ_NONPROD_CLIENT_ID),
    _inq("STAGE", "inq-stage", INQ_NONPROD_CLIENT_ID),
    _inq("PROD", "inq", INQ_PROD_CLIENT_ID),
    _gql("mis-gql-local", "MIS GraphQL Local", "http://localhost:8080",
         OKTA_DEV_TOKEN_URL, "mis:mgql.nonProd", "MIS_GQL_LOCAL_CLIENT_SECRET"),
    _gql("mis-gql-dev", "MIS GraphQL Development", "https://mis-gql-dev.aws.churchofjesuschrist.org",
         OKTA_DEV_TOKEN_URL, "mis:mgql.nonProd", "MIS_GQL_DEV_CLIENT_SECRET"),
    _gql("mis-gql-stage", "MIS GraphQL Staging", "https://mis-gql-stage.aws.churchofjesuschrist.org",
         OKTA_STAGE_TOKEN_URL, "mis:mgql.nonProd", "MIS_GQL_STAGE_CLIENT_SECRET"),
    _gql("mis-gql-prod", "MIS GraphQL Production", "https://mis-gql.aws.churchofjesuschrist.org",
         OKTA_PROD_TOKEN_URL, "mis:mgql.prod", "MIS_GQL_PROD_CLIENT_SECRET"),
    _gql("mogs-gql-local", "MOGS GraphQL Local", "http://localhost:8081",
         OKTA_DEV_TOKEN_URL, "client_token", "MOGS_LOCAL_CLIENT_SECRET"),
    _gql("mogs-gql-dev", "MOGS GraphQL Development", "https://mms-gql-service-dev.pvu.cf.churchofjesuschrist.org",
         OKTA_DEV_TOKEN_URL, "client_token", "MOGS_DEV_CLIENT_SECRET"),
    _gql("mogs-gql-prod", "MOGS GraphQL Production", "https://mms-gql-service-prod.pvu.cf.churchofjesuschrist.org",
         OKTA_PROD_TOKEN_URL, "client_token", "MOGS_PROD_CLIENT_SECRET"),
]


class EnvironmentRegistry:
    """Lookup table of environments by key (case-insensitive)."""

    def __init__(self, environments: list[Environment] | None = None):
        self._environments: dict[str, Environment] = {}
        for env in DEFAULT_ENVIRONMENTS if environments is None else environments:
            self.register(env)

    def register(self, environment: Environment):
        self._environments[environment.key.lower()] = environment

    def find(self, key: str) -> Environment | None:
        return self._environments.get(key.strip().lower()) if key else None

    def get(self, key: str) -> Environment:
        """Return the environment for ``key``.

        Raises:
            InvalidRequestError: If the key is blank or unknown
        """
        if not key or not key.strip():
            raise InvalidRequestError("Environment parameter is required")
        env = self.find(key)
        if env is None:
            raise InvalidRequestError("Invalid environment", details={"environment": key})
        return env

    def keys(self) -> list[str]:
        return [env.key for env in self._environments.values()]

    def __iter__(self):
        return iter(self._environments.values())
