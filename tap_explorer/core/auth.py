"""Request headers for the token endpoint, Dataverse and the GraphQL gateways.

Every handler satisfies the Auth protocol. The GraphQL executor and the
token client call ``get_headers()`` per request and merge the result into
their own headers.
"""

import base64
from typing import Protocol, runtime_checkable


@runtime_checkable
class Auth(Protocol):
    """Anything that can contribute headers to an outgoing request.

    Example (Dataverse impersonation, acting on behalf of a system user):
        class ImpersonatingAuth:
            def __init__(self, token: str, caller_id: str):
                self.token = token
                self.caller_id = caller_id

            def get_headers(self) -> dict[str, str]:
                return {
                    "Authorization": f"Bearer {self.token}",
                    "MSCRMCallerID": self.caller_id,
                }
    """

    def get_headers(self) -> dict[str, str]:
        """Return headers to include in requests."""
        ...


class BearerAuth:
    """Sends an access token issued by the environment's token endpoint.

    Args:
        token: The ``access_token`` of a client-credentials grant
    """

    def __init__(self, token: str):
        self.token = token

    def get_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


class BasicAuth:
    """Client-credentials authentication for the OAuth2 token request.

    The token endpoint accepts the client id and secret as HTTP Basic
    credentials (``client_secret_basic``).

    Args:
        client_id: Registered client id of the environment
        client_secret: Secret read from the environment's secret variable
    """

    def __init__(self, client_id: str, client_secret: str):
        self.client_id = client_id
        self.client_secret = client_secret

    def get_headers(self) -> dict[str, str]:
        credentials = f"{self.client_id}:{self.client_secret}"
        encoded = base64.b64encode(credentials.encode()).decode()
        return {"Authorization": f"Basic {encoded}"}


class NoAuth:
    """Sends nothing; for local gateways that do not check tokens."""

    def get_headers(self) -> dict[str, str]:
        return {}
