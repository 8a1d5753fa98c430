"""Core modules for pagination, random query generation and service access."""

from .auth import Auth, BasicAuth, BearerAuth, NoAuth
from .environments import Environment, EnvironmentRegistry
from .errors import (
    AuthenticationError,
    GenerationError,
    InvalidJSONResponseError,
    InvalidRequestError,
    SchemaError,
    TapError,
    UpstreamConnectionError,
    UpstreamHTTPError,
    UpstreamTimeoutError,
)
from .executor import GraphQLError, GraphQLExecutor
from .introspection import INTROSPECTION_QUERY
from .ir import (
    IREnumValue,
    IRField,
    IRInputValue,
    IRSchema,
    IRType,
    ListTypeRef,
    NamedTypeRef,
    NonNullTypeRef,
    TypeRef,
)
from .oauth import AccessToken, ClientCredentials, OAuthClient, TokenRequestMethod
from .odata import ODataPaginator
from .pagination import (
    ContinuationPage,
    FirstPage,
    LegacyOffset,
    ODataQuery,
    PageState,
    PaginationParams,
    PaginationResponse,
    ServerSkipToken,
    build_odata_query,
    interpret_response,
    parse_page_state,
)
from .parser import SchemaParser
from .random_query import GeneratedOperation, RandomQueryGenerator, VariableDefinition
from .scalars import ScalarHandler, ScalarRegistry
from .settings import Settings, get_settings
from .token_cache import InMemoryStore, KeyValueStore, TokenCache
from .tokens import EnvironmentTokenProvider, StaticTokenProvider, TokenProvider
from .typeref import Unwrapped, is_list, is_non_null, type_to_string, unwrap

__all__ = [
    # Auth
    "Auth",
    "BasicAuth",
    "BearerAuth",
    "NoAuth",
    # OAuth / tokens
    "AccessToken",
    "ClientCredentials",
    "OAuthClient",
    "TokenRequestMethod",
    "InMemoryStore",
    "KeyValueStore",
    "TokenCache",
    "EnvironmentTokenProvider",
    "StaticTokenProvider",
    "TokenProvider",
    # Configuration
    "Environment",
    "EnvironmentRegistry",
    "Settings",
    "get_settings",
    # Errors
    "TapError",
    "AuthenticationError",
    "GenerationError",
    "InvalidJSONResponseError",
    "InvalidRequestError",
    "SchemaError",
    "UpstreamHTTPError",
    "UpstreamConnectionError",
    "UpstreamTimeoutError",
    "GraphQLError",
    # IR types
    "IREnumValue",
    "IRField",
    "IRInputValue",
    "IRSchema",
    "IRType",
    "ListTypeRef",
    "NamedTypeRef",
    "NonNullTypeRef",
    "TypeRef",
    "Unwrapped",
    "is_list",
    "is_non_null",
    "type_to_string",
    "unwrap",
    # Parser
    "INTROSPECTION_QUERY",
    "SchemaParser",
    # Random query generation
    "GeneratedOperation",
    "RandomQueryGenerator",
    "VariableDefinition",
    "ScalarHandler",
    "ScalarRegistry",
    # Pagination
    "ContinuationPage",
    "FirstPage",
    "LegacyOffset",
    "ODataQuery",
    "PageState",
    "PaginationParams",
    "PaginationResponse",
    "ServerSkipToken",
    "build_odata_query",
    "interpret_response",
    "parse_page_state",
    "ODataPaginator",
    # Executor
    "GraphQLExecutor",
]
