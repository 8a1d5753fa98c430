"""Command-line interface for tap-explorer."""

import asyncio
import functools
import json
import random
import sys
from pathlib import Path

import click

from .core.auth import BearerAuth, NoAuth
from .core.environments import EnvironmentRegistry
from .core.errors import InvalidRequestError, TapError
from .core.executor import GraphQLExecutor
from .core.oauth import OAuthClient, TokenRequestMethod
from .core.odata import ODataPaginator
from .core.pagination import PaginationParams
from .core.parser import SchemaParser
from .core.random_query import RandomQueryGenerator
from .core.settings import get_settings
from .core.token_cache import TokenCache
from .core.tokens import EnvironmentTokenProvider
from .logging import setup_logging


def echo_json(payload) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def handle_errors(func):
    """Print TapError payloads to stderr and exit non-zero."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except TapError as e:
            click.echo(json.dumps(e.to_dict(), indent=2, default=str), err=True)
            sys.exit(1)

    return wrapper


def environment_option(func):
    return click.option(
        "--environment",
        "-e",
        default=lambda: get_settings().default_environment,
        show_default="TAP_DEFAULT_ENVIRONMENT or DEV",
        help="Environment key (see `tap-explorer environments`).",
    )(func)


def access_token_option(func):
    return click.option(
        "--access-token",
        envvar="TAP_ACCESS_TOKEN",
        default=None,
        help="Use this bearer token instead of requesting one.",
    )(func)


def client_id_option(func):
    return click.option(
        "--client-id",
        envvar="TAP_CLIENT_ID",
        default=None,
        help="Request tokens as this client instead of the environment's registered one.",
    )(func)


async def _resolve_token(environment: str, access_token: str | None, client_id: str | None = None) -> str:
    if access_token:
        return access_token
    oauth = OAuthClient()
    try:
        return await EnvironmentTokenProvider(oauth_client=oauth, client_id=client_id).get_token(environment)
    finally:
        await oauth.close()


@click.group()
@click.version_option(package_name="tap-explorer")
@click.option("--log-level", default=None, help="Log level (defaults to TAP_LOG_LEVEL).")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(log_level: str | None, verbose: bool):
    """Test and explore the INQ OData and MIS/MOGS GraphQL services.

    Obtain client-credential tokens, page through OData collections, run
    GraphQL documents and generate random queries from a schema.
    """
    setup_logging("DEBUG" if verbose else log_level)


@main.command()
def environments():
    """List the known environments."""
    for env in EnvironmentRegistry():
        click.echo(f"{env.key:<16} {env.kind:<8} {env.name}")


@main.command()
@click.option(
    "--schema",
    "-s",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Introspection result (.json) or SDL file (.graphql, .graphqls).",
)
@click.option("--mutation", is_flag=True, help="Generate a mutation instead of a query.")
@click.option("--max-depth", default=3, show_default=True, type=click.IntRange(min=1))
@click.option("--max-fields", default=5, show_default=True, type=click.IntRange(min=1))
@click.option("--seed", type=int, default=None, help="Seed for repeatable output.")
@click.option(
    "--namespace-variables",
    is_flag=True,
    help="Prefix variable names with their field name to avoid collisions.",
)
@click.option("--count", "-n", default=1, show_default=True, type=click.IntRange(min=1))
@handle_errors
def generate(
    schema: str,
    mutation: bool,
    max_depth: int,
    max_fields: int,
    seed: int | None,
    namespace_variables: bool,
    count: int,
):
    """Generate random GraphQL operations from a schema.

    Examples:

        tap-explorer generate --schema ./introspection.json

        tap-explorer generate -s ./schema.graphqls --mutation --seed 42
    """
    ir = SchemaParser.from_file(schema)
    generator = RandomQueryGenerator(
        ir,
        max_depth=max_depth,
        max_fields=max_fields,
        rng=random.Random(seed),
        namespace_variables=namespace_variables,
    )
    for i in range(count):
        if i:
            click.echo()
        operation = generator.generate_random_mutation() if mutation else generator.generate_random_query()
        click.echo(operation.document)


@main.command()
@environment_option
@click.option(
    "--method",
    type=click.Choice([m.value for m in TokenRequestMethod]),
    default=TokenRequestMethod.BASIC.value,
    show_default=True,
)
@click.option("--show-token", is_flag=True, help="Print the access token itself.")
@client_id_option
@handle_errors
def token(environment: str, method: str, show_token: bool, client_id: str | None):
    """Request a client-credentials token for an environment.

    The client secret is read from the environment variable named by the
    environment (e.g. INQ_CLIENT_SECRET_DEV).
    """

    async def run():
        oauth = OAuthClient()
        try:
            provider = EnvironmentTokenProvider(
                oauth_client=oauth,
                method=TokenRequestMethod(method),
                client_id=client_id,
            )
            return await provider.get_access_token(environment)
        finally:
            await oauth.close()

    access_token = asyncio.run(run())
    payload = access_token.to_json_dict()
    if show_token:
        payload["access_token"] = access_token.access_token
    echo_json(payload)


@main.command()
@environment_option
@access_token_option
@click.option("--page-size", type=click.IntRange(min=1), default=None, help="Rows per page.")
@click.option("--page", "current_page", type=click.IntRange(min=1), default=1, show_default=True)
@click.option("--filter", "filter_", default=None, help="OData $filter expression.")
@click.option("--select", default=None, help="OData $select list.")
@click.option("--order-by", default="inq_name", show_default=True)
@click.option("--skip-token", default=None, help="Token from a previous page's nextSkipToken.")
@click.option("--all", "follow", is_flag=True, help="Follow next pages until exhausted.")
@click.option("--max-pages", type=click.IntRange(min=1), default=None)
@client_id_option
@handle_errors
def paginate(
    environment: str,
    access_token: str | None,
    client_id: str | None,
    page_size: int | None,
    current_page: int,
    filter_: str | None,
    select: str | None,
    order_by: str,
    skip_token: str | None,
    follow: bool,
    max_pages: int | None,
):
    """Fetch pages of inq_missionaries from an INQ environment."""
    params = {
        "environment": environment,
        "currentPage": current_page,
        "filter": filter_,
        "select": select,
        "orderBy": order_by,
        "accessToken": access_token,
        "skipToken": skip_token,
    }
    if page_size is not None:
        params["pageSize"] = page_size
    params = {k: v for k, v in params.items() if v is not None}

    async def run():
        oauth = OAuthClient()
        paginator = ODataPaginator(
            token_provider=EnvironmentTokenProvider(oauth_client=oauth, cache=TokenCache(), client_id=client_id),
        )
        try:
            if not follow:
                echo_json((await paginator.fetch_page(params)).to_json_dict())
                return
            async for page in paginator.iterate_pages(params, max_pages=max_pages):
                echo_json(page.to_json_dict())
        finally:
            await paginator.close()
            await oauth.close()

    asyncio.run(run())


def _graphql_url(environment: str) -> str:
    env = EnvironmentRegistry().get(environment)
    if not env.graph_url:
        raise InvalidRequestError("Environment has no GraphQL endpoint", details={"environment": env.key})
    return env.graph_url


@main.command()
@environment_option
@access_token_option
@click.option("--query", "-q", "query_text", default=None, help="GraphQL document.")
@click.option(
    "--file",
    "-f",
    "query_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="File containing the GraphQL document.",
)
@click.option("--variables", default=None, help="Variables as a JSON object.")
@click.option("--no-auth", is_flag=True, help="Send the request without a token.")
@client_id_option
@handle_errors
def query(
    environment: str,
    access_token: str | None,
    client_id: str | None,
    query_text: str | None,
    query_file: str | None,
    variables: str | None,
    no_auth: bool,
):
    """Run a GraphQL document against an environment and print the response."""
    if query_file:
        query_text = Path(query_file).read_text()
    if not query_text:
        raise click.UsageError("Provide --query or --file")

    parsed_variables = None
    if variables:
        try:
            parsed_variables = json.loads(variables)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"not valid JSON: {e}", param_hint="--variables")

    url = _graphql_url(environment)

    async def run():
        auth = NoAuth() if no_auth else BearerAuth(await _resolve_token(environment, access_token, client_id))
        executor = GraphQLExecutor(url, auth)
        try:
            return await executor.execute(query_text, parsed_variables)
        finally:
            await executor.close()

    echo_json(asyncio.run(run()))


@main.command()
@environment_option
@access_token_option
@click.option(
    "--output",
    "-o",
    required=True,
    type=click.Path(dir_okay=False),
    help="File to write the introspection result to.",
)
@click.option("--no-auth", is_flag=True, help="Send the request without a token.")
@client_id_option
@handle_errors
def introspect(environment: str, access_token: str | None, client_id: str | None, output: str, no_auth: bool):
    """Save an environment's introspection result for `generate`."""
    url = _graphql_url(environment)

    async def run():
        auth = NoAuth() if no_auth else BearerAuth(await _resolve_token(environment, access_token, client_id))
        executor = GraphQLExecutor(url, auth)
        try:
            return await executor.fetch_introspection()
        finally:
            await executor.close()

    result = asyncio.run(run())
    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(result, indent=2))

    types = result.get("__schema", {}).get("types") or []
    click.echo(f"Done! Wrote {len(types)} types to {output_path}")


if __name__ == "__main__":
    main()
