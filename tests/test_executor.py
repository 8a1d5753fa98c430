"""Tests for the GraphQL executor."""

import json

import httpx
import pytest
from pydantic import BaseModel

from tap_explorer.core.auth import BearerAuth, NoAuth
from tap_explorer.core.errors import (
    InvalidJSONResponseError,
    InvalidRequestError,
    UpstreamConnectionError,
    UpstreamHTTPError,
    UpstreamTimeoutError,
)
from tap_explorer.core.executor import GraphQLError, GraphQLExecutor
from tap_explorer.core.introspection import INTROSPECTION_QUERY

URL = "https://mis-gql-dev.aws.churchofjesuschrist.org/graphql"


def executor_for(handler, requests=None, auth=None) -> GraphQLExecutor:
    def record(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return handler(request)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(record))
    return GraphQLExecutor(URL, auth or BearerAuth("tok"), http_client=http_client)


class MissionaryInput(BaseModel):
    name: str
    status: str | None = None


class TestExecute:
    """Tests for GraphQLExecutor.execute()."""

    @pytest.mark.asyncio
    async def test_posts_query_and_variables(self):
        requests = []
        executor = executor_for(lambda r: httpx.Response(200, json={"data": {"ping": True}}), requests)

        result = await executor.execute("query Ping { ping }", {"id": "1", "unused": None})

        assert result == {"data": {"ping": True}}
        request = requests[0]
        assert request.method == "POST"
        assert str(request.url) == URL
        assert request.headers["Authorization"] == "Bearer tok"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"query": "query Ping { ping }", "variables": {"id": "1"}}

    @pytest.mark.asyncio
    async def test_errors_are_relayed(self):
        body = {"data": None, "errors": [{"message": "Cannot query field 'nope'"}]}
        executor = executor_for(lambda r: httpx.Response(200, json=body))

        assert await executor.execute("{ nope }") == body

    @pytest.mark.asyncio
    async def test_no_auth(self):
        requests = []
        executor = executor_for(lambda r: httpx.Response(200, json={"data": {}}), requests, NoAuth())

        await executor.execute("{ ping }")
        assert "Authorization" not in requests[0].headers

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   "])
    async def test_blank_query(self, query):
        requests = []
        executor = executor_for(lambda r: httpx.Response(200, json={}), requests)

        with pytest.raises(InvalidRequestError, match="Missing query parameter"):
            await executor.execute(query)
        assert requests == []

    @pytest.mark.asyncio
    async def test_http_error(self):
        executor = executor_for(lambda r: httpx.Response(500, text="boom"))

        with pytest.raises(UpstreamHTTPError) as exc:
            await executor.execute("{ ping }")

        assert exc.value.status_code == 500
        assert exc.value.details == {"message": "boom"}
        assert str(exc.value) == "GraphQL request failed: 500 Internal Server Error"

    @pytest.mark.asyncio
    async def test_http_error_with_json_body(self):
        body = {"errors": [{"message": "Unauthorized"}]}
        executor = executor_for(lambda r: httpx.Response(401, json=body))

        with pytest.raises(UpstreamHTTPError) as exc:
            await executor.execute("{ ping }")

        assert exc.value.status_code == 401
        assert exc.value.to_dict()["details"] == body

    @pytest.mark.asyncio
    async def test_connection_failure(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamConnectionError) as exc:
            await executor_for(refuse).execute("{ ping }")

        assert exc.value.status_code == 502
        assert exc.value.to_dict() == {
            "error": f"Could not reach {URL}",
            "details": "connection refused",
            "query": URL,
        }

    @pytest.mark.asyncio
    async def test_timeout(self):
        def stall(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(UpstreamTimeoutError) as exc:
            await executor_for(stall).execute("{ ping }")
        assert exc.value.status_code == 504

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        executor = executor_for(lambda r: httpx.Response(200, text="not json"))

        with pytest.raises(InvalidJSONResponseError):
            await executor.execute("{ ping }")

    @pytest.mark.asyncio
    async def test_non_object_json(self):
        executor = executor_for(lambda r: httpx.Response(200, json=[1, 2]))

        with pytest.raises(InvalidJSONResponseError):
            await executor.execute("{ ping }")


class TestExecuteData:
    """Tests for GraphQLExecutor.execute_data()."""

    @pytest.mark.asyncio
    async def test_returns_data(self):
        executor = executor_for(lambda r: httpx.Response(200, json={"data": {"ping": True}}))
        assert await executor.execute_data("{ ping }") == {"ping": True}

    @pytest.mark.asyncio
    async def test_missing_data(self):
        executor = executor_for(lambda r: httpx.Response(200, json={}))
        assert await executor.execute_data("{ ping }") == {}

    @pytest.mark.asyncio
    async def test_graphql_errors_raise(self):
        errors = [{"message": "first"}, {"message": "second"}]
        executor = executor_for(lambda r: httpx.Response(200, json={"errors": errors}))

        with pytest.raises(GraphQLError) as exc:
            await executor.execute_data("{ ping }")

        assert exc.value.errors == errors
        assert exc.value.status_code == 502
        assert str(exc.value) == "GraphQL errors: first; second"


class TestIntrospection:
    """Tests for schema introspection."""

    @pytest.mark.asyncio
    async def test_introspect(self, missionary_introspection):
        requests = []
        executor = executor_for(
            lambda r: httpx.Response(200, json={"data": missionary_introspection}),
            requests,
        )

        schema = await executor.introspect()

        assert json.loads(requests[0].content)["query"] == INTROSPECTION_QUERY
        assert schema.query_type == "Query"
        assert schema.get_type("Missionary") is not None


class TestSerializeVariables:
    """Tests for variable serialization."""

    def test_pydantic_models(self):
        executor = GraphQLExecutor(URL, NoAuth())
        result = executor._serialize_variables(
            {
                "input": MissionaryInput(name="Elder Smith"),
                "inputs": [MissionaryInput(name="A", status="ACTIVE"), "raw"],
                "skip": None,
                "first": 10,
            }
        )
        assert result == {
            "input": {"name": "Elder Smith"},
            "inputs": [{"name": "A", "status": "ACTIVE"}, "raw"],
            "first": 10,
        }
