"""Shared fixtures for the tap-explorer test suite."""

import logging
import random
from datetime import UTC, datetime

import pytest
from graphql import build_client_schema, build_schema, introspection_from_schema, parse, validate

from tap_explorer.core.parser import SchemaParser
from tap_explorer.core.settings import get_settings

MISSIONARY_SDL = """
enum Status {
  ACTIVE
  INACTIVE
  RETIRED @deprecated(reason: "no longer used")
}

scalar DateTime

input MissionaryFilter {
  status: Status
  name: String
}

interface Node {
  id: ID!
}

type Missionary implements Node {
  id: ID!
  name: String
  status: Status
  assignedAt: DateTime
  companions(first: Int, status: Status): [Missionary!]!
  mission: Mission
  legacyCode: String @deprecated(reason: "gone")
}

type Mission implements Node {
  id: ID!
  name: String
  missionaries(first: Int, after: String): [Missionary]
  leader: Missionary
}

union SearchResult = Missionary | Mission

type Query {
  missionary(id: ID!): Missionary
  missionaries(filter: MissionaryFilter, first: Int, orderBy: Status): [Missionary!]!
  mission(id: ID!): Mission
  search(text: String!): [SearchResult]
  node(id: ID!): Node
  count: Int
  oldField: String @deprecated
}

type Mutation {
  updateMissionary(id: ID!, input: MissionaryFilter!): Missionary
  ping: Boolean
}
"""

SIMPLE_SDL = """
type Query {
  missionary(id: ID!): Missionary
}

type Missionary {
  id: ID
  name: String
}
"""

NOW = datetime(2024, 1, 15, 10, 30, 0, tzinfo=UTC)


class FixedRandom(random.Random):
    """Random source whose ``random()`` always returns the same value.

    0.99 takes every optional branch (include optional args, use variables,
    pick as many fields as allowed); 0.0 takes none of them.
    """

    def __init__(self, value: float = 0.99):
        self.value = value
        super().__init__(0)

    def random(self) -> float:
        return self.value


def introspect_sdl(sdl: str) -> dict:
    """Introspection result (``{"__schema": ...}``) for an SDL string."""
    return introspection_from_schema(build_schema(sdl))


def validation_errors(introspection: dict, document: str) -> list:
    """Validate a document against the schema described by ``introspection``."""
    schema = build_client_schema(introspection)
    return validate(schema, parse(document))


@pytest.fixture(autouse=True)
def clear_settings_cache(monkeypatch):
    """Isolate tests from TAP_* variables and the cached settings."""
    for key in ("TAP_LOG_LEVEL", "TAP_DEFAULT_PAGE_SIZE", "TAP_DEFAULT_ENVIRONMENT"):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def missionary_introspection():
    return introspect_sdl(MISSIONARY_SDL)


@pytest.fixture
def missionary_schema(missionary_introspection):
    return SchemaParser.from_introspection(missionary_introspection)


@pytest.fixture
def simple_introspection():
    return introspect_sdl(SIMPLE_SDL)


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo setup_logging() calls made by the CLI and logging tests."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("tap_explorer").setLevel(logging.NOTSET)
