"""Introspection parser.

Turns an introspection result (as returned for ``INTROSPECTION_QUERY``) or
an SDL schema file into an IRSchema. SDL is run through graphql-core so both
inputs go through the same introspection-shaped path.
"""

import json
import os
from typing import Any

from graphql import build_schema, introspection_from_schema

from ..logging import get_logger
from .errors import SchemaError
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

logger = get_logger(__name__)

SDL_SUFFIXES = (".graphql", ".graphqls")


class SchemaParser:
    """Parses introspection results into IR."""

    def __init__(self, introspection: dict[str, Any]):
        """Initialize a parser with an introspection result.

        Both the raw endpoint response (``{"data": {"__schema": ...}}``) and the
        bare ``{"__schema": ...}`` form are accepted.
        """
        self.raw_schema = self._extract_schema(introspection)
        self.ir = IRSchema()

    @classmethod
    def from_introspection(cls, introspection: dict[str, Any]) -> IRSchema:
        """Parse an introspection result and return the IR."""
        return cls(introspection).parse()

    @classmethod
    def from_sdl(cls, sdl: str) -> IRSchema:
        """Build an executable schema from SDL and parse its introspection."""
        try:
            schema = build_schema(sdl)
        except Exception as e:
            raise SchemaError(f"Invalid SDL: {e}") from e
        return cls(introspection_from_schema(schema)).parse()

    @classmethod
    def from_file(cls, path: str) -> IRSchema:
        """Load a .json introspection result or a .graphql/.graphqls SDL file."""
        if not os.path.isfile(path):
            raise SchemaError(f"Schema file not found: {path}")
        with open(path) as f:
            content = f.read()
        if path.endswith(SDL_SUFFIXES):
            return cls.from_sdl(content)
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise SchemaError(f"Error parsing {os.path.basename(path)}: {e}") from e
        return cls.from_introspection(data)

    @staticmethod
    def _extract_schema(introspection: dict[str, Any]) -> dict[str, Any]:
        if not isinstance(introspection, dict):
            raise SchemaError("Introspection result must be a JSON object")
        if "data" in introspection and isinstance(introspection["data"], dict):
            introspection = introspection["data"]
        schema = introspection.get("__schema")
        if not isinstance(schema, dict):
            raise SchemaError("Introspection result has no __schema")
        return schema

    def parse(self) -> IRSchema:
        """Parse the raw schema and return the complete IR."""
        self.ir.query_type = self._root_name("queryType")
        self.ir.mutation_type = self._root_name("mutationType")
        self.ir.subscription_type = self._root_name("subscriptionType")

        for raw_type in self.raw_schema.get("types") or []:
            name = raw_type.get("name")
            if not name:
                continue
            self.ir.types[name] = self._process_type(raw_type)

        logger.debug(
            "Parsed schema with %d types (query=%s, mutation=%s)",
            len(self.ir.types), self.ir.query_type, self.ir.mutation_type,
        )
        return self.ir

    def _root_name(self, key: str) -> str | None:
        root = self.raw_schema.get(key)
        return root.get("name") if root else None

    def _process_type(self, raw: dict[str, Any]) -> IRType:
        fields = None
        if raw.get("fields") is not None:
            fields = [self._process_field(f) for f in raw["fields"]]

        input_fields = None
        if raw.get("inputFields") is not None:
            input_fields = [self._process_input_value(v) for v in raw["inputFields"]]

        enum_values = None
        if raw.get("enumValues") is not None:
            enum_values = [
                IREnumValue(
                    name=v["name"],
                    description=v.get("description"),
                    is_deprecated=bool(v.get("isDeprecated")),
                )
                for v in raw["enumValues"]
            ]

        return IRType(
            kind=raw["kind"],
            name=raw["name"],
            description=raw.get("description"),
            fields=fields,
            input_fields=input_fields,
            interfaces=[i["name"] for i in raw.get("interfaces") or [] if i.get("name")],
            enum_values=enum_values,
            possible_types=[p["name"] for p in raw.get("possibleTypes") or [] if p.get("name")],
        )

    def _process_field(self, raw: dict[str, Any]) -> IRField:
        return IRField(
            name=raw["name"],
            type=self.parse_type_ref(raw.get("type")),
            args=[self._process_input_value(a) for a in raw.get("args") or []],
            description=raw.get("description"),
            is_deprecated=bool(raw.get("isDeprecated")),
            deprecation_reason=raw.get("deprecationReason"),
        )

    def _process_input_value(self, raw: dict[str, Any]) -> IRInputValue:
        return IRInputValue(
            name=raw["name"],
            type=self.parse_type_ref(raw.get("type")),
            default_value=raw.get("defaultValue"),
            description=raw.get("description"),
        )

    @staticmethod
    def parse_type_ref(raw: dict[str, Any] | None) -> TypeRef | None:
        """Convert a nested ``{kind, name, ofType}`` dict into a TypeRef.

        Wrappers whose ``ofType`` was cut off by the query depth keep
        ``of_type=None``.
        """
        if raw is None:
            return None
        kind = raw.get("kind")
        if kind == "NON_NULL":
            return NonNullTypeRef(SchemaParser.parse_type_ref(raw.get("ofType")))
        if kind == "LIST":
            return ListTypeRef(SchemaParser.parse_type_ref(raw.get("ofType")))
        if not raw.get("name"):
            raise SchemaError(f"Named type reference without a name (kind={kind})")
        return NamedTypeRef(name=raw["name"], kind=kind)
