"""Intermediate Representation (IR) for introspected GraphQL schemas.

This module defines dataclasses that mirror the shape of an introspection
result, with type references modelled as a tagged union instead of the
nested ``{"kind", "name", "ofType"}`` dictionaries the endpoint returns.
"""

from dataclasses import dataclass, field
from typing import Any, Union

# Kinds that carry a selection set
COMPOSITE_KINDS = frozenset({"OBJECT", "INTERFACE", "UNION"})
# Kinds that are selected as plain leaves
LEAF_KINDS = frozenset({"SCALAR", "ENUM"})

BUILTIN_SCALARS = frozenset({"String", "Int", "Float", "Boolean", "ID"})


@dataclass(frozen=True)
class NamedTypeRef:
    """A reference to a named type (scalar, enum, object, input, ...)."""
    name: str
    kind: str


@dataclass(frozen=True)
class ListTypeRef:
    """A ``[T]`` wrapper. ``of_type`` is None when the reference was truncated."""
    of_type: "TypeRef | None"


@dataclass(frozen=True)
class NonNullTypeRef:
    """A ``T!`` wrapper. ``of_type`` is None when the reference was truncated."""
    of_type: "TypeRef | None"


TypeRef = Union[NamedTypeRef, ListTypeRef, NonNullTypeRef]


@dataclass
class IRInputValue:
    """Represents a field argument or an input object field."""
    name: str
    type: TypeRef
    default_value: str | None = None
    description: str | None = None


@dataclass
class IRField:
    """Represents a field in an object or interface type."""
    name: str
    type: TypeRef
    args: list[IRInputValue] = field(default_factory=list)
    description: str | None = None
    is_deprecated: bool = False
    deprecation_reason: str | None = None

    @property
    def is_introspection(self) -> bool:
        return self.name.startswith("__")


@dataclass
class IREnumValue:
    """Represents a single value in a GraphQL enum."""
    name: str
    description: str | None = None
    is_deprecated: bool = False


@dataclass
class IRType:
    """Represents any named type from the introspection ``types`` array."""
    kind: str
    name: str
    description: str | None = None
    fields: list[IRField] | None = None
    input_fields: list[IRInputValue] | None = None
    interfaces: list[str] = field(default_factory=list)
    enum_values: list[IREnumValue] | None = None
    possible_types: list[str] = field(default_factory=list)

    @property
    def is_composite(self) -> bool:
        return self.kind in COMPOSITE_KINDS

    @property
    def is_leaf(self) -> bool:
        return self.kind in LEAF_KINDS


@dataclass
class IRSchema:
    """Complete intermediate representation of an introspected schema."""
    types: dict[str, IRType] = field(default_factory=dict)
    query_type: str | None = None
    mutation_type: str | None = None
    subscription_type: str | None = None

    def get_type(self, name: str) -> IRType | None:
        """Look up a type by name."""
        return self.types.get(name)

    def root_type(self, operation: str) -> IRType | None:
        """Return the root type for 'query', 'mutation' or 'subscription'."""
        root_names: dict[str, Any] = {
            "query": self.query_type,
            "mutation": self.mutation_type,
            "subscription": self.subscription_type,
        }
        if operation not in root_names:
            raise ValueError(f"Unknown operation type: {operation}")
        name = root_names[operation]
        return self.types.get(name) if name else None

    def enum_values(self, name: str) -> list[IREnumValue]:
        """Return the declared values of an enum, or an empty list."""
        ir_type = self.types.get(name)
        if ir_type is None or ir_type.kind != "ENUM":
            return []
        return list(ir_type.enum_values or [])
