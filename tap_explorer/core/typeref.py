"""Helpers for unwrapping and re-wrapping GraphQL type references."""

from dataclasses import dataclass

from .errors import SchemaError
from .ir import ListTypeRef, NamedTypeRef, NonNullTypeRef, TypeRef

NON_NULL = "NON_NULL"
LIST = "LIST"


@dataclass(frozen=True)
class Unwrapped:
    """Result of unwrapping a type reference.

    ``named`` is the base named type, or None if the chain was truncated.
    ``wrappers`` lists the wrapper kinds from the outside in, e.g.
    ``("NON_NULL", "LIST", "NON_NULL")`` for ``[String!]!``.
    """
    named: NamedTypeRef | None
    wrappers: tuple[str, ...] = ()

    @property
    def is_resolved(self) -> bool:
        return self.named is not None

    @property
    def name(self) -> str | None:
        return self.named.name if self.named else None


def unwrap(ref: TypeRef | None) -> Unwrapped:
    """Walk ``NON_NULL``/``LIST`` wrappers down to the base named type."""
    wrappers: list[str] = []
    while ref is not None:
        if isinstance(ref, NamedTypeRef):
            return Unwrapped(ref, tuple(wrappers))
        wrappers.append(NON_NULL if isinstance(ref, NonNullTypeRef) else LIST)
        ref = ref.of_type
    return Unwrapped(None, tuple(wrappers))


def is_non_null(ref: TypeRef) -> bool:
    return isinstance(ref, NonNullTypeRef)


def is_list(ref: TypeRef) -> bool:
    """True if the reference is a list, ignoring an outer non-null marker."""
    if isinstance(ref, NonNullTypeRef):
        ref = ref.of_type
    return isinstance(ref, ListTypeRef)


def type_to_string(ref: TypeRef | None) -> str:
    """Render a type reference in SDL notation, e.g. ``[ID!]!``."""
    if isinstance(ref, NamedTypeRef):
        return ref.name
    if isinstance(ref, NonNullTypeRef) and ref.of_type is not None:
        return f"{type_to_string(ref.of_type)}!"
    if isinstance(ref, ListTypeRef) and ref.of_type is not None:
        return f"[{type_to_string(ref.of_type)}]"
    raise SchemaError("Type reference is truncated; introspect with more ofType levels")
