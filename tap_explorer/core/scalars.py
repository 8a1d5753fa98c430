"""Scalar literal handlers for random query generation.

Maps GraphQL scalar names to the GraphQL literals the generator writes when
an argument is inlined or a variable gets a default value.

Example usage:
    from tap_explorer.core.scalars import ScalarRegistry

    registry = ScalarRegistry()

    class MoneyHandler:
        def inline(self, rng):
            return f'"{rng.randint(1, 500)}.00"'

        def default(self):
            return '"10.00"'

    registry.register("Money", MoneyHandler())
"""

import random
from typing import Protocol, runtime_checkable


@runtime_checkable
class ScalarHandler(Protocol):
    """Protocol for scalar literal handlers."""

    def inline(self, rng: random.Random) -> str:
        """Return a GraphQL literal to inline as an argument value."""
        ...

    def default(self) -> str | None:
        """Return a GraphQL literal for a variable default, or None."""
        ...


class StringHandler:
    """Handler for String and ID: a fixed placeholder string."""

    placeholder = '"example"'

    def inline(self, rng: random.Random) -> str:
        return self.placeholder

    def default(self) -> str | None:
        return self.placeholder


class IntHandler:
    """Handler for Int: random 0-999 inline, 42 as default."""

    def inline(self, rng: random.Random) -> str:
        return str(rng.randint(0, 999))

    def default(self) -> str | None:
        return "42"


class FloatHandler:
    """Handler for Float: random two-decimal value inline, 3.14 as default."""

    def inline(self, rng: random.Random) -> str:
        return f"{rng.random() * 100:.2f}"

    def default(self) -> str | None:
        return "3.14"


class BooleanHandler:
    def inline(self, rng: random.Random) -> str:
        return "true" if rng.random() > 0.5 else "false"

    def default(self) -> str | None:
        return "true"


class DateTimeHandler:
    """Handler for DateTime scalars using ISO 8601 format."""

    def inline(self, rng: random.Random) -> str:
        return f'"2024-01-{rng.randint(1, 28):02d}T10:30:00Z"'

    def default(self) -> str | None:
        return '"2024-01-15T10:30:00Z"'


class DateHandler:
    """Handler for Date scalars using ISO 8601 date format."""

    def inline(self, rng: random.Random) -> str:
        return f'"2024-01-{rng.randint(1, 28):02d}"'

    def default(self) -> str | None:
        return '"2024-01-15"'


class UUIDHandler:
    def inline(self, rng: random.Random) -> str:
        return self.default()

    def default(self) -> str | None:
        return '"00000000-0000-0000-0000-000000000000"'


class ScalarRegistry:
    """Registry for scalar literal handlers.

    Example:
        registry = ScalarRegistry()
        handler = registry.get("Int")
        if handler:
            literal = handler.inline(random.Random())
    """

    def __init__(self):
        self._handlers: dict[str, ScalarHandler] = {}
        self._register_defaults()

    def _register_defaults(self):
        """Register built-in default handlers."""
        self.register("String", StringHandler())
        self.register("ID", StringHandler())
        self.register("Int", IntHandler())
        self.register("Float", FloatHandler())
        self.register("Boolean", BooleanHandler())
        self.register("DateTime", DateTimeHandler())
        self.register("Date", DateHandler())
        self.register("UUID", UUIDHandler())

    def register(self, scalar_name: str, handler: ScalarHandler):
        """Register a handler for a scalar type."""
        self._handlers[scalar_name] = handler

    def get(self, scalar_name: str) -> ScalarHandler | None:
        """Get the handler for a scalar type, or None if not registered."""
        return self._handlers.get(scalar_name)

    def has(self, scalar_name: str) -> bool:
        """Check if a handler is registered for a scalar type."""
        return scalar_name in self._handlers
