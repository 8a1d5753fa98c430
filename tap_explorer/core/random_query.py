"""Random GraphQL operation generator.

Synthesizes syntactically valid queries and mutations from an introspected
schema by walking field type references, so a tester can fire varied
operations at an endpoint without writing them by hand.
"""

import random
import re
from dataclasses import dataclass, field
from typing import Any

from ..logging import get_logger
from .errors import GenerationError
from .ir import BUILTIN_SCALARS, IRField, IRInputValue, IRSchema, IRType
from .parser import SchemaParser
from .scalars import ScalarRegistry
from .typeref import Unwrapped, is_non_null, type_to_string, unwrap

logger = get_logger(__name__)

OPERATION_TYPES = ("query", "mutation")


def to_snake_case(name: str) -> str:
    """Convert camelCase to snake_case."""
    s1 = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', name)
    return re.sub('([a-z0-9])([A-Z])', r'\1_\2', s1).lower()


def capitalize(name: str) -> str:
    return name[:1].upper() + name[1:]


@dataclass
class VariableDefinition:
    """A variable collected while generating one document."""
    name: str
    type: str
    default_value: str | None = None

    def render(self) -> str:
        """Render as ``$name: Type = default``."""
        rendered = f"${self.name}: {self.type}"
        if self.default_value is not None:
            rendered += f" = {self.default_value}"
        return rendered


@dataclass
class GeneratedOperation:
    """A generated GraphQL document and the metadata used to build it."""
    document: str
    operation_type: str
    name: str
    root_fields: list[str] = field(default_factory=list)
    variables: dict[str, VariableDefinition] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.document


class RandomQueryGenerator:
    """Generates random queries and mutations from an introspected schema.

    Args:
        schema: An IRSchema or a raw introspection result
        max_depth: Deepest field level below a root field (root fields are level 0)
        max_fields: Upper bound of fields picked per selection set
        rng: Random source (inject a seeded ``random.Random`` for repeatable output)
        namespace_variables: Prefix variable names with their parent field name
            so same-named arguments at different levels do not collide
        scalars: Registry of scalar literal handlers

    Example:
        generator = RandomQueryGenerator(schema, rng=random.Random(7))
        print(generator.generate_random_query())
    """

    INDENT = "  "
    # Probability that an optional argument is included
    OPTIONAL_ARG_PROBABILITY = 0.5
    # Probability that a literal-capable argument is inlined rather than a variable
    INLINE_PROBABILITY = 0.3

    def __init__(
        self,
        schema: IRSchema | dict[str, Any],
        max_depth: int = 3,
        max_fields: int = 5,
        rng: random.Random | None = None,
        *,
        namespace_variables: bool = False,
        scalars: ScalarRegistry | None = None,
    ):
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        if max_fields < 1:
            raise ValueError("max_fields must be at least 1")
        if isinstance(schema, dict):
            schema = SchemaParser.from_introspection(schema)
        self.schema = schema
        self.max_depth = max_depth
        self.max_fields = max_fields
        self.rng = rng or random.Random()
        self.namespace_variables = namespace_variables
        self.scalars = scalars or ScalarRegistry()

    def generate_random_query(self) -> GeneratedOperation:
        """Generate a query selecting 1-3 random root fields."""
        return self.generate("query")

    def generate_random_mutation(self) -> GeneratedOperation:
        """Generate a mutation invoking exactly one random root field."""
        return self.generate("mutation")

    def generate(self, operation: str = "query") -> GeneratedOperation:
        """Generate a random operation of the given type.

        Raises:
            GenerationError: If the schema has no root type for the operation
                or the root type has no eligible fields
        """
        if operation not in OPERATION_TYPES:
            raise ValueError(f"Unsupported operation type: {operation}")

        root = self.schema.root_type(operation)
        if root is None or root.fields is None:
            raise GenerationError(f"No {operation} type found in schema")

        available = self._eligible_fields(root)
        if not available:
            raise GenerationError(f"No available {operation} fields found")

        if operation == "mutation":
            count = 1
        else:
            count = min(int(self.rng.random() * 3) + 1, len(available))
        selected = self._pick(available, count)

        variables: dict[str, VariableDefinition] = {}
        body: list[str] = []
        for root_field in selected:
            body.extend(self._render_field(root_field, 0, variables))

        name = self._operation_name(operation, selected)
        header = f"{operation} {name}"
        if variables:
            header += f"({', '.join(v.render() for v in variables.values())})"
        document = header + " {\n" + "\n".join(body) + "\n}"

        logger.debug("Generated %s %s with %d variables", operation, name, len(variables))
        return GeneratedOperation(
            document=document,
            operation_type=operation,
            name=name,
            root_fields=[f.name for f in selected],
            variables=variables,
        )

    def _render_field(
        self,
        ir_field: IRField,
        level: int,
        variables: dict[str, VariableDefinition],
    ) -> list[str]:
        """Render a field (and its selection set) as indented lines."""
        indent = self.INDENT * (level + 1)
        head = ir_field.name

        args = self._render_arguments(ir_field, variables)
        if args:
            head += f"({', '.join(args)})"

        selection = self._render_selection(ir_field, level, variables)
        if selection is None:
            return [f"{indent}{head}"]
        return [f"{indent}{head} {{", *selection, f"{indent}}}"]

    def _render_selection(
        self,
        ir_field: IRField,
        level: int,
        variables: dict[str, VariableDefinition],
    ) -> list[str] | None:
        """Build the selection set lines for a composite field, or None for a leaf."""
        name = unwrap(ir_field.type).name
        ir_type = self.schema.get_type(name) if name else None
        if ir_type is None or not ir_type.is_composite:
            return None

        child_level = level + 1
        child_indent = self.INDENT * (child_level + 1)
        if ir_type.kind == "UNION":
            return [f"{child_indent}__typename"]

        eligible = self._eligible_fields(ir_type)
        if not eligible:
            # All fields are deprecated or internal; emitted as a leaf
            return None

        if child_level >= self.max_depth:
            eligible = [f for f in eligible if self._is_leaf_field(f)]
            if not eligible:
                return [f"{child_indent}__typename"]

        count = min(int(self.rng.random() * self.max_fields) + 1, len(eligible))
        lines: list[str] = []
        for child in self._pick(eligible, count):
            lines.extend(self._render_field(child, child_level, variables))
        return lines

    def _render_arguments(
        self,
        ir_field: IRField,
        variables: dict[str, VariableDefinition],
    ) -> list[str]:
        """Render ``name: value`` pairs for required and randomly chosen optional args."""
        rendered = []
        for arg in ir_field.args:
            unwrapped = unwrap(arg.type)
            if not unwrapped.is_resolved:
                continue
            required = is_non_null(arg.type)
            if not required and self.rng.random() <= self.OPTIONAL_ARG_PROBABILITY:
                continue
            value = self._argument_value(ir_field, arg, unwrapped, variables)
            rendered.append(f"{arg.name}: {value}")
        return rendered

    def _argument_value(
        self,
        ir_field: IRField,
        arg: IRInputValue,
        unwrapped: Unwrapped,
        variables: dict[str, VariableDefinition],
    ) -> str:
        base = unwrapped.name
        if self._can_inline(base) and self.rng.random() <= self.INLINE_PROBABILITY:
            return self._inline_literal(base)

        var_name = self._variable_name(ir_field, arg)
        default = None if is_non_null(arg.type) else self._default_literal(base)
        # Same-named variables overwrite each other unless namespace_variables is set
        variables[var_name] = VariableDefinition(
            name=var_name,
            type=type_to_string(arg.type),
            default_value=default,
        )
        return f"${var_name}"

    def _can_inline(self, type_name: str) -> bool:
        return self.scalars.has(type_name) or bool(self._enum_choices(type_name))

    def _inline_literal(self, type_name: str) -> str:
        handler = self.scalars.get(type_name)
        if handler is not None:
            return handler.inline(self.rng)
        return self.rng.choice(self._enum_choices(type_name))

    def _default_literal(self, type_name: str) -> str | None:
        handler = self.scalars.get(type_name)
        if handler is not None:
            return handler.default()
        choices = self._enum_choices(type_name)
        if choices:
            return self.rng.choice(choices)
        return None

    def _enum_choices(self, type_name: str) -> list[str]:
        values = self.schema.enum_values(type_name)
        active = [v.name for v in values if not v.is_deprecated]
        return active or [v.name for v in values]

    def _variable_name(self, ir_field: IRField, arg: IRInputValue) -> str:
        name = to_snake_case(arg.name)
        if self.namespace_variables:
            name = f"{to_snake_case(ir_field.name)}_{name}"
        return name

    def _eligible_fields(self, ir_type: IRType) -> list[IRField]:
        """Fields that are not introspection/deprecated and whose types resolve."""
        eligible = []
        for ir_field in ir_type.fields or []:
            if ir_field.is_introspection or ir_field.is_deprecated:
                continue
            if not unwrap(ir_field.type).is_resolved:
                continue
            if any(
                is_non_null(arg.type) and not unwrap(arg.type).is_resolved
                for arg in ir_field.args
            ):
                continue
            eligible.append(ir_field)
        return eligible

    def _is_leaf_field(self, ir_field: IRField) -> bool:
        name = unwrap(ir_field.type).name
        ir_type = self.schema.get_type(name)
        if ir_type is None:
            return name in BUILTIN_SCALARS
        return ir_type.is_leaf

    def _pick(self, fields: list[IRField], count: int) -> list[IRField]:
        """Pick ``count`` random fields, keeping their schema order."""
        chosen = self.rng.sample(range(len(fields)), count)
        return [fields[i] for i in sorted(chosen)]

    @staticmethod
    def _operation_name(operation: str, fields: list[IRField]) -> str:
        if operation == "mutation":
            return f"Execute{capitalize(fields[0].name)}"
        if len(fields) == 1:
            return f"Get{capitalize(fields[0].name)}"
        return f"GetMultiple{len(fields)}Fields"
