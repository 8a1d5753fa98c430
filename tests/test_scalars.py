"""Tests for scalar literal handlers."""

import random
import re

from tap_explorer.core.scalars import (
    BooleanHandler,
    DateHandler,
    DateTimeHandler,
    FloatHandler,
    IntHandler,
    ScalarHandler,
    ScalarRegistry,
    StringHandler,
    UUIDHandler,
)

from .conftest import FixedRandom


class TestStringHandler:
    """Tests for StringHandler."""

    def test_inline(self):
        assert StringHandler().inline(random.Random(1)) == '"example"'

    def test_default(self):
        assert StringHandler().default() == '"example"'


class TestIntHandler:
    """Tests for IntHandler."""

    def test_inline_range(self):
        handler = IntHandler()
        rng = random.Random(5)
        for _ in range(100):
            assert 0 <= int(handler.inline(rng)) <= 999

    def test_default(self):
        assert IntHandler().default() == "42"


class TestFloatHandler:
    """Tests for FloatHandler."""

    def test_inline_two_decimals(self):
        assert FloatHandler().inline(FixedRandom(0.5)) == "50.00"

    def test_inline_format(self):
        rng = random.Random(2)
        for _ in range(20):
            assert re.fullmatch(r"\d+\.\d{2}", FloatHandler().inline(rng))

    def test_default(self):
        assert FloatHandler().default() == "3.14"


class TestBooleanHandler:
    """Tests for BooleanHandler."""

    def test_inline(self):
        handler = BooleanHandler()
        assert handler.inline(FixedRandom(0.9)) == "true"
        assert handler.inline(FixedRandom(0.1)) == "false"

    def test_default(self):
        assert BooleanHandler().default() == "true"


class TestDateHandlers:
    """Tests for DateTimeHandler and DateHandler."""

    def test_datetime_inline_is_quoted_iso(self):
        literal = DateTimeHandler().inline(random.Random(3))
        assert re.fullmatch(r'"2024-01-\d{2}T10:30:00Z"', literal)

    def test_datetime_default(self):
        assert DateTimeHandler().default() == '"2024-01-15T10:30:00Z"'

    def test_date_inline_is_quoted_iso(self):
        assert re.fullmatch(r'"2024-01-\d{2}"', DateHandler().inline(random.Random(3)))

    def test_date_default(self):
        assert DateHandler().default() == '"2024-01-15"'


class TestScalarRegistry:
    """Tests for ScalarRegistry."""

    def test_default_handlers_registered(self):
        registry = ScalarRegistry()
        for name in ("String", "ID", "Int", "Float", "Boolean", "DateTime", "Date", "UUID"):
            assert registry.has(name)

    def test_id_uses_string_literal(self):
        registry = ScalarRegistry()
        assert registry.get("ID").default() == '"example"'

    def test_get_nonexistent(self):
        registry = ScalarRegistry()
        assert registry.get("NonExistent") is None
        assert not registry.has("NonExistent")

    def test_register_custom(self):
        registry = ScalarRegistry()

        class MoneyHandler:
            def inline(self, rng):
                return f'"{rng.randint(1, 500)}.00"'

            def default(self):
                return '"10.00"'

        registry.register("Money", MoneyHandler())
        assert registry.has("Money")
        assert registry.get("Money").default() == '"10.00"'

    def test_override_builtin(self):
        registry = ScalarRegistry()

        class ZeroHandler:
            def inline(self, rng):
                return "0"

            def default(self):
                return "0"

        registry.register("Int", ZeroHandler())
        assert registry.get("Int").inline(random.Random()) == "0"


class TestScalarHandlerProtocol:
    """Tests for protocol compliance."""

    def test_builtin_handlers_are_scalar_handlers(self):
        for handler in (
            StringHandler(),
            IntHandler(),
            FloatHandler(),
            BooleanHandler(),
            DateTimeHandler(),
            DateHandler(),
            UUIDHandler(),
        ):
            assert isinstance(handler, ScalarHandler)
