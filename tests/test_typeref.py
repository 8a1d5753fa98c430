"""Tests for type reference helpers."""

import pytest

from tap_explorer.core.errors import SchemaError
from tap_explorer.core.ir import ListTypeRef, NamedTypeRef, NonNullTypeRef
from tap_explorer.core.typeref import LIST, NON_NULL, is_list, is_non_null, type_to_string, unwrap

STRING = NamedTypeRef(name="String", kind="SCALAR")
# [String!]!
STRING_LIST = NonNullTypeRef(ListTypeRef(NonNullTypeRef(STRING)))


class TestUnwrap:
    """Tests for unwrap()."""

    def test_named(self):
        result = unwrap(STRING)
        assert result.named == STRING
        assert result.wrappers == ()
        assert result.name == "String"

    def test_wrapped(self):
        result = unwrap(STRING_LIST)
        assert result.name == "String"
        assert result.wrappers == (NON_NULL, LIST, NON_NULL)
        assert result.is_resolved

    def test_truncated(self):
        result = unwrap(NonNullTypeRef(ListTypeRef(None)))
        assert not result.is_resolved
        assert result.name is None
        assert result.wrappers == (NON_NULL, LIST)

    def test_none(self):
        assert not unwrap(None).is_resolved


class TestPredicates:
    """Tests for is_non_null() and is_list()."""

    def test_is_non_null(self):
        assert is_non_null(STRING_LIST)
        assert not is_non_null(STRING)
        assert not is_non_null(ListTypeRef(STRING))

    def test_is_list(self):
        assert is_list(STRING_LIST)
        assert is_list(ListTypeRef(STRING))
        assert not is_list(NonNullTypeRef(STRING))


class TestTypeToString:
    """Tests for type_to_string()."""

    @pytest.mark.parametrize(
        "ref, expected",
        [
            (STRING, "String"),
            (NonNullTypeRef(STRING), "String!"),
            (ListTypeRef(STRING), "[String]"),
            (STRING_LIST, "[String!]!"),
            (ListTypeRef(ListTypeRef(NonNullTypeRef(STRING))), "[[String!]]"),
        ],
    )
    def test_render(self, ref, expected):
        assert type_to_string(ref) == expected

    def test_truncated_raises(self):
        with pytest.raises(SchemaError):
            type_to_string(NonNullTypeRef(ListTypeRef(None)))
