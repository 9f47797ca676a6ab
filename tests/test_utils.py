#
# Showval - Utils Tests
#

# Standard library -----------------------------------------------------------------------------------------------------
import json
from collections import OrderedDict

# Third party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from showval.utils import class_name, fmt_type, fmt_value, func_name, is_anonymous


class Outer:
    class Inner:
        pass

    def method(self):
        pass


def top_level():
    pass


# Tests ----------------------------------------------------------------------------------------------------------------


class TestClassName:
    @pytest.mark.parametrize(
        "obj, expected",
        [
            pytest.param(int, "int", id="builtin-class"),
            pytest.param(10, "int", id="builtin-instance"),
            pytest.param("abc", "str", id="builtin-str"),
            pytest.param(None, "NoneType", id="none"),
        ],
    )
    def test_builtin_names(self, obj, expected):
        assert class_name(obj) == expected
        assert class_name(obj, fully_qualified=True) == expected

    def test_stdlib_class(self):
        assert class_name(OrderedDict(), fully_qualified=True) == "collections.OrderedDict"

    def test_nested_class_keeps_qualname(self):
        assert class_name(Outer.Inner) == "Outer.Inner"
        assert class_name(Outer.Inner(), fully_qualified=True) == f"{__name__}.Outer.Inner"

    def test_local_class_drops_function_scope(self):
        """Classes defined inside functions are named without the enclosing function."""

        class Custom:
            pass

        assert class_name(Custom) == "Custom"
        assert class_name(Custom(), fully_qualified=True) == f"{Custom.__module__}.Custom"


class TestFuncName:
    @pytest.mark.parametrize(
        "fn, expected",
        [
            pytest.param(len, "len", id="builtin"),
            pytest.param(top_level, f"{__name__}.top_level", id="function"),
            pytest.param(Outer.method, f"{__name__}.Outer.method", id="method"),
            pytest.param(json, "json", id="module"),
        ],
    )
    def test_names(self, fn, expected):
        assert func_name(fn) == expected

    def test_short(self):
        assert func_name(top_level, fully_qualified=False) == "top_level"

    def test_anonymous(self):
        def inner():
            pass

        assert is_anonymous(lambda: None)
        assert is_anonymous(inner)
        assert not is_anonymous(top_level)


class TestFmt:
    def test_fmt_type(self):
        assert fmt_type(42) == "<type: int>"
        assert fmt_type(OrderedDict) == "<type: collections.OrderedDict>"

    def test_fmt_value(self):
        assert fmt_value(42) == "<int: 42>"

    def test_fmt_value_broken_repr(self):
        class Broken:
            def __repr__(self):
                raise RuntimeError("nope")

        assert fmt_value(Broken()) == "<Broken: Broken object (repr failed: RuntimeError)>"
