#
# Showval - Access Tests
#

# Standard library -----------------------------------------------------------------------------------------------------
from collections import namedtuple
from dataclasses import dataclass, field
from typing import ClassVar

# Third party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from showval.access import (
    MISSING, get_private_field, get_private_field_by_name, is_namedtuple, is_record, read_field, record_fields,
)

Point = namedtuple("Point", "x y")


@dataclass
class Account:
    name: str
    _token: str = field(default="secret", repr=False)
    kind: ClassVar[str] = "user"


class Slotted:
    __slots__ = ("a", "__hidden")

    def __init__(self, a):
        self.a = a
        self.__hidden = "h"


class SlottedChild(Slotted):
    __slots__ = ("b",)

    def __init__(self, a, b):
        super().__init__(a)
        self.b = b


class Plain:
    def __init__(self):
        self.x = 1
        self._y = 2


class Guarded:
    """Blocks normal attribute access entirely."""

    def __init__(self):
        self.value = 42

    def __getattribute__(self, name):
        raise AttributeError(name)


class Unset:
    __slots__ = ("a", "b")

    def __init__(self):
        self.a = 1


# Tests ----------------------------------------------------------------------------------------------------------------

class TestIsRecord:
    @pytest.mark.parametrize(
        "obj, expected",
        [
            pytest.param(Account("a"), True, id="dataclass"),
            pytest.param(Point(1, 2), True, id="namedtuple"),
            pytest.param(Plain(), True, id="instance-dict"),
            pytest.param(Slotted(1), True, id="slots"),
            pytest.param(Account, False, id="class-object"),
            pytest.param(10, False, id="int"),
            pytest.param((1, 2), False, id="plain-tuple"),
            pytest.param({"a": 1}, False, id="dict"),
            pytest.param(object(), False, id="bare-object"),
        ],
    )
    def test_classification(self, obj, expected):
        assert is_record(obj) is expected

    def test_is_namedtuple(self):
        assert is_namedtuple(Point(1, 2))
        assert not is_namedtuple((1, 2))


class TestRecordFields:
    def test_dataclass_excludes_classvar(self):
        assert record_fields(Account("a")) == ["name", "_token"]

    def test_namedtuple(self):
        assert record_fields(Point(1, 2)) == ["x", "y"]

    def test_slots_base_first_with_mangling(self):
        assert record_fields(SlottedChild(1, 2)) == ["a", "_Slotted__hidden", "b"]

    def test_instance_dict_order(self):
        assert record_fields(Plain()) == ["x", "_y"]

    def test_non_record_raises(self):
        with pytest.raises(TypeError, match="record object expected"):
            record_fields(1)


class TestReadField:
    def test_bypasses_getattribute(self):
        assert read_field(Guarded(), "value") == 42

    def test_unset_slot_is_missing(self):
        assert read_field(Unset(), "b") is MISSING
        assert not MISSING

    def test_mangled_slot(self):
        assert read_field(Slotted(1), "_Slotted__hidden") == "h"


class TestGetPrivateField:
    def test_by_index(self):
        acc = Account("a", "t")
        assert get_private_field(acc, 0) == "a"
        assert get_private_field(acc, 1) == "t"
        assert get_private_field(acc, -1) == "t"

    def test_by_name(self):
        assert get_private_field_by_name(Account("a", "t"), "_token") == "t"
        assert get_private_field_by_name(Guarded(), "value") == 42

    @pytest.mark.parametrize(
        "obj, index, exc",
        [
            pytest.param(1, 0, TypeError, id="not-a-record"),
            pytest.param(Account("a"), "0", TypeError, id="str-index"),
            pytest.param(Account("a"), True, TypeError, id="bool-index"),
            pytest.param(Account("a"), 2, IndexError, id="out-of-range"),
            pytest.param(Account("a"), -3, IndexError, id="negative-out-of-range"),
            pytest.param(Unset(), 1, AttributeError, id="unset-slot"),
        ],
    )
    def test_index_errors(self, obj, index, exc):
        with pytest.raises(exc):
            get_private_field(obj, index)

    def test_by_name_errors(self):
        with pytest.raises(TypeError):
            get_private_field_by_name(1, "test")
        with pytest.raises(AttributeError, match="has no field"):
            get_private_field_by_name(Account("a"), "missing")
