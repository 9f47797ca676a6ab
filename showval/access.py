"""
Privileged field access for record-like objects.

Records are objects that carry named fields: dataclass instances, namedtuples, and
non-builtin objects with an instance `__dict__` and/or `__slots__`. Fields are read
through `object.__getattribute__` and the raw instance dict, so private names,
`repr=False` dataclass fields and classes overriding `__getattr__`/`__getattribute__`
are all shown with their true values. Properties are never evaluated.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import dataclasses
from typing import Any

# Local ----------------------------------------------------------------------------------------------------------------
from .utils import fmt_type, fmt_value


# Classes --------------------------------------------------------------------------------------------------------------

class _Missing:
    """Marks a declared field that holds no value, e.g. an unset slot."""
    __slots__ = ()

    def __repr__(self) -> str:
        return "<MISSING>"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

_SKIP_SLOTS = frozenset({"__dict__", "__weakref__"})


# Methods --------------------------------------------------------------------------------------------------------------

def is_namedtuple(obj: Any) -> bool:
    """True for instances of classes built by collections.namedtuple or typing.NamedTuple."""
    return isinstance(obj, tuple) and isinstance(getattr(type(obj), "_fields", None), tuple)


def is_record(obj: Any) -> bool:
    """
    Check whether an object exposes named fields the walker can read.

    Classes themselves and builtin instances are never records.
    """
    if isinstance(obj, type):
        return False
    if dataclasses.is_dataclass(obj) or is_namedtuple(obj):
        return True

    cls = type(obj)
    if cls.__module__ == "builtins":
        return False
    return _has_instance_dict(obj) or bool(_slot_names(cls))


def record_fields(obj: Any) -> list[str]:
    """
    List field names of a record in declaration order.

    Order:
        - dataclasses: declared fields (ClassVar and InitVar excluded)
        - namedtuples: `_fields`
        - other objects: slots base class first, then instance dict keys in insertion order

    Raises:
        TypeError: If obj is not a record.
    """
    if not is_record(obj):
        raise TypeError(f"record object expected, but got {fmt_type(obj)}")

    if dataclasses.is_dataclass(obj):
        return [f.name for f in dataclasses.fields(obj)]
    if is_namedtuple(obj):
        return list(type(obj)._fields)

    names = _slot_names(type(obj))
    if _has_instance_dict(obj):
        seen = set(names)
        names += [k for k in object.__getattribute__(obj, "__dict__") if isinstance(k, str) and k not in seen]
    return names


def read_field(obj: Any, name: str) -> Any:
    """
    Read a field bypassing custom attribute hooks.

    Returns:
        The field value, or MISSING when the field holds no value.
    """
    if _has_instance_dict(obj):
        inst_dict = object.__getattribute__(obj, "__dict__")
        if name in inst_dict:
            return inst_dict[name]
    try:
        return object.__getattribute__(obj, name)
    except AttributeError:
        return MISSING


def get_private_field(obj: Any, index: int) -> Any:
    """
    Read the field at a position of `record_fields(obj)`, private or not.

    Raises:
        TypeError: If obj is not a record or index is not an int.
        IndexError: If index is out of range.
        AttributeError: If the field holds no value.
    """
    if isinstance(index, bool) or not isinstance(index, int):
        raise TypeError(f"field index must be an int, but got {fmt_type(index)}")

    names = record_fields(obj)
    if not -len(names) <= index < len(names):
        raise IndexError(f"field index {index} out of range for {fmt_type(obj)} with {len(names)} fields")

    return _value_or_raise(obj, names[index])


def get_private_field_by_name(obj: Any, name: str) -> Any:
    """
    Read a named field of a record, private or not.

    Raises:
        TypeError: If obj is not a record.
        AttributeError: If the record has no such field or the field holds no value.
    """
    names = record_fields(obj)
    if name not in names:
        raise AttributeError(f"{fmt_type(obj)} has no field {fmt_value(name)}")
    return _value_or_raise(obj, name)


def _value_or_raise(obj: Any, name: str) -> Any:
    value = read_field(obj, name)
    if value is MISSING:
        raise AttributeError(f"field {fmt_value(name)} of {fmt_type(obj)} holds no value")
    return value


def _has_instance_dict(obj: Any) -> bool:
    try:
        return isinstance(object.__getattribute__(obj, "__dict__"), dict)
    except AttributeError:
        return False


def _slot_names(cls: type) -> list[str]:
    """Slot attribute names across the MRO, base classes first, private names mangled."""
    names: list[str] = []
    for klass in reversed(cls.__mro__):
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for slot in slots:
            if slot in _SKIP_SLOTS:
                continue
            if slot.startswith("__") and not slot.endswith("__"):
                slot = f"_{klass.__name__.lstrip('_')}{slot}"
            if slot not in names:
                names.append(slot)
    return names
