"""
Showval utilities shared across the package.

Contains naming helpers used by multiple modules to avoid circular imports.
"""

# Standard library -----------------------------------------------------------------------------------------------------
from typing import Any


# Methods --------------------------------------------------------------------------------------------------------------


def class_name(obj: Any, fully_qualified: bool = False) -> str:
    """
    Name the type of a value as it appears in rendered output.

    Accepts an instance or a class: `class_name(10)` and `class_name(int)` both give 'int'.
    Builtin types are never module-qualified. Nested classes keep their dotted path
    ('Outer.Inner') and the enclosing function scope of local classes is dropped.

    Args:
        obj: An instance or a class.
        fully_qualified: Prefix non-builtin names with their module, e.g. 'collections.OrderedDict'.
    """
    cls = obj if isinstance(obj, type) else type(obj)

    name = getattr(cls, "__qualname__", None) or getattr(cls, "__name__", None) or repr(cls)
    if "<locals>." in name:
        name = name.rpartition("<locals>.")[2]
    module = getattr(cls, "__module__", None)

    if fully_qualified and module and module != "builtins":
        return f"{module}.{name}"
    return name


def func_name(fn: Any, fully_qualified: bool = True) -> str:
    """
    Get the dotted name of a function, method, builtin or module.

    Falls back to the class name of `fn` when it carries no usable `__qualname__`.
    """
    if hasattr(fn, "__spec__") and isinstance(getattr(fn, "__name__", None), str) and not callable(fn):
        # Module objects
        return fn.__name__

    name = getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None)
    if not isinstance(name, str):
        return class_name(fn, fully_qualified=fully_qualified)

    module = getattr(fn, "__module__", None)
    if fully_qualified and isinstance(module, str) and module != "builtins":
        return f"{module}.{name}"
    return name


def is_anonymous(fn: Any) -> bool:
    """True for lambdas and functions defined inside other functions."""
    name = getattr(fn, "__qualname__", "") or ""
    return "<lambda>" in name or "<locals>" in name


def fmt_type(obj: Any) -> str:
    """
    Format type information for exception messages.

    Examples:
        >>> fmt_type(42)
        '<type: int>'
        >>> fmt_type(int)
        '<type: int>'
    """
    return f"<type: {class_name(obj, fully_qualified=True)}>"


def fmt_value(x: Any) -> str:
    """
    Format a single value as a type-value pair for exception messages.

    Broken __repr__ methods are handled gracefully with a fallback.

    Examples:
        >>> fmt_value(42)
        '<int: 42>'
    """
    t = class_name(x)
    try:
        r = repr(x)
    except Exception as e:
        r = f"{t} object (repr failed: {type(e).__name__})"
    return f"<{t}: {r}>"
