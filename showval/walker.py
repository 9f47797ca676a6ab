"""
Value walker: turns any Python value into a flat list of tokens.

The walker descends depth-first through containers, records and references,
tracks the identity of every node on the current path to detect reference
cycles, and emits tokens whose open/close kinds are always balanced. Reading
a node never raises by default; unreadable parts degrade to placeholders.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import collections.abc as abc
import contextlib
import dataclasses
import functools
import inspect
import sys
import warnings
import weakref
from dataclasses import dataclass, field
from enum import Enum
from numbers import Real
from typing import Any, Callable, Dict, Iterable, Literal, Type

# Local ----------------------------------------------------------------------------------------------------------------
from .access import MISSING, is_namedtuple, is_record, read_field, record_fields
from .handlers import TypeHandler, default_type_handlers
from .token import Token, TokenKind
from .utils import class_name, fmt_type, fmt_value, func_name, is_anonymous

OnError = Literal["skip", "warn", "raise"]

VisitPath = tuple[Any, ...]

_SCALARS = (type(None), bool, int, float, complex, str, bytes, type(Ellipsis), type(NotImplemented))

_NO_STEP = object()

# Interpreter recursion limit while walking; each nesting level takes about 3 frames
RECURSION_LIMIT = 10_000


# Classes --------------------------------------------------------------------------------------------------------------

@dataclass
class TokenizeOptions:
    """
    Configuration of the value walker.

    Attributes:
        include_private: Show record fields whose names start with an underscore.
            Private fields are read with privileged access and shown with their
            true values. Default: True.
        sort_keys: Emit mapping keys and set elements in canonical order so output
            does not depend on insertion or hash order. Default: True.
        fully_qualified_names: Prefix non-builtin type names with their module,
            e.g. "collections.OrderedDict". Default: True.
        max_depth: Number of nesting levels to expand below the root; deeper values
            render as "...". None means unlimited. Default: None.
        on_error: What to do when reading part of a value raises:
            - "skip" (default): render an <unreadable: ExcType> placeholder
            - "warn": same as "skip" and emit a RuntimeWarning
            - "raise": re-raise the exception

    Type Handler System:
        Handlers render values with a well-known literal form (timestamps, durations,
        bytes, Decimal, UUID, ...). Lookup uses the exact type first, then the nearest
        registered ancestor in the MRO. Handlers receive (value, walker).

    Examples:
        >>> opts = TokenizeOptions(include_private=False)
        >>> opts = TokenizeOptions.debug_options().merge(max_depth=2)
        >>> opts.add_type_handler(MyType, lambda v, w: w.emit(TokenKind.CONST, "MY"))
    """
    include_private: bool = True
    sort_keys: bool = True
    fully_qualified_names: bool = True
    max_depth: int | None = None
    on_error: OnError = "skip"

    _type_handlers: Dict[Type, TypeHandler] = field(default_factory=default_type_handlers, repr=False)

    def __post_init__(self) -> None:
        """Validate option types and values."""
        for name in ("include_private", "sort_keys", "fully_qualified_names"):
            if not isinstance(getattr(self, name), bool):
                raise TypeError(f"TokenizeOptions.{name} must be a bool, but got {fmt_type(getattr(self, name))}")
        if self.max_depth is not None:
            if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int):
                raise TypeError(f"TokenizeOptions.max_depth must be an int or None, but got {fmt_type(self.max_depth)}")
            if self.max_depth < 0:
                raise ValueError(f"TokenizeOptions.max_depth must be >=0, but got {fmt_value(self.max_depth)}")
        if self.on_error not in ("skip", "warn", "raise"):
            raise ValueError(f"TokenizeOptions.on_error must be 'skip', 'warn' or 'raise', "
                             f"but got {fmt_value(self.on_error)}")

    # Class Methods ------------------------------------

    @classmethod
    def debug_options(cls) -> "TokenizeOptions":
        """
        Create options for interactive debugging: everything shown, errors warned.
        """
        return cls(include_private=True, on_error="warn")

    @classmethod
    def public_options(cls) -> "TokenizeOptions":
        """
        Create options showing only the public surface of records with short type names.
        """
        return cls(include_private=False, fully_qualified_names=False)

    # Methods and Properties ---------------------

    def merge(self, **kwargs) -> "TokenizeOptions":
        """
        Return a copy with the given attributes replaced.

        The copy owns its type handler registry, so registering handlers on it
        leaves this instance untouched.
        """
        merged = dataclasses.replace(self, **kwargs)
        if "_type_handlers" not in kwargs:
            merged._type_handlers = dict(self._type_handlers)
        return merged

    def add_type_handler(self, typ: type, handler: TypeHandler) -> "TokenizeOptions":
        """
        Register or override a handler for a specific type.

        Returns:
            Self, to allow chaining.

        Raises:
            TypeError: If typ is not a type or handler is not callable.
        """
        if not isinstance(typ, type):
            raise TypeError(f"typ must be a type, but got {fmt_type(typ)}")
        if not callable(handler):
            raise TypeError(f"handler must be callable, but got {fmt_type(handler)}")
        self._type_handlers[typ] = handler
        return self

    def get_type_handler(self, obj: Any) -> TypeHandler | None:
        """
        Get the handler for the object's type, exact match first, then the nearest ancestor in the MRO.
        """
        obj_type = type(obj)
        handlers = self._type_handlers

        if obj_type in handlers:
            return handlers[obj_type]

        for base in obj_type.__mro__[1:]:
            if base in handlers:
                return handlers[base]
        return None

    def remove_type_handler(self, typ: type) -> "TokenizeOptions":
        """
        Remove the handler for a specific type, if any.

        Returns:
            Self, to allow chaining.
        """
        if not isinstance(typ, type):
            raise TypeError(f"typ must be a type, but got {fmt_type(typ)}")
        self._type_handlers.pop(typ, None)
        return self

    @property
    def type_handlers(self) -> Dict[Type, TypeHandler]:
        return self._type_handlers

    @type_handlers.setter
    def type_handlers(self, value: abc.Mapping[Type, TypeHandler] | None) -> None:
        """Set the handler registry; None resets it to the defaults."""
        if value is None:
            self._type_handlers = default_type_handlers()
        elif isinstance(value, abc.Mapping):
            self._type_handlers = dict(value)
        else:
            raise TypeError(f"type_handlers must be a mapping or None, but got {fmt_type(value)}")


class Walker:
    """
    Single-use traversal state for one tokenize() call.

    Holds the emitted tokens, the current VisitPath and the visited map from
    node identity to the path of its first visit. A node stays in the visited
    map only while the walk is inside it, so shared siblings are rendered in full
    and only true back-edges become Circular(...) references.
    """

    def __init__(self, options: TokenizeOptions) -> None:
        self.options = options
        self.tokens: list[Token] = []
        self._path: list[Any] = []
        self._visited: dict[int, VisitPath] = {}
        self._depth = 0

    def emit(self, kind: TokenKind, literal: str = "") -> None:
        self.tokens.append(Token(kind, literal))

    def type_name(self, obj: Any) -> str:
        return class_name(obj, fully_qualified=self.options.fully_qualified_names)

    @property
    def path(self) -> VisitPath:
        return tuple(self._path)

    def walk(self, value: Any, step: Any = _NO_STEP) -> None:
        """
        Emit tokens for a child value, reached from the current node by step.

        The step is pushed on the path and the node on the visited map for the
        duration of the call; both are released on every exit, errors included.
        Every call is one nesting level for `max_depth`, stepped or not.

        Each nesting level costs walk() plus the family method of the container,
        so the recursion chain stays short for deeply nested values.
        """
        max_depth = self.options.max_depth
        if max_depth is not None and self._depth > max_depth:
            self.emit(TokenKind.CONST, "...")
            return

        handler, render = self._select(value)
        # Scalars and named values never hold references back into the walk
        tracked = not (isinstance(value, (*_SCALARS, Enum)) or _is_named(value))

        key = id(value)
        if tracked and key in self._visited:
            self._circular(value, self._visited[key])
            return

        stepped = step is not _NO_STEP
        if stepped:
            self._path.append(step)
        if tracked:
            self._visited[key] = self.path
        self._depth += 1
        mark = len(self.tokens)
        try:
            if handler is not None:
                handler(value, self)
            elif render is not None:
                render(value)
            else:
                self._family(value)(value)
        except RecursionError:
            raise
        except Exception as e:
            if self.options.on_error == "raise":
                raise
            self._fail(value, e, mark)
        finally:
            self._depth -= 1
            if tracked:
                del self._visited[key]
            if stepped:
                self._path.pop()

    # Dispatch -----------------------------------------

    def _select(self, value: Any) -> tuple[TypeHandler | None, Callable[[Any], None] | None]:
        """Pick a type handler or a leaf renderer; (None, None) means a structure resolved by _family()."""
        if isinstance(value, Enum):
            # Mixed-in enums (StrEnum, IntEnum) keep their member form over base type handlers
            handler = self.options.type_handlers.get(type(value))
            return handler, (None if handler else self._enum)

        handler = self.options.get_type_handler(value)
        if handler is not None:
            return handler, None
        if _is_named(value):
            return None, self._named
        if isinstance(value, _SCALARS):
            return None, self._scalar
        return None, None

    def _fail(self, value: Any, e: Exception, mark: int) -> None:
        """Roll back the partial tokens of a failed node and leave a placeholder."""
        if self.options.on_error == "warn":
            warnings.warn(
                f"Failed to read {class_name(value, fully_qualified=True)}: {type(e).__name__}: {e}",
                RuntimeWarning,
                stacklevel=3,
            )
        del self.tokens[mark:]
        self.emit(TokenKind.ERROR, f"<unreadable: {type(e).__name__}>")

    def _family(self, value: Any) -> Callable[[Any], None]:
        if isinstance(value, weakref.ref):
            return self._reference
        if isinstance(value, BaseException):
            return self._exception
        if dataclasses.is_dataclass(value) or is_namedtuple(value):
            return self._record
        if isinstance(value, abc.Mapping):
            return self._mapping
        if isinstance(value, abc.Set):
            return self._set
        if isinstance(value, abc.Sequence):
            return self._sequence
        if is_record(value):
            return self._record
        return self._opaque

    # Shape families -----------------------------------

    def _scalar(self, value: Any) -> None:
        if value is None:
            self.emit(TokenKind.NIL, "None")
        elif isinstance(value, bool):
            self.emit(TokenKind.BOOL, repr(bool(value)))
        elif value is Ellipsis:
            self.emit(TokenKind.CONST, "...")
        elif value is NotImplemented:
            self.emit(TokenKind.CONST, "NotImplemented")
        elif isinstance(value, str):
            self._annotated(value, str, lambda: self.emit(TokenKind.STRING, str.__str__(value)))
        elif isinstance(value, bytes):
            self._annotated(value, bytes, lambda: self.emit(TokenKind.BYTES, bytes(value).decode("utf-8", "replace")))
        elif isinstance(value, int):
            self._annotated(value, int, lambda: self.emit(TokenKind.NUMBER, int.__repr__(value)))
        elif isinstance(value, float):
            self._annotated(value, float, lambda: self._float(value))
        else:
            self._annotated(value, complex, lambda: self.emit(TokenKind.NUMBER, complex.__repr__(value)))

    def _annotated(self, value: Any, builtin: type, emit_literal: Callable[[], None]) -> None:
        """Emit a builtin-typed literal as-is, or wrapped as `module.Type(literal)` for subclasses."""
        if type(value) is builtin:
            emit_literal()
            return
        self.emit(TokenKind.TYPE_NAME, self.type_name(value))
        self.emit(TokenKind.PAREN_OPEN, "(")
        emit_literal()
        self.emit(TokenKind.PAREN_CLOSE, ")")

    def _float(self, value: float) -> None:
        text = float.__repr__(value)
        if text in ("inf", "-inf", "nan"):
            self.emit(TokenKind.TYPE_NAME, "float")
            self.emit(TokenKind.PAREN_OPEN, "(")
            self.emit(TokenKind.STRING, text)
            self.emit(TokenKind.PAREN_CLOSE, ")")
        else:
            self.emit(TokenKind.NUMBER, text)

    def _enum(self, value: Enum) -> None:
        name = value.name
        if isinstance(name, str) and name.isidentifier():
            self.emit(TokenKind.TYPE_NAME, self.type_name(value))
            self.emit(TokenKind.DOT, ".")
            self.emit(TokenKind.CONST, name)
            return
        # Flag combinations and pseudo-members
        self.emit(TokenKind.TYPE_NAME, self.type_name(value))
        self.emit(TokenKind.PAREN_OPEN, "(")
        self.walk(value.value)
        self.emit(TokenKind.PAREN_CLOSE, ")")

    def _named(self, value: Any) -> None:
        qualified = self.options.fully_qualified_names
        if isinstance(value, type):
            self.emit(TokenKind.TYPE_NAME, class_name(value, fully_qualified=qualified))
        elif inspect.ismodule(value):
            self.emit(TokenKind.FUNC, value.__name__)
            self.emit(TokenKind.COMMENT, "module")
        elif inspect.ismethod(value):
            self.emit(TokenKind.FUNC, func_name(value, fully_qualified=qualified))
            self.emit(TokenKind.COMMENT, f"bound to 0x{id(value.__self__):x}")
        else:
            self.emit(TokenKind.FUNC, func_name(value, fully_qualified=qualified))
            if is_anonymous(value):
                self.emit(TokenKind.COMMENT, f"0x{id(value):x}")

    def _sequence(self, value: abc.Sequence) -> None:
        cls = type(value)
        if cls is list:
            self._items(value, "[", "]")
            return
        if cls is tuple:
            self._items(value, "(", ")")
            return

        self.emit(TokenKind.TYPE_NAME, self.type_name(value))
        self.emit(TokenKind.PAREN_OPEN, "(")
        self._capacity_comment(value)
        self._items(value, "[", "]")
        self.emit(TokenKind.PAREN_CLOSE, ")")

    def _capacity_comment(self, value: abc.Sequence) -> None:
        """Annotate bounded sequences whose capacity differs from their length."""
        capacity = getattr(value, "maxlen", None)
        length = len(value)
        if length and isinstance(capacity, int) and capacity != length:
            self.emit(TokenKind.COMMENT, f"len={length} cap={capacity}")

    def _set(self, value: abc.Set) -> None:
        items = self._sorted(list(value)) if self.options.sort_keys else list(value)
        cls = type(value)
        if cls is set and items:
            self._items(items, "{", "}")
            return

        self.emit(TokenKind.TYPE_NAME, "set" if cls is set else self.type_name(value))
        self.emit(TokenKind.PAREN_OPEN, "(")
        if items:
            self._items(items, "{", "}")
        self.emit(TokenKind.PAREN_CLOSE, ")")

    def _items(self, items: Iterable[Any], open_: str, close: str) -> None:
        self.emit(TokenKind.SLICE_OPEN, open_)
        for i, item in enumerate(items):
            self.emit(TokenKind.SLICE_ITEM)
            self.walk(item, i)
            self.emit(TokenKind.COMMA, ",")
        self.emit(TokenKind.SLICE_CLOSE, close)

    def _mapping(self, value: abc.Mapping) -> None:
        wrapped = type(value) is not dict
        if wrapped:
            self.emit(TokenKind.TYPE_NAME, self.type_name(value))
            self.emit(TokenKind.PAREN_OPEN, "(")

        entries = list(value.items())
        if self.options.sort_keys:
            order = self._sorted([k for k, _ in entries])
            by_id = {id(k): v for k, v in entries}
            entries = [(k, by_id[id(k)]) for k in order]

        self.emit(TokenKind.MAP_OPEN, "{")
        for k, v in entries:
            self.emit(TokenKind.MAP_KEY)
            self.walk(k, k)
            self.emit(TokenKind.COLON, ":")
            self.walk(v, k)
            self.emit(TokenKind.COMMA, ",")
        self.emit(TokenKind.MAP_CLOSE, "}")

        if wrapped:
            self.emit(TokenKind.PAREN_CLOSE, ")")

    def _record(self, value: Any) -> None:
        self.emit(TokenKind.TYPE_NAME, self.type_name(value))
        self.emit(TokenKind.STRUCT_OPEN, "(")
        for name in record_fields(value):
            if not self.options.include_private and name.startswith("_"):
                continue
            field_value = read_field(value, name)
            if field_value is MISSING:
                continue
            self.emit(TokenKind.STRUCT_KEY)
            self.emit(TokenKind.STRUCT_FIELD, name)
            self.emit(TokenKind.EQUALS, "=")
            self.walk(field_value, name)
            self.emit(TokenKind.COMMA, ",")
        self.emit(TokenKind.STRUCT_CLOSE, ")")

    def _exception(self, value: BaseException) -> None:
        self.emit(TokenKind.ERROR, self.type_name(value))
        self.emit(TokenKind.PAREN_OPEN, "(")
        for i, arg in enumerate(value.args):
            if i:
                self.emit(TokenKind.INLINE_COMMA, ",")
            self.walk(arg, i)
        self.emit(TokenKind.PAREN_CLOSE, ")")

    def _reference(self, value: weakref.ref) -> None:
        name = "weakref.ref" if type(value) is weakref.ref else self.type_name(value)
        self.emit(TokenKind.TYPE_NAME, name)
        self.emit(TokenKind.PAREN_OPEN, "(")
        referent = value()
        if referent is None:
            self.emit(TokenKind.NIL, "None")
        else:
            self.walk(referent)
        self.emit(TokenKind.PAREN_CLOSE, ")")

    def _opaque(self, value: Any) -> None:
        self.emit(TokenKind.TYPE_NAME, self.type_name(value))
        self.emit(TokenKind.PAREN_OPEN, "(")
        self.emit(TokenKind.PAREN_CLOSE, ")")
        self.emit(TokenKind.COMMENT, f"0x{id(value):x}")

    def _circular(self, value: Any, path: VisitPath) -> None:
        """Emit `cast(Type, Circular(*path))` for a back-edge to a node first visited at path."""
        self.emit(TokenKind.FUNC, "cast")
        self.emit(TokenKind.PAREN_OPEN, "(")
        self.emit(TokenKind.TYPE_NAME, self.type_name(value))
        self.emit(TokenKind.INLINE_COMMA, ",")
        self.emit(TokenKind.CIRCULAR, "Circular")
        self.emit(TokenKind.PAREN_OPEN, "(")
        for i, step in enumerate(path):
            if i:
                self.emit(TokenKind.INLINE_COMMA, ",")
            if isinstance(step, _SCALARS) or isinstance(step, Enum):
                self._step(step)
            else:
                self.emit(TokenKind.CONST, "...")
        self.emit(TokenKind.PAREN_CLOSE, ")")
        self.emit(TokenKind.PAREN_CLOSE, ")")

    def _step(self, step: Any) -> None:
        if isinstance(step, Enum):
            self._enum(step)
        else:
            self._scalar(step)

    # Key ordering -------------------------------------

    def _sorted(self, keys: list[Any]) -> list[Any]:
        """Sort keys by family rank, natural order within a family, then rendered text."""
        texts: dict[int, str] = {}

        def text(k: Any) -> str:
            if id(k) not in texts:
                texts[id(k)] = self._key_text(k)
            return texts[id(k)]

        def compare(a: Any, b: Any) -> int:
            rank_a, rank_b = key_rank(a), key_rank(b)
            if rank_a != rank_b:
                return -1 if rank_a < rank_b else 1
            natural = _natural_compare(a, b, rank_a, compare)
            if natural:
                return natural
            ta, tb = text(a), text(b)
            return (ta > tb) - (ta < tb)

        return sorted(keys, key=functools.cmp_to_key(compare))

    def _key_text(self, key: Any) -> str:
        """
        Render a key as plain text, seen from the current position of the walk.

        The nodes being walked stay marked as visited, so a key reaching back into
        them renders a Circular(...) reference instead of sorting them again.
        """
        from .format import format as format_tokens

        sub = Walker(self.options)
        sub._visited = dict(self._visited)
        sub._path = list(self._path)
        sub._depth = self._depth
        sub.walk(key, key)
        return format_tokens(sub.tokens)


# Methods --------------------------------------------------------------------------------------------------------------

def tokenize(value: Any, options: TokenizeOptions | None = None) -> list[Token]:
    """
    Walk a value and return its flat token list.

    Args:
        value: Any Python value, including self-referencing structures.
        options: Walker configuration; defaults to TokenizeOptions().

    Returns:
        Tokens with balanced open/close kinds, ready for showval.format.format().

    Raises:
        TypeError: If options is not a TokenizeOptions instance.
        RecursionError: If the value nests deeper than about RECURSION_LIMIT // 3 levels
            without a cycle; use max_depth to bound it.

    Examples:
        >>> a = {}
        >>> a[0] = a
        >>> format(tokenize(a))
        '{\\n    0: cast(dict, Circular()),\\n}'
    """
    if options is None:
        options = TokenizeOptions()
    elif not isinstance(options, TokenizeOptions):
        raise TypeError(f"options must be TokenizeOptions, but got {fmt_type(options)}")

    walker = Walker(options)
    with _recursion_limit(RECURSION_LIMIT):
        walker.walk(value)
    return walker.tokens


def key_rank(k: Any) -> int:
    """
    Family rank of a mapping key or set element:
    None < bool < real numbers < complex < str < bytes < tuple < everything else.
    """
    if k is None:
        return 0
    if isinstance(k, bool):
        return 1
    if isinstance(k, Real):
        return 2
    if isinstance(k, complex):
        return 3
    if isinstance(k, str):
        return 4
    if isinstance(k, (bytes, bytearray)):
        return 5
    if isinstance(k, tuple):
        return 6
    return 7


# Private Methods ------------------------------------------------------------------------------------------------------

def _is_named(value: Any) -> bool:
    return isinstance(value, type) or inspect.isroutine(value) or inspect.ismodule(value)


def _natural_compare(a: Any, b: Any, rank: int, compare: Callable[[Any, Any], int]) -> int:
    """Compare within one family; 0 means undecided."""
    try:
        if rank in (2, 4, 5):
            return (a > b) - (a < b)
        if rank == 3:
            pa, pb = (a.real, a.imag), (b.real, b.imag)
            return (pa > pb) - (pa < pb)
    except TypeError:
        return 0

    if rank == 6:
        for x, y in zip(a, b):
            c = compare(x, y)
            if c:
                return c
        return (len(a) > len(b)) - (len(a) < len(b))
    return 0


@contextlib.contextmanager
def _recursion_limit(limit: int):
    """Raise the interpreter recursion limit to at least `limit` for the duration of the block."""
    previous = sys.getrecursionlimit()
    if previous < limit:
        sys.setrecursionlimit(limit)
    try:
        yield
    finally:
        if previous < limit:
            sys.setrecursionlimit(previous)
