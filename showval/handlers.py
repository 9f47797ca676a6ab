"""
Default type handlers for values with a well-known literal form.

A handler receives the value and the active Walker and emits tokens through
`walker.emit()`, recursing with `walker.walk()` where the literal embeds other
values. Timestamps, durations, non-text bytes and embedded JSON render as calls
to the helpers of `showval.convert`, annotated with a readable comment.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import base64
import datetime as dt
import ipaddress
import json
import uuid
from decimal import Decimal
from fractions import Fraction
from pathlib import PurePath
from typing import TYPE_CHECKING, Any, Callable, Dict, Type

# Local ----------------------------------------------------------------------------------------------------------------
from .convert import format_duration
from .token import TokenKind

if TYPE_CHECKING:
    from .walker import Walker

TypeHandler = Callable[[Any, "Walker"], None]

_NOT_JSON = object()


# Methods --------------------------------------------------------------------------------------------------------------

def default_type_handlers() -> Dict[Type, TypeHandler]:
    """
    Get the default type handlers.

    Returns:
        Dictionary mapping types to their handler functions. Subclasses are
        served by the nearest registered ancestor.
    """
    return {
        str: handle_str,
        bytes: handle_bytes,
        bytearray: handle_bytearray,
        range: handle_range,
        dt.datetime: handle_datetime,
        dt.date: handle_date,
        dt.time: handle_time,
        dt.timedelta: handle_timedelta,
        Decimal: handle_str_call,
        Fraction: handle_fraction,
        uuid.UUID: handle_str_call,
        PurePath: handle_str_call,
        ipaddress.IPv4Address: handle_str_call,
        ipaddress.IPv6Address: handle_str_call,
        ipaddress.IPv4Network: handle_str_call,
        ipaddress.IPv6Network: handle_str_call,
        ipaddress.IPv4Interface: handle_str_call,
        ipaddress.IPv6Interface: handle_str_call,
    }


def handle_str(value: str, w: "Walker") -> None:
    """Plain string literal, or JSONStr(...) when the text is a JSON object or array."""
    if type(value) is not str:
        _call(w, w.type_name(value), TokenKind.TYPE_NAME, lambda: w.emit(TokenKind.STRING, str.__str__(value)))
        return

    parsed = _parse_json(value)
    if parsed is _NOT_JSON:
        w.emit(TokenKind.STRING, value)
        return

    _json_call(w, "JSONStr", parsed, value, TokenKind.STRING)


def handle_bytes(value: bytes, w: "Walker") -> None:
    """
    Bytes literal for UTF-8 text, JSONBytes(...) for JSON text, Base64(...) otherwise.

    Subclasses of bytes are wrapped with their type name.
    """
    if type(value) is not bytes:
        _call(w, w.type_name(value), TokenKind.TYPE_NAME, lambda: _bytes_literal(bytes(value), w))
        return
    _bytes_literal(value, w)


def handle_bytearray(value: bytearray, w: "Walker") -> None:
    _call(w, w.type_name(value), TokenKind.TYPE_NAME, lambda: _bytes_literal(bytes(value), w))


def handle_range(value: range, w: "Walker") -> None:
    args = [value.start, value.stop] if value.step == 1 else [value.start, value.stop, value.step]
    _call(w, "range", TokenKind.TYPE_NAME, *[_number(w, a) for a in args])


def handle_datetime(value: dt.datetime, w: "Walker") -> None:
    _call(w, "Time", TokenKind.FUNC, lambda: w.emit(TokenKind.STRING, value.isoformat()))
    comment = value.strftime("%a, %d %b %Y %H:%M:%S")
    if value.utcoffset() is not None:
        comment += value.strftime(" %z")
    w.emit(TokenKind.COMMENT, comment)


def handle_date(value: dt.date, w: "Walker") -> None:
    _call(w, "Date", TokenKind.FUNC, lambda: w.emit(TokenKind.STRING, value.isoformat()))
    w.emit(TokenKind.COMMENT, value.strftime("%A"))


def handle_time(value: dt.time, w: "Walker") -> None:
    _call(w, "TimeOfDay", TokenKind.FUNC, lambda: w.emit(TokenKind.STRING, value.isoformat()))


def handle_timedelta(value: dt.timedelta, w: "Walker") -> None:
    _call(w, "Duration", TokenKind.FUNC, lambda: w.emit(TokenKind.STRING, format_duration(value)))
    w.emit(TokenKind.COMMENT, str(value))


def handle_fraction(value: Fraction, w: "Walker") -> None:
    _call(w, w.type_name(value), TokenKind.TYPE_NAME, _number(w, value.numerator), _number(w, value.denominator))


def handle_str_call(value: Any, w: "Walker") -> None:
    """Render `module.Type("<str(value)>")` for values constructible from their text."""
    _call(w, w.type_name(value), TokenKind.TYPE_NAME, lambda: w.emit(TokenKind.STRING, str(value)))


# Private Methods ------------------------------------------------------------------------------------------------------

def _call(w: "Walker", name: str, kind: TokenKind, *args: Callable[[], None]) -> None:
    """Emit `name(arg, arg, ...)` where each arg callable emits its own tokens."""
    w.emit(kind, name)
    w.emit(TokenKind.PAREN_OPEN, "(")
    for i, emit_arg in enumerate(args):
        if i:
            w.emit(TokenKind.INLINE_COMMA, ",")
        emit_arg()
    w.emit(TokenKind.PAREN_CLOSE, ")")


def _number(w: "Walker", n: int) -> Callable[[], None]:
    return lambda: w.emit(TokenKind.NUMBER, int.__repr__(n))


def _bytes_literal(data: bytes, w: "Walker") -> None:
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        _call(w, "Base64", TokenKind.FUNC, lambda: w.emit(TokenKind.STRING, base64.b64encode(data).decode("ascii")))
        w.emit(TokenKind.COMMENT, f"len={len(data)}")
        return

    parsed = _parse_json(text)
    if parsed is _NOT_JSON:
        w.emit(TokenKind.BYTES, text)
        return

    _json_call(w, "JSONBytes", parsed, text, TokenKind.BYTES)


def _json_call(w: "Walker", name: str, parsed: Any, text: str, kind: TokenKind) -> None:
    """Emit `name(<parsed>, "<text>")`, or the bare literal when the document nests too deep to walk."""
    mark = len(w.tokens)
    try:
        _call(w, name, TokenKind.FUNC, lambda: w.walk(parsed), lambda: w.emit(TokenKind.STRING, text))
    except RecursionError:
        del w.tokens[mark:]
        w.emit(kind, text)


def _parse_json(text: str) -> Any:
    """Decode text holding a JSON object or array, else return _NOT_JSON."""
    stripped = text.strip()
    if not stripped or stripped[0] not in "{[":
        return _NOT_JSON
    try:
        return json.loads(stripped)
    except (ValueError, RecursionError):
        return _NOT_JSON
