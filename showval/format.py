"""
Token formatter: lays out a token list as indented, optionally colorized text.

Layout is a single pass over the tokens with one depth counter. Containers open
on their own line and close at the parent's indentation; empty containers
collapse to `[]`, `{}` or `Type()`. Python has no inline comments, so COMMENT
tokens are deferred to the end of the line they appear on.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import inspect
import os
import sys
from datetime import datetime
from typing import Any, Callable, Iterable, TextIO

# Local ----------------------------------------------------------------------------------------------------------------
from .color import (
    NONE, Blue, Cyan, Green, Magenta, Red, Style, Underline, White, Yellow, stylize,
)
from .token import CLOSE_KINDS, CLOSE_OF, ITEM_KINDS, OPEN_KINDS, Token, TokenKind
from .walker import TokenizeOptions, tokenize

INDENT_UNIT = "    "

Theme = Callable[[TokenKind], list[Style]]

_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}

_PAIRS = {**CLOSE_OF, TokenKind.PAREN_OPEN: TokenKind.PAREN_CLOSE}


# Themes ---------------------------------------------------------------------------------------------------------------

def theme_none(kind: TokenKind) -> list[Style]:
    """Plain output: no styling for any token."""
    return [NONE]


# @formatter:off

_DEFAULT_STYLES: dict[TokenKind, list[Style]] = {
    TokenKind.TYPE_NAME: [Cyan],
    TokenKind.BOOL:      [Blue],
    TokenKind.STRING:    [Yellow],
    TokenKind.BYTES:     [Yellow],
    TokenKind.NUMBER:    [Green],
    TokenKind.CONST:     [Green],
    TokenKind.FUNC:      [Magenta],
    TokenKind.CIRCULAR:  [Magenta],
    TokenKind.COMMENT:   [White],
    TokenKind.NIL:       [Red],
    TokenKind.ERROR:     [Underline, Red],
}

# @formatter:on


def theme_default(kind: TokenKind) -> list[Style]:
    """Terminal colors used by F() and P()."""
    return list(_DEFAULT_STYLES.get(kind, [NONE]))


# Methods --------------------------------------------------------------------------------------------------------------

def format(tokens: Iterable[Token], theme: Theme = theme_none) -> str:
    """
    Lay out a token list as text.

    Args:
        tokens: Balanced token list, as produced by tokenize().
        theme: Maps each token kind to a list of styles, outer to inner.

    Returns:
        The formatted text, 4-space indented.

    Raises:
        ValueError: If the open/close tokens are not balanced.

    Examples:
        >>> format(tokenize([1, "a"]))
        '[\\n    1,\\n    "a",\\n]'
        >>> format(tokenize({}))
        '{}'
    """
    tokens = list(tokens)
    _check_balanced(tokens)

    out: list[str] = []
    pending: list[str] = []
    flushed: tuple[int, list[str]] | None = None
    depth = 0

    def newline() -> None:
        nonlocal flushed
        flushed = None
        if pending:
            flushed = (len(out), list(pending))
            out.append("".join(_comment(c, theme) for c in pending))
            pending.clear()
        out.append("\n")

    for i, t in enumerate(tokens):
        if t.kind in OPEN_KINDS:
            depth += 1
        if i + 1 < len(tokens) and tokens[i + 1].kind in CLOSE_KINDS:
            depth -= 1

        styles = theme(t.kind)

        if t.kind in OPEN_KINDS:
            out.append(stylize(t.literal, styles))
            newline()
        elif t.kind in ITEM_KINDS:
            out.append(INDENT_UNIT * depth)
        elif t.kind in (TokenKind.COLON, TokenKind.INLINE_COMMA):
            out.append(stylize(t.literal, styles))
            out.append(" ")
        elif t.kind == TokenKind.COMMA:
            out.append(stylize(t.literal, styles))
            newline()
        elif t.kind in CLOSE_KINDS:
            if i and tokens[i - 1].kind in OPEN_KINDS:
                # Collapse the empty container onto its open token
                out.pop()
                if flushed is not None and flushed[0] == len(out) - 1:
                    out.pop()
                    pending[:0] = flushed[1]
                flushed = None
            else:
                out.append(INDENT_UNIT * depth)
            out.append(stylize(t.literal, styles))
        elif t.kind == TokenKind.STRING:
            out.append(stylize(readable_str(depth, t.literal), styles))
        elif t.kind == TokenKind.BYTES:
            out.append(stylize(readable_str(depth, t.literal, prefix="b"), styles))
        elif t.kind == TokenKind.COMMENT:
            pending.append(t.literal)
        else:
            out.append(stylize(t.literal, styles))

    if pending:
        out.append("".join(_comment(c, theme) for c in pending))
    return "".join(out)


def readable_str(depth: int, s: str, prefix: str = "") -> str:
    """
    Render a string literal in the most readable valid form.

    Text with double quotes and no escapes renders verbatim in triple quotes.
    Otherwise the text is escaped in double quotes, escaped tabs become real tabs,
    and every escaped newline splits the literal into a concatenation:

        "" +
            "line one\\n" +
            "	line two"

    Args:
        depth: Nesting depth of the literal, sets the continuation indent.
        s: Raw text.
        prefix: Literal prefix repeated on every segment, "b" for bytes.
    """
    if _is_verbatim(s, ascii_only=bool(prefix)):
        return f"{prefix}'''{s}'''"

    quoted = prefix + '"' + (_escape_bytes(s) if prefix else _escape(s)) + '"'
    quoted, _ = replace_escaped(quoted, "t", "\t")

    indent = INDENT_UNIT * (depth + 1)
    split, has = replace_escaped(quoted, "n", f'\\n" +\n{indent}{prefix}"')
    if has:
        return f'{prefix}"" +\n{indent}{split}'
    return quoted


def replace_escaped(s: str, escaped: str, new: str) -> tuple[str, bool]:
    """
    Replace each escape sequence `\\<escaped>` in escaped text with `new`.

    A backslash that is itself escaped never starts a sequence, so in `\\\\n`
    nothing is replaced.

    Returns:
        The rewritten text and whether any replacement happened.
    """
    init, pre_match, match = range(3)

    state = init
    out: list[str] = []
    has = False

    for ch in s:
        if state == pre_match:
            if ch == escaped:
                out.append(new)
                has = True
                state = match
            else:
                out.append("\\" + ch)
                state = init
        elif ch == "\\":
            state = pre_match
        else:
            out.append(ch)
            state = init

    if state == pre_match:
        out.append("\\")
    return "".join(out), has


def F(value: Any, options: TokenizeOptions | None = None) -> str:
    """Format a value with the default terminal colors."""
    return format(tokenize(value, options), theme_default)


def plain(value: Any, options: TokenizeOptions | None = None) -> str:
    """Format a value without colors."""
    return format(tokenize(value, options), theme_none)


def P(*values: Any, file: TextIO | None = None) -> None:
    """
    Pretty print values with a header naming the time and the caller location.

    Output goes to sys.stdout unless `file` is given. Colors are disabled when
    the NO_COLOR environment variable is set to a non-empty value.

    Example output:
        # 2024-05-01T10:00:00.123456 app/main.py:12 (handle)
        {
            "id": 1,
        }
    """
    theme = theme_none if os.environ.get("NO_COLOR") else theme_default

    # stack()[1] is the immediate caller
    caller = inspect.stack()[1]
    try:
        path = os.path.relpath(caller.filename)
    except ValueError:
        path = caller.filename
    header = f"# {datetime.now().isoformat()} {path}:{caller.lineno} ({caller.function})"

    out = file if file is not None else sys.stdout
    print(stylize(header, theme(TokenKind.COMMENT)), file=out)
    print(*(format(tokenize(v), theme) for v in values), file=out)


# Private Methods ------------------------------------------------------------------------------------------------------

def _check_balanced(tokens: list[Token]) -> None:
    stack: list[TokenKind] = []
    for i, t in enumerate(tokens):
        if t.kind in _PAIRS:
            stack.append(_PAIRS[t.kind])
        elif t.kind in CLOSE_KINDS or t.kind == TokenKind.PAREN_CLOSE:
            if not stack or stack.pop() != t.kind:
                raise ValueError(f"unbalanced tokens: unexpected {t.kind.name} at position {i}")
    if stack:
        raise ValueError(f"unbalanced tokens: {len(stack)} unclosed, expected {stack[-1].name}")


def _comment(text: str, theme: Theme) -> str:
    return "  " + stylize("# " + text, theme(TokenKind.COMMENT))


def _is_verbatim(s: str, ascii_only: bool = False) -> bool:
    if '"' not in s or "\\" in s or "'''" in s or s.endswith("'"):
        return False
    if ascii_only and not s.isascii():
        return False
    return all(ch.isprintable() or ch in "\n\t" for ch in s)


def _escape(s: str) -> str:
    out = []
    for ch in s:
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ch.isprintable():
            out.append(ch)
        else:
            code = ord(ch)
            if code < 0x100:
                out.append(f"\\x{code:02x}")
            elif code < 0x10000:
                out.append(f"\\u{code:04x}")
            else:
                out.append(f"\\U{code:08x}")
    return "".join(out)


def _escape_bytes(s: str) -> str:
    """Escape text as the body of a bytes literal; non-ASCII goes out as UTF-8 `\\xNN` escapes."""
    out = []
    for b in s.encode("utf-8", "surrogateescape"):
        ch = chr(b)
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif 0x20 <= b < 0x7f:
            out.append(ch)
        else:
            out.append(f"\\x{b:02x}")
    return "".join(out)
