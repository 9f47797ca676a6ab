"""
Terminal style primitives for showval output.

A Style is a pair of opaque ANSI SGR markers: one switches a visual attribute on,
the other switches it off. Markers do not nest by themselves, e.g. closing a cyan
span inside a red span resets the foreground to default instead of back to red.
The StyleStack tracks active styles per unset marker so that every close restores
the still-open outer style of the same category.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import re
from dataclasses import dataclass
from typing import Iterable


# Classes --------------------------------------------------------------------------------------------------------------

@dataclass(frozen=True)
class Style:
    """
    Immutable pair of style markers.

    Attributes:
        set: Marker that switches the style on.
        unset: Marker that switches the style off.
    """
    set: str = ""
    unset: str = ""

    @property
    def is_none(self) -> bool:
        return not self.set and not self.unset


def _sgr(code: int) -> str:
    return f"\x1b[{code}m"


def _style(set_code: int, unset_code: int) -> Style:
    style = Style(_sgr(set_code), _sgr(unset_code))
    _REGISTRY[style.set] = style
    return style


_REGISTRY: dict[str, Style] = {}

# @formatter:off

NONE = Style()

Bold        = _style(1, 22)
Faint       = _style(2, 22)
Italic      = _style(3, 23)
Underline   = _style(4, 24)
Blink       = _style(5, 25)
RapidBlink  = _style(6, 26)
Invert      = _style(7, 27)
Hide        = _style(8, 28)
Strike      = _style(9, 29)

Black       = _style(30, 39)
Red         = _style(31, 39)
Green       = _style(32, 39)
Yellow      = _style(33, 39)
Blue        = _style(34, 39)
Magenta     = _style(35, 39)
Cyan        = _style(36, 39)
White       = _style(37, 39)

BgBlack     = _style(40, 49)
BgRed       = _style(41, 49)
BgGreen     = _style(42, 49)
BgYellow    = _style(43, 49)
BgBlue      = _style(44, 49)
BgMagenta   = _style(45, 49)
BgCyan      = _style(46, 49)
BgWhite     = _style(47, 49)

# @formatter:on

_UNSETS = frozenset(s.unset for s in _REGISTRY.values())

_ANSI_RE = re.compile(r"\x1b\[(\d+)m")


class StyleStack:
    """
    Stack of currently open styles, kept per unset marker.

    Styles sharing an unset marker (all foreground colors share "39") form one
    category. Opening a style in an occupied category first closes the active one;
    closing a style re-opens the new top of its category, if any.
    """

    def __init__(self) -> None:
        self._open: dict[str, list[Style]] = {}

    def push(self, style: Style) -> str:
        """Open a style and return the markers to emit."""
        if style.is_none:
            return ""
        active = self._open.setdefault(style.unset, [])
        out = style.unset + style.set if active else style.set
        active.append(style)
        return out

    def pop(self, unset: str) -> str:
        """Close the innermost style of the category and return the markers to emit."""
        active = self._open.get(unset)
        if not active:
            return unset
        active.pop()
        if active:
            return unset + active[-1].set
        return unset

    def close(self, style: Style) -> str:
        if style.is_none:
            return ""
        return self.pop(style.unset)


# Methods --------------------------------------------------------------------------------------------------------------

def wrap(text: str, style: Style) -> str:
    """Surround text with the style's markers; the NONE style leaves text untouched."""
    if style.is_none:
        return text
    return style.set + text + style.unset


def S(text: str, *styles: Style) -> str:
    """
    Wrap text with styles, the first style being the outermost.

    Examples:
        >>> visualize_ansi(S("x", Underline, Red))
        '<4><31>x<39><24>'
    """
    for style in reversed(styles):
        text = wrap(text, style)
    return text


def stylize(text: str, styles: Iterable[Style]) -> str:
    """
    Apply an ordered list of styles (outer to inner) through a StyleStack.

    Unlike plain wrapping, a style list holding two styles of the same category
    restores the outer one after the inner closes.
    """
    styles = [s for s in styles if not s.is_none]
    if not styles:
        return text

    stack = StyleStack()
    head = "".join(stack.push(s) for s in styles)
    tail = "".join(stack.close(s) for s in reversed(styles))
    return head + text + tail


def fix_nested_style(text: str) -> str:
    """
    Rewrite markers in styled text so inner closes restore outer styles.

    Known set markers are pushed on a StyleStack and known unset markers pop it,
    so each inner unset re-emits the set marker of the outer style of the same
    category. Unknown markers are copied unchanged.

    Examples:
        >>> s = S("a" + S("b", Cyan) + "c", Red)
        >>> visualize_ansi(fix_nested_style(s))
        '<31>a<39><36>b<39><31>c<39>'
    """
    stack = StyleStack()
    out: list[str] = []
    pos = 0
    for m in _ANSI_RE.finditer(text):
        out.append(text[pos:m.start()])
        marker = m.group(0)
        if marker in _REGISTRY:
            out.append(stack.push(_REGISTRY[marker]))
        elif marker in _UNSETS:
            out.append(stack.pop(marker))
        else:
            out.append(marker)
        pos = m.end()
    out.append(text[pos:])
    return "".join(out)


def strip_ansi(text: str) -> str:
    """Remove every ANSI style marker, recovering the plain text."""
    return _ANSI_RE.sub("", text)


def visualize_ansi(text: str) -> str:
    """Replace each ANSI style marker with a readable '<code>' notation."""
    return _ANSI_RE.sub(lambda m: f"<{m.group(1)}>", text)
