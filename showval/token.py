"""
Token model shared by the walker and the formatter.

Tokens form a flat list; nesting is implicit in the balanced open/close kinds.
"""

# Standard library -----------------------------------------------------------------------------------------------------
from dataclasses import dataclass
from enum import StrEnum, unique


# Classes --------------------------------------------------------------------------------------------------------------

# @formatter:off
@unique
class TokenKind(StrEnum):
    """
    Kinds of tokens emitted by the walker.

    Container families:
        SLICE_*: sequences - list "[...]", tuple "(...)", set "{...}"
        MAP_*: mappings - dict "{...}"
        STRUCT_*: records - "Type(field=value)"
    """
    NIL          = "nil"
    BOOL         = "bool"
    NUMBER       = "number"
    CONST        = "const"
    STRING       = "string"
    BYTES        = "bytes"
    FUNC         = "func"
    TYPE_NAME    = "type_name"
    DOT          = "dot"
    PAREN_OPEN   = "paren_open"
    PAREN_CLOSE  = "paren_close"

    SLICE_OPEN   = "slice_open"
    SLICE_ITEM   = "slice_item"
    SLICE_CLOSE  = "slice_close"

    MAP_OPEN     = "map_open"
    MAP_KEY      = "map_key"
    COLON        = "colon"
    MAP_CLOSE    = "map_close"

    STRUCT_OPEN  = "struct_open"
    STRUCT_KEY   = "struct_key"
    STRUCT_FIELD = "struct_field"
    EQUALS       = "equals"
    STRUCT_CLOSE = "struct_close"

    INLINE_COMMA = "inline_comma"
    COMMA        = "comma"
    COMMENT      = "comment"
    CIRCULAR     = "circular"
    ERROR        = "error"
# @formatter:on


OPEN_KINDS = frozenset({TokenKind.SLICE_OPEN, TokenKind.MAP_OPEN, TokenKind.STRUCT_OPEN})
CLOSE_KINDS = frozenset({TokenKind.SLICE_CLOSE, TokenKind.MAP_CLOSE, TokenKind.STRUCT_CLOSE})
ITEM_KINDS = frozenset({TokenKind.SLICE_ITEM, TokenKind.MAP_KEY, TokenKind.STRUCT_KEY})

CLOSE_OF = {
    TokenKind.SLICE_OPEN: TokenKind.SLICE_CLOSE,
    TokenKind.MAP_OPEN: TokenKind.MAP_CLOSE,
    TokenKind.STRUCT_OPEN: TokenKind.STRUCT_CLOSE,
}


@dataclass(frozen=True, slots=True)
class Token:
    """
    Atomic unit between traversal and rendering.

    Attributes:
        kind: Token kind, selects layout and styling in the formatter.
        literal: Text of the token. For STRING and BYTES it is the raw (unquoted) text,
            for COMMENT the comment body without the leading '#'.
    """
    kind: TokenKind
    literal: str = ""

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.literal!r})"
