"""
Cell grammar of the weekly planning workbook.

    cell     := activity [ DASH names ]
    names    := name { COMMA name }
    DASH     := "–" | "—"

The first dash ends the activity. "pause" needs no names and ignores any that
follow, "tous" stands for every child of the roster.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Union

import pandas as pd

from .constants import (
    ACTIVITY_SEPARATORS,
    BREAK_ACTIVITY,
    NAME_SEPARATOR,
    WILDCARD_TOKEN,
)
from .models import CellSyntaxError, ParsedCell, normalize_name


class TokenKind(Enum):
    TEXT = "text"
    DASH = "dash"
    COMMA = "comma"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    position: int


def cell_text(value) -> str:
    """Converts a raw sheet value to text, NaN and None giving an empty string"""
    if value is None:
        return ""
    if not isinstance(value, str) and pd.isna(value):
        return ""
    return str(value).strip()


def tokenize(raw: str) -> List[Token]:
    """Splits a cell into text, dash and comma tokens"""
    tokens = []
    buffer = []
    buffer_start = 0

    def flush():
        if buffer:
            tokens.append(Token(TokenKind.TEXT, "".join(buffer), buffer_start))
            buffer.clear()

    for position, char in enumerate(raw):
        if char in ACTIVITY_SEPARATORS:
            flush()
            tokens.append(Token(TokenKind.DASH, char, position))
        elif char == NAME_SEPARATOR:
            flush()
            tokens.append(Token(TokenKind.COMMA, char, position))
        else:
            if not buffer:
                buffer_start = position
            buffer.append(char)
    flush()

    return tokens


def parse_cell(raw) -> Union[ParsedCell, CellSyntaxError]:
    """
    Parses one workbook cell

    Args:
        raw: Cell value as read from the sheet

    Returns:
        ParsedCell on success, CellSyntaxError describing the problem otherwise
    """
    text = cell_text(raw)
    if not text:
        return CellSyntaxError("empty cell")

    tokens = tokenize(text)
    dash_index = next(
        (i for i, token in enumerate(tokens) if token.kind is TokenKind.DASH), None
    )
    activity_tokens = tokens if dash_index is None else tokens[:dash_index]
    activity = " ".join("".join(token.text for token in activity_tokens).split())

    if not activity:
        return CellSyntaxError("missing activity before the dash", text)

    if activity.lower() == BREAK_ACTIVITY:
        return ParsedCell(activity=activity, is_break=True)

    if dash_index is None:
        return CellSyntaxError(
            f'missing " – " and child list after activity "{activity}"', text
        )

    names = []
    current = []
    for token in tokens[dash_index + 1 :]:
        if token.kind is TokenKind.DASH:
            return CellSyntaxError(
                f"unexpected dash at position {token.position + 1} in child list", text
            )
        if token.kind is TokenKind.COMMA:
            names.append(" ".join("".join(current).split()))
            current = []
        else:
            current.append(token.text)
    names.append(" ".join("".join(current).split()))
    names = [name for name in names if name]

    if not names:
        return CellSyntaxError(f'empty child list for activity "{activity}"', text)

    wildcard = any(normalize_name(name) == WILDCARD_TOKEN for name in names)
    if wildcard:
        names = [name for name in names if normalize_name(name) != WILDCARD_TOKEN]

    return ParsedCell(activity=activity, names=tuple(names), wildcard=wildcard)
