"""
Weekly planning workbook parsing.
"""

import html
import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Dict, List, Optional, Tuple
from zipfile import BadZipFile

import pandas as pd
from pandas import DataFrame

from .constants import SLOT_TIMES, WEEKDAY_BY_SHEET, WEEKDAY_NAMES, weekday_slots
from .exceptions import MalformedTemplateError, UnknownReferenceError
from .grammar import cell_text, parse_cell
from .models import CellSyntaxError, ParsedTemplate, Roster, TemplateEntry

logger = logging.getLogger(__name__)


def column_letter(col_idx: int) -> str:
    """Spreadsheet column name of a zero-based column index"""
    letters = ""
    col_idx += 1
    while col_idx:
        col_idx, remainder = divmod(col_idx - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def cell_location(sheet: str, row: int, column: int) -> str:
    return f"sheet {html.escape(sheet, quote=False)}, cell {column_letter(column)}{row + 1}"


@dataclass(frozen=True)
class CellIssue:
    """Empty or malformed cell"""

    sheet: str
    row: int
    column: int
    staff_name: str
    weekday: int
    slot: int
    reason: str

    def __str__(self):
        return (
            f"{html.escape(self.staff_name, quote=False)}, "
            f"{WEEKDAY_NAMES[self.weekday]} slot {self.slot} "
            f"({cell_location(self.sheet, self.row, self.column)}): "
            f"{html.escape(self.reason, quote=False)}"
        )


@dataclass(frozen=True)
class UnknownName:
    """Name that does not match the roster"""

    kind: str
    name: str
    sheet: str
    row: int
    column: int

    def __str__(self):
        return (
            f'Unknown {self.kind} "{html.escape(self.name, quote=False)}" '
            f"({cell_location(self.sheet, self.row, self.column)})"
        )


def read_workbook(content: bytes) -> Dict[str, DataFrame]:
    """
    Reads every sheet of an .xlsx document

    Args:
        content: Raw workbook bytes

    Returns:
        Mapping of sheet name to DataFrame, cells kept as text

    Raises:
        MalformedTemplateError: The document is not a readable workbook
    """
    try:
        return pd.read_excel(
            BytesIO(content),
            sheet_name=None,
            header=None,
            dtype=str,
            engine="openpyxl",
        )
    except (BadZipFile, ValueError, KeyError, OSError) as e:
        logger.warning(f"[Planning] Unreadable workbook: {e}")
        raise MalformedTemplateError(
            [f"The document is not a readable .xlsx workbook: {html.escape(str(e), quote=False)}"]
        )


class TemplateParser:
    """Parser for the weekly planning workbook"""

    def __init__(self, roster: Roster):
        self.roster = roster
        self._malformed: List[CellIssue] = []
        self._unknown: List[UnknownName] = []

    def parse(self, workbook: Dict[str, DataFrame]) -> ParsedTemplate:
        """
        Parses a workbook into template entries

        Every issue of the workbook is collected before raising.

        Args:
            workbook: Sheets as returned by read_workbook

        Returns:
            ParsedTemplate with the entries and the slot boundaries

        Raises:
            MalformedTemplateError: Some cells are empty or malformed
            UnknownReferenceError: Some staff or child names are unknown
        """
        self._malformed = []
        self._unknown = []
        entries: List[TemplateEntry] = []

        for sheet_name, df in workbook.items():
            weekday = WEEKDAY_BY_SHEET.get(str(sheet_name).strip().lower())
            if weekday is None:
                logger.debug(f"[Planning] Sheet '{sheet_name}' ignored")
                continue
            entries.extend(self._parse_sheet(str(sheet_name), weekday, df))

        if self._malformed:
            raise MalformedTemplateError(self._malformed)
        if self._unknown:
            raise UnknownReferenceError(self._unknown)

        logger.info(f"[Planning] Parsed {len(entries)} template entries")
        return ParsedTemplate(entries=entries, slot_times=dict(SLOT_TIMES))

    def _parse_sheet(self, sheet: str, weekday: int, df: DataFrame) -> List[TemplateEntry]:
        entries = []
        for row_idx in range(1, len(df)):
            staff_name = cell_text(df.iat[row_idx, 0])
            if not staff_name:
                continue

            staff = self.roster.find_staff(staff_name)
            if staff is None:
                self._unknown.append(UnknownName("staff member", staff_name, sheet, row_idx, 0))

            for slot in weekday_slots(weekday):
                raw = df.iat[row_idx, slot] if slot < df.shape[1] else None
                parsed = parse_cell(raw)
                if isinstance(parsed, CellSyntaxError):
                    self._malformed.append(
                        CellIssue(sheet, row_idx, slot, staff_name, weekday, slot, parsed.reason)
                    )
                    continue

                child_ids = self._resolve_children(parsed, sheet, row_idx, slot)
                if staff is None or child_ids is None:
                    continue

                start, end = SLOT_TIMES[slot]
                entries.append(
                    TemplateEntry(
                        staff_id=staff.id,
                        staff_name=staff.fullname,
                        weekday=weekday,
                        slot=slot,
                        start=start,
                        end=end,
                        activity=html.escape(parsed.activity, quote=True),
                        child_ids=child_ids,
                    )
                )

        return entries

    def _resolve_children(
        self, parsed, sheet: str, row_idx: int, col_idx: int
    ) -> Optional[Tuple[int, ...]]:
        """Resolve the child names of a cell, None when one of them is unknown"""
        if parsed.is_break:
            return ()

        child_ids = list(self.roster.child_ids) if parsed.wildcard else []
        resolved = True
        for name in parsed.names:
            child = self.roster.find_child(name)
            if child is None:
                self._unknown.append(UnknownName("child", name, sheet, row_idx, col_idx))
                resolved = False
            elif child.id not in child_ids:
                child_ids.append(child.id)

        return tuple(child_ids) if resolved else None
