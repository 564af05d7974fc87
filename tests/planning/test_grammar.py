import math

from planbot.services.planning.grammar import TokenKind, cell_text, parse_cell, tokenize
from planbot.services.planning.models import CellSyntaxError, ParsedCell


class TestCellText:
    """Test cases for raw cell conversion"""

    def test_missing_values_are_empty(self):
        assert cell_text(None) == ""
        assert cell_text(math.nan) == ""
        assert cell_text(float("nan")) == ""

    def test_values_are_stripped(self):
        assert cell_text("  Atelier – Léa  ") == "Atelier – Léa"
        assert cell_text(12) == "12"


class TestTokenize:
    """Test cases for the cell tokenizer"""

    def test_dash_and_commas(self):
        tokens = tokenize("Atelier – Léa, Tom")

        assert [token.kind for token in tokens] == [
            TokenKind.TEXT,
            TokenKind.DASH,
            TokenKind.TEXT,
            TokenKind.COMMA,
            TokenKind.TEXT,
        ]
        assert tokens[1].position == 8

    def test_em_dash_is_a_separator(self):
        tokens = tokenize("Sport—Tom")
        assert [token.kind for token in tokens] == [
            TokenKind.TEXT,
            TokenKind.DASH,
            TokenKind.TEXT,
        ]

    def test_hyphen_is_text(self):
        tokens = tokenize("Jean-Pierre")
        assert len(tokens) == 1
        assert tokens[0].text == "Jean-Pierre"


class TestParseCell:
    """Test cases for cell parsing"""

    def test_activity_and_children(self):
        parsed = parse_cell("Atelier peinture – Léa Dupont, Tom Bernard")

        assert parsed == ParsedCell(
            activity="Atelier peinture", names=("Léa Dupont", "Tom Bernard")
        )

    def test_whitespace_is_collapsed(self):
        parsed = parse_cell("  Atelier   peinture–Léa   Dupont ,Tom ")

        assert parsed.activity == "Atelier peinture"
        assert parsed.names == ("Léa Dupont", "Tom")

    def test_only_first_dash_splits_activity(self):
        """A dash in the child list is an error, not a second activity"""
        parsed = parse_cell("Sport – Léa – Tom")

        assert isinstance(parsed, CellSyntaxError)
        assert parsed.reason == "unexpected dash at position 13 in child list"

    def test_break_needs_no_children(self):
        assert parse_cell("pause") == ParsedCell(activity="pause", is_break=True)
        assert parse_cell("Pause") == ParsedCell(activity="Pause", is_break=True)

    def test_break_ignores_children(self):
        parsed = parse_cell("pause – Léa")

        assert parsed.is_break
        assert parsed.names == ()

    def test_wildcard(self):
        parsed = parse_cell("Chant – tous")

        assert parsed.wildcard
        assert parsed.names == ()

    def test_wildcard_keeps_other_names(self):
        parsed = parse_cell("Chant – TOUS, Léa")

        assert parsed.wildcard
        assert parsed.names == ("Léa",)

    def test_empty_cell(self):
        assert parse_cell("") == CellSyntaxError("empty cell")
        assert parse_cell(None) == CellSyntaxError("empty cell")
        assert parse_cell(math.nan) == CellSyntaxError("empty cell")

    def test_missing_dash(self):
        parsed = parse_cell("Atelier")

        assert isinstance(parsed, CellSyntaxError)
        assert parsed.reason == 'missing " – " and child list after activity "Atelier"'

    def test_missing_activity(self):
        parsed = parse_cell(" – Léa")

        assert isinstance(parsed, CellSyntaxError)
        assert parsed.reason == "missing activity before the dash"

    def test_empty_child_list(self):
        for raw in ("Atelier – ", "Atelier – , ,"):
            parsed = parse_cell(raw)
            assert isinstance(parsed, CellSyntaxError)
            assert parsed.reason == 'empty child list for activity "Atelier"'
