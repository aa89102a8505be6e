"""Unit tests for the wave lexer."""

import pytest

from wavelane import (
    CycleTag,
    CycleToken,
    DanglingRepeat,
    InvalidCycleSymbol,
    MalformedDocument,
    WaveLexer,
    lex_wave,
)
from wavelane.wave.types import Transition


class TestSymbols:
    """Tests for single-symbol meanings."""

    def test_levels(self):
        """Test 0 and 1 map to low and high."""
        tokens = lex_wave("01")

        assert [t.tag for t in tokens] == [CycleTag.LOW, CycleTag.HIGH]
        assert [t.index for t in tokens] == [0, 1]

    def test_sharp_and_marked(self):
        """Test h/l and H/L tags."""
        tokens = lex_wave("hlHL")

        assert [t.tag for t in tokens] == [
            CycleTag.HIGH_SHARP, CycleTag.LOW_SHARP,
            CycleTag.HIGH_MARKED, CycleTag.LOW_MARKED,
        ]
        assert all(t.tag.is_sharp for t in tokens)
        assert tokens[2].tag.is_marked

    def test_clocks(self):
        """Test p/n/P/N are clock tags."""
        tokens = lex_wave("pnPN")

        assert all(t.tag.is_clock for t in tokens)
        assert tokens[2].tag == CycleTag.CLOCK_POS_MARKED

    def test_high_z_and_dont_care(self):
        """Test z and x tags."""
        tokens = lex_wave("zx")

        assert tokens[0].tag == CycleTag.HIGH_Z
        assert tokens[1].tag == CycleTag.DONT_CARE

    def test_data_colors(self):
        """Test digits select colours and '=' uses colour 2."""
        tokens = lex_wave("=39")

        assert [t.tag for t in tokens] == [CycleTag.DATA] * 3
        assert [t.color for t in tokens] == [2, 3, 9]

    def test_empty_wave(self):
        """Test empty wave lexes to no tokens."""
        assert lex_wave("") == ()


class TestRepeatsAndGaps:
    """Tests for '.' and '|' resolution."""

    def test_repeat_takes_previous(self):
        """Test '.' resolves to the previous tag."""
        tokens = lex_wave("1..")

        assert tokens[1].tag == CycleTag.REPEAT
        assert tokens[1].resolved == CycleTag.HIGH
        assert tokens[2].resolved == CycleTag.HIGH

    def test_repeat_keeps_data_color(self):
        """Test '.' after a data symbol keeps its colour."""
        tokens = lex_wave("5.")

        assert tokens[1].resolved == CycleTag.DATA
        assert tokens[1].color == 5

    def test_gap_continues_previous(self):
        """Test '|' continues the previous state."""
        tokens = lex_wave("0|")

        assert tokens[1].tag == CycleTag.GAP
        assert tokens[1].resolved == CycleTag.LOW

    def test_leading_gap_is_dont_care(self):
        """Test a leading '|' continues an undefined state."""
        tokens = lex_wave("|1")

        assert tokens[0].resolved == CycleTag.DONT_CARE

    def test_leading_repeat_raises(self):
        """Test a leading '.' is a dangling repeat."""
        with pytest.raises(DanglingRepeat, match="no prior level"):
            lex_wave(".01", name="bad")

    def test_leading_repeat_with_initial(self):
        """Test a leading '.' repeats the initial token when one is given."""
        initial = CycleToken(0, "1", CycleTag.HIGH, CycleTag.HIGH)
        tokens = WaveLexer("sig", initial).lex(".0")

        assert tokens[0].resolved == CycleTag.HIGH
        assert tokens[1].previous == CycleTag.HIGH


class TestInlineLabels:
    """Tests for inline [label] syntax."""

    def test_inline_label(self):
        """Test a bracketed label binds to the preceding data symbol."""
        tokens = lex_wave("=[ADDR].4[0x10]")

        assert len(tokens) == 3
        assert tokens[0].text == "ADDR"
        assert tokens[1].text is None
        assert tokens[2].text == "0x10"

    def test_label_does_not_consume_cycles(self):
        """Test token indices skip label characters."""
        tokens = lex_wave("3[A]0")

        assert [t.index for t in tokens] == [0, 1]

    def test_stray_bracket_raises(self):
        """Test '[' after a non-data symbol is rejected."""
        with pytest.raises(InvalidCycleSymbol, match="Inline label"):
            lex_wave("1[A]")

    def test_unterminated_label_raises(self):
        """Test a label without ']' is rejected."""
        with pytest.raises(InvalidCycleSymbol, match="Unterminated"):
            lex_wave("=[ADDR")


class TestErrors:
    """Tests for invalid input."""

    def test_invalid_symbol(self):
        """Test unknown characters name the signal and cycle."""
        with pytest.raises(InvalidCycleSymbol) as excinfo:
            lex_wave("01q", name="data")

        err = excinfo.value
        assert err.symbol == "q"
        assert err.signal == "data"
        assert err.index == 2
        assert "signal 'data', cycle 2" in str(err)

    def test_errors_are_value_errors(self):
        """Test the error hierarchy is rooted in ValueError."""
        with pytest.raises(ValueError):
            lex_wave("0?")


class TestNodes:
    """Tests for anchor alignment."""

    def test_node_string(self):
        """Test node characters align with tokens."""
        tokens = lex_wave("010", "a.b")

        assert [t.anchor for t in tokens] == ["a", None, "b"]

    def test_node_string_shorter_than_wave(self):
        """Test missing node characters mean no anchor."""
        tokens = lex_wave("0101", "a")

        assert [t.anchor for t in tokens] == ["a", None, None, None]

    def test_node_list(self):
        """Test a list of names allows multi-character anchors."""
        tokens = lex_wave("01", [None, "start"])

        assert tokens[1].anchor == "start"

    def test_node_aligns_with_labelled_tokens(self):
        """Test inline labels do not shift node alignment."""
        tokens = lex_wave("=[A]=[B]", ".b")

        assert tokens[1].anchor == "b"

    def test_anchor_past_end_raises(self):
        """Test anchors beyond the last token are rejected."""
        with pytest.raises(MalformedDocument, match="past the end"):
            lex_wave("01", "..a", name="s")


class TestEdges:
    """Tests for per-token edge direction."""

    def test_rising_and_falling(self):
        """Test level changes report their direction."""
        tokens = lex_wave("010")

        assert tokens[0].edge == Transition.NONE
        assert tokens[1].edge == Transition.RISING
        assert tokens[2].edge == Transition.FALLING

    def test_repeat_has_no_edge(self):
        """Test repeats never start an edge."""
        tokens = lex_wave("1.")

        assert tokens[1].edge == Transition.NONE

    def test_edge_into_clock(self):
        """Test a positive clock opens high."""
        tokens = lex_wave("0p")

        assert tokens[1].edge == Transition.RISING


class TestDeterminism:
    """Tests for lexing determinism."""

    def test_same_input_same_tokens(self):
        """Test lexing twice gives equal tokens."""
        wave = "01.x=[A]|pP3.4"

        assert lex_wave(wave, "a") == lex_wave(wave, "a")
