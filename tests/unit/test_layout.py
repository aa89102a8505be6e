"""Unit tests for the time-grid layout engine."""

import numpy as np
import pytest

from wavelane import LayoutEngine, MalformedDocument, RenderOptions, parse_document
from wavelane.figure.layout import PlacedGroup, PlacedSignal


def layout_of(signal, **config):
    doc = {"signal": signal}
    if config:
        doc["config"] = config
    return LayoutEngine().layout(parse_document(doc))


def sig(name, wave, **extra):
    return dict(name=name, wave=wave, **extra)


class TestTimeGrid:
    """Tests for column widths and offsets."""

    def test_unshrunk_columns(self):
        """Test every column is one cycle wide by default."""
        layout = layout_of([sig("d", "3.4")])

        np.testing.assert_allclose(layout.signals[0].cycle_widths, [1, 1, 1])
        assert layout.grid.width == 3 * 48

    def test_repeat_column_shrinks(self):
        """Test the repeat column of 3.4 shrinks with gap_shrink 0.5."""
        layout = layout_of([sig("d", "3.4")], gap_shrink=0.5)

        np.testing.assert_allclose(layout.signals[0].cycle_widths, [1, 0.5, 1])
        np.testing.assert_allclose(layout.grid.column_offsets, [0, 48, 72, 120])

    def test_column_shrinks_only_when_all_agree(self):
        """Test a column with a real edge on any signal keeps full width."""
        layout = layout_of([sig("a", "1.."), sig("b", "0.1")], gap_shrink=0.5)

        np.testing.assert_allclose(layout.signals[0].cycle_widths, [1, 0.5, 1])
        np.testing.assert_allclose(layout.signals[1].cycle_widths, [1, 0.5, 1])

    def test_ended_signal_allows_shrink(self):
        """Test a column past a shorter signal's end can shrink."""
        layout = layout_of([sig("a", "1."), sig("b", "0")], gap_shrink=0.5)

        assert layout.grid.column_widths == (48.0, 24.0)
        np.testing.assert_allclose(layout.signals[1].cycle_widths, [1])

    def test_shrink_never_below_minimum(self):
        """Test shrunk columns are clamped to gap_min_width."""
        layout = layout_of([sig("a", "1.")], gap_shrink=0.1)

        assert layout.grid.column_widths == (48.0, 16.0)

    def test_hscale(self):
        """Test hscale widens every column."""
        layout = layout_of([sig("a", "01")], hscale=2)

        assert layout.grid.column_widths == (96.0, 96.0)

    def test_x_at_interpolates(self):
        """Test fractional cycles interpolate inside a column."""
        layout = layout_of([sig("d", "3.4")], gap_shrink=0.5)

        assert layout.grid.x_at(1.5) == pytest.approx(60.0)
        assert layout.grid.x_at(3) == pytest.approx(120.0)

    def test_x_at_on_column_offsets(self):
        """Test whole cycles land on the column offsets."""
        layout = layout_of([sig("d", "3.4..5")], gap_shrink=0.5)
        grid = layout.grid

        for i, offset in enumerate(grid.column_offsets):
            assert grid.x_at(i) == pytest.approx(offset)
        assert grid.x_at(7) == pytest.approx(grid.width + 48.0)

    def test_xs_at_matches_x_at(self):
        """Test the vectorised lookup agrees with x_at, past the end included."""
        layout = layout_of([sig("d", "3.4..5")], gap_shrink=0.5)
        grid = layout.grid
        cycles = [0, 0.5, 1.25, 2, 3.5, 5.75, 6, 7.5]

        np.testing.assert_allclose(grid.xs_at(cycles),
                                   [grid.x_at(c) for c in cycles])

    def test_xs_at_empty_grid(self):
        """Test an empty grid maps every position to the origin."""
        layout = layout_of([sig("z", "")])

        np.testing.assert_allclose(layout.grid.xs_at([0, 1.5]), [0.0, 0.0])

    def test_period_widens_signal(self):
        """Test a period-2 signal spans twice its token count."""
        layout = layout_of([sig("c", "p.", period=2)])

        assert layout.grid.total_cycles == 4


class TestCanvas:
    """Tests for canvas size."""

    def test_schema_width_is_longest_signal(self):
        """Test shorter signals do not shrink the canvas."""
        layout = layout_of([sig("a", "0101"), sig("b", "01")])

        assert layout.schema_width == 4 * 48
        assert layout.signals[1].width == 2 * 48
        assert layout.width == pytest.approx(layout.schema_x + 4 * 48 + 8)

    def test_height_single_lane(self):
        """Test height of one lane with default spacing."""
        layout = layout_of([sig("a", "01")])

        # padding 8 + schema 8 + lane 24 + schema 8 + padding 8
        assert layout.height == 56.0

    def test_zero_cycle_signal(self):
        """Test a zero-cycle signal is laid out with no segments."""
        layout = layout_of([sig("empty", ""), sig("a", "01")])

        assert layout.signals[0].segments == ()
        assert layout.signals[0].width == 0.0
        assert layout.signals[1].slot == 1

    def test_empty_document(self):
        """Test a document without signals has only padding."""
        layout = layout_of([])

        assert layout.schema_height == 0.0
        assert layout.width == 16.0
        assert layout.height == 16.0


class TestLanes:
    """Tests for vertical placement."""

    def test_uniform_lanes(self):
        """Test lanes are evenly spaced in document order."""
        layout = layout_of([sig("a", "0"), sig("b", "1"), sig("c", "0")])

        assert [s.slot for s in layout.signals] == [0, 1, 2]
        assert [s.y for s in layout.signals] == [16.0, 56.0, 96.0]

    def test_spacer_takes_a_slot(self):
        """Test {} occupies a lane."""
        layout = layout_of([sig("a", "0"), {}, sig("b", "1")])

        assert layout.signals[1].slot == 2
        assert layout.signals[1].y == 96.0

    def test_name_column(self):
        """Test the schema starts after the widest name."""
        opts = RenderOptions()
        layout = layout_of([sig("a", "0"), sig("longer", "1")])

        assert layout.schema_x == pytest.approx(8 + opts.text_width("longer") + 16)
        assert layout.signals[0].name_at == (8.0, 28.0)


class TestGroups:
    """Tests for group brackets and indentation."""

    def test_group_margin_and_span(self):
        """Test a group adds margins and spans its members exactly."""
        layout = layout_of([["G", sig("a", "0"), sig("b", "1")]])
        group = layout.groups[0]

        assert [s.y for s in layout.signals] == [24.0, 64.0]
        assert (group.first_slot, group.last_slot) == (0, 1)
        assert (group.y_top, group.y_bottom) == (24.0, 88.0)
        assert layout.schema_height == 96.0

    def test_group_indent(self):
        """Test names move right by one indent per nesting level."""
        layout = layout_of([["outer", ["inner", sig("a", "0")]]])

        assert layout.signals[0].name_at[0] == 8 + 2 * 24
        assert [g.depth for g in layout.groups] == [1, 0]

    def test_bracket_columns(self):
        """Test nested brackets sit in their own columns."""
        layout = layout_of([["outer", ["inner", sig("a", "0")]]])
        inner, outer = layout.groups

        assert outer.bracket[1][0] == pytest.approx(8 + 0.75 * 24)
        assert inner.bracket[1][0] == pytest.approx(8 + 24 + 0.75 * 24)

    def test_empty_group_ignored(self):
        """Test a group without lanes draws nothing and adds no margin."""
        layout = layout_of([["empty"], sig("a", "0")])

        assert layout.groups == ()
        assert layout.signals[0].y == 16.0

    def test_document_order(self):
        """Test groups come before their members in emission order."""
        layout = layout_of([sig("a", "0"), ["G", sig("b", "1")]])

        kinds = [type(item) for item in layout.order]
        assert kinds == [PlacedSignal, PlacedGroup, PlacedSignal]


class TestAnchors:
    """Tests for anchor collection."""

    def test_anchor_position(self):
        """Test anchors sit at their cycle start, mid-lane."""
        layout = layout_of([sig("a", "01", node=".x")])
        anchor = layout.anchors.lookup("x")

        assert anchor.signal == "a"
        assert anchor.cycle == 1
        assert anchor.x == pytest.approx(layout.schema_x + 48)
        assert anchor.y == pytest.approx(16 + 12)

    def test_anchor_on_shrunk_grid(self):
        """Test anchors follow shrunk columns."""
        layout = layout_of([sig("a", "1.0", node="..x")], gap_shrink=0.5)

        assert layout.anchors.lookup("x").x == pytest.approx(layout.schema_x + 72)

    def test_duplicate_anchor(self):
        """Test an anchor name declared twice is rejected."""
        with pytest.raises(MalformedDocument, match="already declared"):
            layout_of([sig("a", "01", node="x"), ["G", sig("b", "10", node=".x")]])


class TestAnnotations:
    """Tests for head and foot placement."""

    def test_head_pushes_schema_down(self):
        """Test a head with title and ticks adds two rows."""
        doc = parse_document({"signal": [sig("a", "0101")],
                              "head": {"text": "T", "tick": 0}})
        layout = LayoutEngine().layout(doc)

        assert layout.schema_y == 8 + (14 + 8) + (14 + 4)
        assert layout.head.title.text == "T"
        assert [n.text for n in layout.head.numbers] == ["0", "1", "2", "3", "4"]

    def test_every(self):
        """Test every labels only every n-th position."""
        doc = parse_document({"signal": [sig("a", "0101")],
                              "foot": {"tock": 1, "every": 2}})
        layout = LayoutEngine().layout(doc)

        assert [n.text for n in layout.foot.numbers] == ["1", "3"]
        assert layout.foot.numbers[0].at[0] == pytest.approx(layout.schema_x + 24)
