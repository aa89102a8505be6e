"""Integration tests for wavelane."""

import time

import numpy as np
import pytest

from wavelane import (
    DanglingRepeat,
    InvalidCycleSymbol,
    MalformedDocument,
    UnknownAnchor,
    VerificationSuite,
    render,
    verify,
)
from wavelane.stress import generate_clock, generate_document, generate_wave
from wavelane.wave.lexer import lex_wave


BUS_READ = {
    "signal": [
        {"name": "clk", "wave": "p......"},
        ["Master",
            {"name": "req", "wave": "01..0..", "node": ".a"},
            {"name": "addr", "wave": "x3.x...", "data": ["A1"]},
        ],
        {},
        ["Slave",
            {"name": "ack", "wave": "0..1.0.", "node": "...b"},
            {"name": "rdata", "wave": "x...4x.", "data": ["D1"]},
        ],
    ],
    "edge": ["a~>b 2 cycles"],
    "head": {"text": "Bus read", "tick": 0},
    "config": {"hscale": 1},
}


class TestEndToEnd:
    """End-to-end integration tests."""

    def test_full_workflow(self):
        """Test a grouped document renders and verifies."""
        diagram = render(BUS_READ)

        assert diagram.warnings == ()
        assert len(diagram.by_role("name")) == 5
        assert len(diagram.by_role("group")) == 2
        assert len(diagram.by_role("edge")) == 1
        assert diagram.width > 0 and diagram.height > 0

        report = VerificationSuite().run_all(BUS_READ)
        assert report.passed
        assert report.n_passed == len(report.results)

    def test_convenience_verify(self):
        """Test the verify shortcut."""
        assert verify(BUS_READ)

    def test_deterministic(self):
        """Test rendering is deterministic."""
        assert render(BUS_READ) == render(BUS_READ)

    def test_deterministic_with_broken_edge(self):
        """Test diagrams with edge warnings still compare equal."""
        doc = {"signal": [{"name": "a", "wave": "01", "node": "y"}],
               "edge": ["y->q"]}

        first, second = render(doc), render(doc)

        assert len(first.warnings) == 1
        assert first == second

    def test_shrink_keeps_alignment(self):
        """Test gap shrinking keeps every signal on one grid."""
        doc = dict(BUS_READ, config={"gap_shrink": 0.5})
        diagram = render(doc)
        widths = [s.cycle_widths for s in diagram.layout.signals]

        for w in widths[1:]:
            np.testing.assert_allclose(w, widths[0][:len(w)])
        assert VerificationSuite().run_all(doc).passed


class TestPartialRender:
    """Tests for edge-resolution failures."""

    def test_unknown_anchor(self):
        """Test an unknown anchor yields a complete render and one warning."""
        doc = dict(BUS_READ, edge=["a~>b", "a->nowhere", "b->a"])
        diagram = render(doc)
        full = render(dict(BUS_READ, edge=["a~>b", "b->a"]))

        assert len(diagram.warnings) == 1
        assert isinstance(diagram.warnings[0], UnknownAnchor)
        assert diagram.warnings[0].name == "nowhere"
        assert len(diagram.by_role("edge")) == 2
        assert len(diagram.by_role("unresolved")) == 1
        assert diagram.by_role("level") == full.by_role("level")
        assert VerificationSuite().run_all(doc).passed


class TestStructuralErrors:
    """Tests for errors that abort the render."""

    def test_invalid_symbol_names_signal(self):
        """Test an invalid symbol aborts with signal and cycle."""
        doc = {"signal": [{"name": "ok", "wave": "01"}, {"name": "bad", "wave": "0?1"}]}

        with pytest.raises(InvalidCycleSymbol, match="signal 'bad', cycle 1"):
            render(doc)

    def test_dangling_repeat(self):
        """Test a leading repeat aborts the render."""
        with pytest.raises(DanglingRepeat):
            render({"signal": [{"name": "r", "wave": ".1"}]})

    def test_anchor_clipped_by_cycles(self):
        """Test an anchor cut off by the declared cycles aborts the render."""
        doc = {"signal": [{"name": "s", "wave": "0101", "node": "...x", "cycles": 2},
                          {"name": "t", "wave": "01", "node": "y"}],
               "edge": ["y->x"]}

        with pytest.raises(MalformedDocument, match="signal 's', cycle 3"):
            render(doc)

    def test_duplicate_anchor(self):
        """Test duplicate anchors abort the render."""
        doc = {"signal": [{"name": "a", "wave": "01", "node": ".x"},
                          {"name": "b", "wave": "01", "node": "x"}]}

        with pytest.raises(MalformedDocument, match="already declared"):
            render(doc)


class TestStressGenerators:
    """Tests for stress test generators."""

    def test_wave_generator(self):
        """Test generated waves lex and never open with a repeat."""
        for seed in range(20):
            wave = generate_wave(32, seed=seed)

            assert len(wave) == 32
            assert wave[0] not in ".|"
            assert len(lex_wave(wave)) == 32

    def test_wave_generator_seeded(self):
        """Test the same seed gives the same wave."""
        assert generate_wave(64, seed=7) == generate_wave(64, seed=7)

    def test_clock_generator(self):
        """Test clock waves."""
        assert generate_clock(4) == "p..."
        assert generate_clock(3, marked=True, negative=True) == "N.."
        assert generate_clock(0) == ""

    def test_document_generator(self):
        """Test generated documents render and verify."""
        for seed in range(5):
            doc = generate_document(n_signals=6, n_cycles=12, seed=seed,
                                    group_every=2, n_edges=3)

            diagram = render(doc)
            assert diagram.warnings == ()
            assert len(diagram.layout.signals) == 7
            assert VerificationSuite().run_all(doc).passed


class TestLargeScale:
    """Large-scale stress tests."""

    @staticmethod
    def _render_time(n_cycles):
        doc = {"signal": [
            {"name": "d", "wave": "01" * (n_cycles // 2)},
            {"name": "clk", "wave": "p" + "." * (n_cycles - 1)},
        ]}
        best = float("inf")
        for _ in range(2):
            start = time.perf_counter()
            render(doc)
            best = min(best, time.perf_counter() - start)
        return best

    def test_long_signals_scale_linearly(self):
        """Test 4x the cycles costs well under 16x the time."""
        small = self._render_time(1000)
        large = self._render_time(4000)

        assert large / small < 8

    def test_many_signals(self):
        """Test a wide, tall document renders on one grid."""
        doc = generate_document(n_signals=100, n_cycles=200, seed=1, n_edges=20)
        diagram = render(doc)

        assert len(diagram.layout.signals) == 101
        assert diagram.layout.grid.total_cycles == 200
        assert sum(1 for e in diagram.layout.anchors) == 100

    def test_deep_nesting(self):
        """Test deeply nested groups render without recursion limits."""
        raw = {"name": "deep", "wave": "01"}
        for i in range(2000):
            raw = [f"g{i}", raw]

        diagram = render({"signal": [raw]})

        assert len(diagram.layout.groups) == 2000
        assert len(diagram.by_role("group-label")) == 2000

    def test_unresolved_edges_do_not_accumulate(self):
        """Test every broken edge yields exactly one warning."""
        doc = generate_document(n_signals=10, n_cycles=20, seed=3, n_edges=5)
        doc["edge"] = doc["edge"] + [f"n0->ghost{i}" for i in range(4)]

        diagram = render(doc)

        assert len(diagram.warnings) == 4
        assert {w.name for w in diagram.warnings} == {f"ghost{i}" for i in range(4)}
        assert len(diagram.by_role("unresolved")) == 4
