"""
wavelane Verification Suite — Structural checks on a rendered document.

Each check renders (or re-derives) part of the pipeline and compares it
against an invariant the output must always satisfy:

  lexing_deterministic    lexing a wave twice gives equal tokens
  render_deterministic    rendering twice gives equal primitives
  coalesce_idempotent     coalescing resolved segments changes nothing
  cycle_coverage          segment cycles sum to each signal's length
  canvas_width            schema width is the longest signal's width
  lane_order              slots and lane tops increase in document order
  edge_warnings           one warning per edge with a missing anchor

Usage:
    report = VerificationSuite().run_all(document)
    assert report.passed
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import numpy as np

from wavelane.api import DocumentLike, load, render
from wavelane.figure.document import Document, compile_signal
from wavelane.figure.options import RenderOptions
from wavelane.wave.lexer import lex_wave
from wavelane.wave.segments import coalesce, signal_length

logger = logging.getLogger(__name__)

# Pixel tolerance for float comparisons
_TOL = 1e-6


@dataclass
class VerificationResult:
    """Outcome of a single check."""
    name: str
    passed: bool
    details: str = ""


@dataclass
class VerificationReport:
    """All check results for one document."""
    results: List[VerificationResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(r.passed for r in self.results)

    @property
    def n_passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failures(self) -> List[VerificationResult]:
        return [r for r in self.results if not r.passed]

    def summary(self) -> str:
        lines = [f"{self.n_passed}/{len(self.results)} checks passed"]
        for r in self.results:
            mark = "PASS" if r.passed else "FAIL"
            lines.append(f"  [{mark}] {r.name}" + (f": {r.details}" if r.details else ""))
        return "\n".join(lines)


class VerificationSuite:
    """
    Runs every structural check against one document.

    Structural errors (bad symbols, malformed documents) are not caught:
    a document that cannot render cannot be verified.
    """

    def __init__(self, options: Optional[RenderOptions] = None):
        self.options = options

    def run_all(self, document: DocumentLike) -> VerificationReport:
        doc = load(document, self.options)
        checks: List[Callable[[Document], VerificationResult]] = [
            self.check_lexing_deterministic,
            self.check_render_deterministic,
            self.check_coalesce_idempotent,
            self.check_cycle_coverage,
            self.check_canvas_width,
            self.check_lane_order,
            self.check_edge_warnings,
        ]
        report = VerificationReport([check(doc) for check in checks])
        for failure in report.failures:
            logger.warning("verification failed: %s %s", failure.name, failure.details)
        return report

    # -------------------------------------------------------------------------

    @staticmethod
    def check_lexing_deterministic(doc: Document) -> VerificationResult:
        for spec in doc.signals():
            first = lex_wave(spec.wave, spec.node, spec.name)
            second = lex_wave(spec.wave, spec.node, spec.name)
            if first != second:
                return VerificationResult("lexing_deterministic", False,
                                          f"signal {spec.name!r}")
        return VerificationResult("lexing_deterministic", True)

    @staticmethod
    def check_render_deterministic(doc: Document) -> VerificationResult:
        return VerificationResult("render_deterministic", render(doc) == render(doc))

    @staticmethod
    def check_coalesce_idempotent(doc: Document) -> VerificationResult:
        for spec in doc.signals():
            segments = compile_signal(spec).segments
            if coalesce(segments) != segments:
                return VerificationResult("coalesce_idempotent", False,
                                          f"signal {spec.name!r}")
        return VerificationResult("coalesce_idempotent", True)

    @staticmethod
    def check_cycle_coverage(doc: Document) -> VerificationResult:
        for spec in doc.signals():
            sig = compile_signal(spec)
            covered = signal_length(sig.segments)
            if covered != sig.length:
                return VerificationResult(
                    "cycle_coverage", False,
                    f"signal {spec.name!r} covers {covered} of {sig.length} cycles")
        return VerificationResult("cycle_coverage", True)

    @staticmethod
    def check_canvas_width(doc: Document) -> VerificationResult:
        layout = render(doc).layout
        grid = layout.grid
        expected = float(np.sum(grid.column_widths)) if grid.total_cycles else 0.0
        if abs(layout.schema_width - expected) > _TOL:
            return VerificationResult(
                "canvas_width", False,
                f"schema width {layout.schema_width} != {expected}")
        right = layout.schema_x + layout.schema_width
        for sig in layout.signals:
            if sig.segments and sig.x1 > right + _TOL:
                return VerificationResult(
                    "canvas_width", False, f"signal {sig.name!r} exceeds the canvas")
        longest = max((sig.width for sig in layout.signals), default=0.0)
        if abs(longest - layout.schema_width) > _TOL:
            return VerificationResult(
                "canvas_width", False,
                f"longest signal is {longest}px, schema is {layout.schema_width}px")
        return VerificationResult("canvas_width", True)

    @staticmethod
    def check_lane_order(doc: Document) -> VerificationResult:
        signals = render(doc).layout.signals
        slots = np.array([s.slot for s in signals])
        tops = np.array([s.y for s in signals])
        ordered = bool(np.all(np.diff(slots) > 0) and np.all(np.diff(tops) > 0))
        return VerificationResult("lane_order", ordered)

    @staticmethod
    def check_edge_warnings(doc: Document) -> VerificationResult:
        diagram = render(doc)
        anchors = diagram.layout.anchors
        missing = sum(1 for e in doc.edges
                      if e.source not in anchors or e.target not in anchors)
        ok = missing == len(diagram.warnings)
        return VerificationResult(
            "edge_warnings", ok,
            "" if ok else f"{missing} broken edges, {len(diagram.warnings)} warnings")
