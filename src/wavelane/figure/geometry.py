"""
wavelane Geometry Emitter — Layout → drawing primitives.
========================================================

A pure mapping from the laid-out model to an ordered tuple of immutable
``Primitive``s. Nothing is measured or moved here; every coordinate comes
from the ``Layout`` or is a fixed template offset around it.

Emission order:
  1. Head
  2. Document order: group bracket and label, then per signal its name,
     waveform and gap markers
  3. Foot
  4. Resolved edges in declaration order (arrows above waveforms)
  5. Markers for unresolved edges

Boundary between two segments at ``xb`` (``t`` = transition offset):

  sharp (h, l, H, L, clocks)   vertical step at xb
  seamless continuation        nothing, both ends meet at xb
  otherwise                    a crossing over [xb - t, xb + t]:
                                 level → level   slant (bezier via z)
                                 level → box     fan into the box corners
                                 box → level     fan out of the box corners
                                 box → box       X
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from wavelane.errors import UnknownAnchor
from wavelane.figure.edges import (
    EdgeResult,
    Point,
    ResolvedEdge,
    UnresolvedEdge,
)
from wavelane.figure.layout import (
    Layout,
    PlacedAnnotation,
    PlacedGroup,
    PlacedSegment,
    PlacedSignal,
)
from wavelane.figure.options import RenderOptions
from wavelane.wave.types import Level, SegmentKind

HATCH_PATTERN_ID = "wavelane-hatch"

ARROW_LENGTH = 8.0
ARROW_HALF_WIDTH = 3.0
MARKER_SIZE = 3.0
GAP_SKEW = 4.0


class PrimitiveKind(Enum):
    RECT = "rect"
    POLYLINE = "polyline"
    BEZIER = "bezier"
    TEXT = "text"
    BRACKET = "bracket"


@dataclass(frozen=True)
class Primitive:
    """
    One drawing instruction in absolute pixels.

    Attributes:
        kind: Primitive kind
        points: RECT: (top-left, bottom-right); POLYLINE / BRACKET: vertices;
            BEZIER: four control points; TEXT: (anchor,)
        text: Text content (TEXT only)
        style: Presentation attributes as (name, value) pairs
        role: What the primitive depicts ("level", "transition", "box", ...)
        closed: POLYLINE is a closed, filled shape
    """
    kind: PrimitiveKind
    points: Tuple[Point, ...]
    text: Optional[str] = None
    style: Tuple[Tuple[str, str], ...] = ()
    role: str = ""
    closed: bool = False

    @property
    def attrs(self) -> Dict[str, str]:
        return dict(self.style)


@dataclass(frozen=True)
class Diagram:
    """Emitter output: primitives, canvas size and edge warnings."""
    primitives: Tuple[Primitive, ...]
    width: float
    height: float
    warnings: Tuple[UnknownAnchor, ...] = ()
    layout: Optional[Layout] = field(default=None, compare=False, repr=False)

    def by_role(self, role: str) -> Tuple[Primitive, ...]:
        return tuple(p for p in self.primitives if p.role == role)


def fmt(value: float) -> str:
    """Compact, stable number formatting."""
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


# =============================================================================
# STYLES
# =============================================================================

class _Styles:
    """Style tuples shared by every primitive of one emission."""

    def __init__(self, opts: RenderOptions):
        width = fmt(opts.stroke_width)
        self.opts = opts
        self.line = (("fill", "none"), ("stroke", opts.stroke),
                     ("stroke-width", width))
        self.edge = (("fill", "none"), ("stroke", opts.edge_color),
                     ("stroke-width", width))
        self.arrow = (("fill", opts.edge_color), ("stroke", "none"))
        self.marker = (("fill", opts.stroke), ("stroke", "none"))
        self.unresolved = (("fill", "none"), ("stroke", opts.error_color),
                           ("stroke-width", width))
        self.blank = (("fill", "#FFFFFF"), ("stroke", "none"))

    def fill(self, color: str) -> Tuple[Tuple[str, str], ...]:
        return (("fill", color), ("stroke", "none"))

    def text(self, anchor: str = "middle", color: Optional[str] = None,
             **extra: str) -> Tuple[Tuple[str, str], ...]:
        style = [("fill", color or self.opts.text_color),
                 ("font-family", self.opts.font_family),
                 ("font-size", fmt(self.opts.font_size)),
                 ("text-anchor", anchor),
                 ("dominant-baseline", "middle")]
        style.extend((k.replace("_", "-"), v) for k, v in extra.items())
        return tuple(style)


def _polyline(points, style, role, closed=False) -> Primitive:
    return Primitive(PrimitiveKind.POLYLINE, tuple(points), style=style,
                     role=role, closed=closed)


# =============================================================================
# WAVEFORMS
# =============================================================================

@dataclass(frozen=True)
class _BoxEnd:
    """One end of a data / don't-care box.

    ``x`` is where the top and bottom edges stop; ``points`` are the fill
    outline at this end, ordered top to bottom.
    """
    x: float
    points: Tuple[Point, ...]
    stroked: bool = False


def _line_y(placed: PlacedSegment, top: float, h: float, entry: bool) -> Optional[float]:
    seg = placed.segment
    if seg.kind == SegmentKind.LEVEL:
        return top + seg.level.y_fraction * h
    if seg.kind == SegmentKind.CLOCK:
        level = placed.pulses[0][1] if entry else placed.pulses[-1][1]
        return top + level.y_fraction * h
    return None


def _seamless(a: PlacedSegment, b: PlacedSegment) -> bool:
    sa, sb = a.segment, b.segment
    if sa.kind != sb.kind or not sa.is_box:
        return False
    if sa.kind == SegmentKind.GAP:
        return True
    return sb.continuation and sa.color == sb.color


class _WaveEmitter:
    """Primitives for the waveform of one placed signal."""

    def __init__(self, sig: PlacedSignal, styles: _Styles):
        self.sig = sig
        self.styles = styles
        self.opts = styles.opts
        self.top = sig.y
        self.h = self.opts.wave_height
        self.bottom = sig.y + self.h
        self.mid = sig.y + self.h / 2
        self.t = self.opts.transition_offset

    def emit(self) -> List[Primitive]:
        segs = self.sig.segments
        if not segs:
            return []

        n = len(segs)
        # per segment: line start/end x, or box ends
        starts: List = [None] * n
        ends: List = [None] * n
        joints: List[List[Primitive]] = [[] for _ in range(n)]

        first, last = segs[0], segs[-1]
        starts[0] = self._open_end(first, first.x0)
        ends[-1] = self._open_end(last, last.x1)

        for i in range(n - 1):
            ends[i], starts[i + 1], joints[i] = self._boundary(segs[i], segs[i + 1])

        out: List[Primitive] = []
        for i, placed in enumerate(segs):
            out.extend(self._body(placed, starts[i], ends[i]))
            out.extend(self._markers(placed, segs[i - 1] if i else None))
            out.extend(joints[i])

        for placed in segs:
            for x in placed.gap_marks:
                out.extend(self._gap_mark(x))
        return out

    # -------------------------------------------------------------------------
    # Boundaries
    # -------------------------------------------------------------------------

    def _open_end(self, placed: PlacedSegment, x: float):
        if placed.segment.is_box:
            return _BoxEnd(x, ((x, self.top), (x, self.bottom)), stroked=True)
        return x

    def _boundary(self, a: PlacedSegment, b: PlacedSegment):
        xb, t = b.x0, self.t
        ya = _line_y(a, self.top, self.h, entry=False)
        yb = _line_y(b, self.top, self.h, entry=True)
        line = self.styles.line
        top, bottom, mid = self.top, self.bottom, self.mid

        if a.segment.sharp or b.segment.sharp:
            joint = []
            if ya is not None and yb is not None and ya != yb:
                joint.append(_polyline(((xb, ya), (xb, yb)), line, "transition"))
            end = xb if ya is not None else _BoxEnd(
                xb, ((xb, top), (xb, bottom)), stroked=True)
            start = xb if yb is not None else _BoxEnd(
                xb, ((xb, top), (xb, bottom)), stroked=True)
            return end, start, joint

        if ya is not None and yb is not None:
            if ya == yb:
                return xb, xb, []
            if Level.MIDDLE in (a.segment.level, b.segment.level):
                curve = Primitive(PrimitiveKind.BEZIER,
                                  ((xb - t, ya), (xb, ya), (xb, yb), (xb + t, yb)),
                                  style=line, role="transition")
                return xb - t, xb + t, [curve]
            slant = _polyline(((xb - t, ya), (xb + t, yb)), line, "transition")
            return xb - t, xb + t, [slant]

        if _seamless(a, b):
            seam = ((xb, top), (xb, bottom))
            return _BoxEnd(xb, seam), _BoxEnd(xb, seam), []

        if ya is not None:
            fan = _polyline(((xb + t, top), (xb - t, ya), (xb + t, bottom)),
                            line, "transition")
            start = _BoxEnd(xb + t, ((xb + t, top), (xb - t, ya), (xb + t, bottom)))
            return xb - t, start, [fan]

        if yb is not None:
            fan = _polyline(((xb - t, top), (xb + t, yb), (xb - t, bottom)),
                            line, "transition")
            end = _BoxEnd(xb - t, ((xb - t, top), (xb + t, yb), (xb - t, bottom)))
            return end, xb + t, [fan]

        cross = [
            _polyline(((xb - t, top), (xb + t, bottom)), line, "transition"),
            _polyline(((xb - t, bottom), (xb + t, top)), line, "transition"),
        ]
        end = _BoxEnd(xb - t, ((xb - t, top), (xb, mid), (xb - t, bottom)))
        start = _BoxEnd(xb + t, ((xb + t, top), (xb, mid), (xb + t, bottom)))
        return end, start, cross

    # -------------------------------------------------------------------------
    # Bodies
    # -------------------------------------------------------------------------

    def _body(self, placed: PlacedSegment, start, end) -> List[Primitive]:
        seg = placed.segment
        line = self.styles.line

        if seg.kind == SegmentKind.LEVEL:
            y = self.top + seg.level.y_fraction * self.h
            return [_polyline(((start, y), (end, y)), line, "level")]

        if seg.kind == SegmentKind.CLOCK:
            return [_polyline(self._clock_points(placed), line, "clock")]

        if seg.kind == SegmentKind.DATA:
            fill = self.opts.background(seg.color)
        else:
            fill = f"url(#{HATCH_PATTERN_ID})"

        outline = tuple(reversed(start.points)) + end.points
        out = [_polyline(outline, self.styles.fill(fill), "fill", closed=True)]
        out.append(_polyline(((start.x, self.top), (end.x, self.top)), line, "box"))
        out.append(_polyline(((start.x, self.bottom), (end.x, self.bottom)), line, "box"))
        for box_end in (start, end):
            if box_end.stroked:
                out.append(_polyline(box_end.points, line, "box"))

        if seg.kind == SegmentKind.DATA and seg.label:
            centre = ((start.x + end.x) / 2, self.mid)
            out.append(Primitive(PrimitiveKind.TEXT, (centre,), text=seg.label,
                                 style=self.styles.text(), role="label"))
        return out

    def _clock_points(self, placed: PlacedSegment) -> Tuple[Point, ...]:
        ys = {level: self.top + level.y_fraction * self.h
              for level in (Level.LOW, Level.HIGH)}
        level = placed.pulses[0][1]
        points = [(placed.x0, ys[level])]
        for x, nxt in placed.pulses[1:]:
            points.append((x, ys[level]))
            points.append((x, ys[nxt]))
            level = nxt
        points.append((placed.x1, ys[level]))
        return tuple(points)

    # -------------------------------------------------------------------------
    # Markers
    # -------------------------------------------------------------------------

    def _arrow_marker(self, x: float, up: bool) -> Primitive:
        s, mid = MARKER_SIZE, self.mid
        if up:
            points = ((x - s, mid + s), (x, mid - s), (x + s, mid + s))
        else:
            points = ((x - s, mid - s), (x, mid + s), (x + s, mid - s))
        return _polyline(points, self.styles.marker, "marker", closed=True)

    def _markers(self, placed: PlacedSegment,
                 previous: Optional[PlacedSegment]) -> List[Primitive]:
        seg = placed.segment
        if not seg.marked:
            return []

        if seg.kind == SegmentKind.CLOCK:
            target = Level.HIGH if seg.rising else Level.LOW
            out = []
            for i, (x, level) in enumerate(placed.pulses):
                if level != target:
                    continue
                if i == 0 and previous is not None:
                    before = _line_y(previous, self.top, self.h, entry=False)
                    if before == self.top + level.y_fraction * self.h:
                        continue
                out.append(self._arrow_marker(x, up=seg.rising))
            return out

        if previous is None:
            return []
        before = _line_y(previous, self.top, self.h, entry=False)
        after = self.top + seg.level.y_fraction * self.h
        if before == after:
            return []
        return [self._arrow_marker(placed.x0, up=seg.level == Level.HIGH)]

    def _gap_mark(self, x: float) -> List[Primitive]:
        s = GAP_SKEW
        low, high = self.bottom + 2, self.top - 2
        left = ((x - s - 1, low), (x - 1 + s, high))
        right = ((x - s + 1, low), (x + 1 + s, high))
        body = (left[0], left[1], right[1], right[0])
        return [
            _polyline(body, self.styles.blank, "gap", closed=True),
            _polyline(left, self.styles.line, "gap"),
            _polyline(right, self.styles.line, "gap"),
        ]


# =============================================================================
# FIGURE
# =============================================================================

def _annotation(note: Optional[PlacedAnnotation], styles: _Styles) -> List[Primitive]:
    if note is None:
        return []
    out = []
    if note.title is not None:
        out.append(Primitive(PrimitiveKind.TEXT, (note.title.at,), text=note.title.text,
                             style=styles.text(font_weight="bold"), role="title"))
    for label in note.numbers:
        out.append(Primitive(PrimitiveKind.TEXT, (label.at,), text=label.text,
                             style=styles.text(), role="tick"))
    return out


def _group(group: PlacedGroup, styles: _Styles) -> List[Primitive]:
    out = [Primitive(PrimitiveKind.BRACKET, group.bracket, style=styles.line,
                     role="group")]
    if group.label:
        x, y = group.label_at
        out.append(Primitive(
            PrimitiveKind.TEXT, (group.label_at,), text=group.label,
            style=styles.text(transform=f"rotate(-90 {fmt(x)} {fmt(y)})"),
            role="group-label"))
    return out


def _signal(sig: PlacedSignal, styles: _Styles) -> List[Primitive]:
    out = [Primitive(PrimitiveKind.TEXT, (sig.name_at,), text=sig.name,
                     style=styles.text(anchor="start"), role="name")]
    out.extend(_WaveEmitter(sig, styles).emit())
    return out


def _arrowhead(tip: Point, angle: float, styles: _Styles) -> Primitive:
    dx, dy = math.cos(angle), math.sin(angle)
    bx, by = tip[0] - ARROW_LENGTH * dx, tip[1] - ARROW_LENGTH * dy
    w = ARROW_HALF_WIDTH
    points = ((bx - w * dy, by + w * dx), tip, (bx + w * dy, by - w * dx))
    return _polyline(points, styles.arrow, "arrow", closed=True)


def _edge(edge: ResolvedEdge, styles: _Styles) -> List[Primitive]:
    style = styles.edge
    if edge.spec.style.dashed:
        style = style + (("stroke-dasharray", "4,3"),)
    kind = PrimitiveKind.BEZIER if edge.curve else PrimitiveKind.POLYLINE
    out = [Primitive(kind, edge.points, style=style, role="edge")]

    if edge.spec.style.arrow_start:
        out.append(_arrowhead(edge.points[0], edge.start_angle, styles))
    if edge.spec.style.arrow_end:
        out.append(_arrowhead(edge.points[-1], edge.end_angle, styles))

    if edge.spec.label:
        opts = styles.opts
        x, y = edge.label_at
        half_w = opts.text_width(edge.spec.label) / 2 + 2
        half_h = opts.font_size / 2
        out.append(Primitive(PrimitiveKind.RECT,
                             ((x - half_w, y - half_h), (x + half_w, y + half_h)),
                             style=styles.blank, role="edge-label"))
        out.append(Primitive(PrimitiveKind.TEXT, (edge.label_at,),
                             text=edge.spec.label,
                             style=styles.text(color=opts.edge_color),
                             role="edge-label"))
    return out


def _unresolved(edge: UnresolvedEdge, styles: _Styles) -> List[Primitive]:
    s = MARKER_SIZE
    return [Primitive(PrimitiveKind.RECT,
                      ((a.x - s, a.y - s), (a.x + s, a.y + s)),
                      style=styles.unresolved, role="unresolved")
            for a in edge.known]


def emit(layout: Layout, edges: Sequence[EdgeResult] = (),
         options: Optional[RenderOptions] = None) -> Tuple[Primitive, ...]:
    """
    Emit the primitives of a laid-out diagram.

    Args:
        layout: Output of the layout engine
        edges: Edge results in declaration order
        options: Style options (defaults to the layout's)

    Returns:
        Primitives in drawing order
    """
    styles = _Styles(options or layout.options)
    out: List[Primitive] = []

    out.extend(_annotation(layout.head, styles))
    for placed in layout.order:
        if isinstance(placed, PlacedGroup):
            out.extend(_group(placed, styles))
        else:
            out.extend(_signal(placed, styles))
    out.extend(_annotation(layout.foot, styles))

    for edge in edges:
        if isinstance(edge, ResolvedEdge):
            out.extend(_edge(edge, styles))
    for edge in edges:
        if isinstance(edge, UnresolvedEdge):
            out.extend(_unresolved(edge, styles))

    return tuple(out)
