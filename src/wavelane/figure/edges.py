"""
wavelane Edges — Anchor registry and edge resolution.
=====================================================

Edges connect anchors declared in ``node`` strings. They are resolved in a
second pass, after layout has fixed every anchor's pixel position:

  Layout → AnchorRegistry → resolve_edges → ResolvedEdge / UnresolvedEdge

Edge spec strings follow the WaveDrom shorthand ``<from><shape><to> label``:

    a->b      straight, arrow at b
    a-|-b     orthogonal, bend at the horizontal midpoint
    a-|>b     horizontal then vertical
    a|->b     vertical then horizontal
    a~>b      curve
    a<-~>b    one-sided curve, arrows at both ends

An unknown anchor is local to its edge: it is reported as a warning and the
rest of the diagram renders.
"""

import logging
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from wavelane.errors import MalformedDocument, UnknownAnchor

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


class EdgeShape(Enum):
    """Path shape between two anchors."""
    STRAIGHT = "-"
    ORTHOGONAL = "-|-"
    HORIZONTAL_VERTICAL = "-|"
    VERTICAL_HORIZONTAL = "|-"
    CURVED = "~"
    CURVED_START = "-~"
    CURVED_END = "~-"

    @property
    def is_curve(self) -> bool:
        return self in (EdgeShape.CURVED, EdgeShape.CURVED_START,
                        EdgeShape.CURVED_END)


@dataclass(frozen=True)
class EdgeStyle:
    """Shape, arrowheads and line style of an edge."""
    shape: EdgeShape = EdgeShape.STRAIGHT
    arrow_start: bool = False
    arrow_end: bool = True
    dashed: bool = False

    @property
    def symbol(self) -> str:
        return (("<" if self.arrow_start else "") + self.shape.value
                + (">" if self.arrow_end else ""))


@dataclass(frozen=True)
class EdgeSpec:
    """A declared edge between two anchor names."""
    source: str
    target: str
    style: EdgeStyle = EdgeStyle()
    label: Optional[str] = None

    def __str__(self) -> str:
        text = f"{self.source}{self.style.symbol}{self.target}"
        return f"{text} {self.label}" if self.label else text


_NAME = r"[^\s<>~|\-]+"
_EDGE_RE = re.compile(
    rf"^\s*({_NAME})\s*(<?)(-\|-|-\||\|-|-~|~-|~|-)(>?)\s*({_NAME})(?:\s+(.*?))?\s*$")

_SHAPES = {shape.value: shape for shape in EdgeShape}


def parse_edge(raw: Union[str, Dict[str, Any]]) -> EdgeSpec:
    """
    Parse one ``edge`` entry: a shorthand string or a mapping with
    ``from``, ``to`` and optional ``shape``, ``arrow`` ('>', '<', '<>' or
    ''), ``dashed`` and ``label``.
    """
    if isinstance(raw, str):
        match = _EDGE_RE.match(raw)
        if not match:
            raise MalformedDocument(f"Cannot parse edge {raw!r}")
        source, start, shape, end, target, label = match.groups()
        style = EdgeStyle(_SHAPES[shape], bool(start), bool(end))
        return EdgeSpec(source, target, style, label or None)

    if isinstance(raw, dict):
        source, target = raw.get("from"), raw.get("to")
        if not isinstance(source, str) or not isinstance(target, str):
            raise MalformedDocument(f"Edge needs string 'from' and 'to': {raw!r}")
        shape = raw.get("shape", "-")
        if shape not in _SHAPES:
            raise MalformedDocument(f"Unknown edge shape {shape!r}")
        arrow = raw.get("arrow", ">")
        if not isinstance(arrow, str) or set(arrow) - {"<", ">"}:
            raise MalformedDocument(f"Unknown edge arrow {arrow!r}")
        dashed = raw.get("dashed", False)
        if not isinstance(dashed, bool):
            raise MalformedDocument("Edge 'dashed' must be a boolean")
        label = raw.get("label")
        if label is not None and not isinstance(label, str):
            raise MalformedDocument("Edge 'label' must be a string")
        style = EdgeStyle(_SHAPES[shape], "<" in arrow, ">" in arrow, dashed)
        return EdgeSpec(source, target, style, label)

    raise MalformedDocument(f"Edge must be a string or a mapping, got {raw!r}")


# =============================================================================
# ANCHOR REGISTRY
# =============================================================================

@dataclass(frozen=True)
class AnchorPoint:
    """A named point on a laid-out waveform."""
    name: str
    signal: str
    slot: int
    cycle: int
    x: float
    y: float

    @property
    def point(self) -> Point:
        return (self.x, self.y)


class AnchorRegistry:
    """
    Read-only name → AnchorPoint map, in declaration order.

    Names are unique across the whole document, groups included.
    """

    def __init__(self, anchors: Iterable[AnchorPoint] = ()):
        self._anchors: Dict[str, AnchorPoint] = {}
        for anchor in anchors:
            if anchor.name in self._anchors:
                first = self._anchors[anchor.name]
                raise MalformedDocument(
                    f"Anchor {anchor.name!r} already declared on signal "
                    f"{first.signal!r}", anchor.signal, anchor.cycle)
            self._anchors[anchor.name] = anchor

    def lookup(self, name: str, edge: str = "") -> AnchorPoint:
        try:
            return self._anchors[name]
        except KeyError:
            raise UnknownAnchor(name, edge) from None

    def get(self, name: str) -> Optional[AnchorPoint]:
        return self._anchors.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._anchors

    def __iter__(self) -> Iterator[AnchorPoint]:
        return iter(self._anchors.values())

    def __len__(self) -> int:
        return len(self._anchors)

    def __repr__(self) -> str:
        return f"AnchorRegistry({list(self._anchors)})"


# =============================================================================
# RESOLUTION
# =============================================================================

@dataclass(frozen=True)
class ResolvedEdge:
    """Geometry of a resolved edge.

    ``points`` is a polyline, or the four bezier control points when
    ``curve`` is set. Arrow directions are angles in radians pointing
    away from the path.
    """
    spec: EdgeSpec
    source: AnchorPoint
    target: AnchorPoint
    points: Tuple[Point, ...]
    curve: bool
    label_at: Point
    start_angle: float
    end_angle: float


@dataclass(frozen=True)
class UnresolvedEdge:
    """An edge with a missing anchor; drawn as a marker where possible."""
    spec: EdgeSpec
    error: UnknownAnchor
    known: Tuple[AnchorPoint, ...] = ()


EdgeResult = Union[ResolvedEdge, UnresolvedEdge]


def _angle(frm: Point, to: Point) -> float:
    return math.atan2(to[1] - frm[1], to[0] - frm[0])


def _bezier_point(p: Tuple[Point, ...], t: float) -> Point:
    u = 1 - t
    x = u ** 3 * p[0][0] + 3 * u * u * t * p[1][0] + 3 * u * t * t * p[2][0] + t ** 3 * p[3][0]
    y = u ** 3 * p[0][1] + 3 * u * u * t * p[1][1] + 3 * u * t * t * p[2][1] + t ** 3 * p[3][1]
    return (x, y)


def edge_geometry(shape: EdgeShape, source: AnchorPoint,
                  target: AnchorPoint) -> Tuple[Tuple[Point, ...], Point]:
    """
    Control points and label position for ``shape`` between two anchors.

    Orthogonal edges bend at the horizontal midpoint, except when both
    anchors sit in the same cycle column, where the bend is vertical.
    """
    x1, y1 = source.point
    x2, y2 = target.point
    dx = x2 - x1
    xm, ym = (x1 + x2) / 2, (y1 + y2) / 2

    if shape == EdgeShape.STRAIGHT:
        return ((x1, y1), (x2, y2)), (xm, ym)
    if shape == EdgeShape.ORTHOGONAL:
        if source.cycle == target.cycle:
            points = ((x1, y1), (x1, ym), (x2, ym), (x2, y2))
        else:
            points = ((x1, y1), (xm, y1), (xm, y2), (x2, y2))
        return points, (xm, ym)
    if shape == EdgeShape.HORIZONTAL_VERTICAL:
        return ((x1, y1), (x2, y1), (x2, y2)), (x2, y1)
    if shape == EdgeShape.VERTICAL_HORIZONTAL:
        return ((x1, y1), (x1, y2), (x2, y2)), (x1, y2)

    if shape == EdgeShape.CURVED:
        points = ((x1, y1), (x1 + 0.7 * dx, y1), (x1 + 0.3 * dx, y2), (x2, y2))
    elif shape == EdgeShape.CURVED_START:
        points = ((x1, y1), (x1 + 0.7 * dx, y1), (x2, y2), (x2, y2))
    else:
        points = ((x1, y1), (x1, y1), (x1 + 0.3 * dx, y2), (x2, y2))
    return points, _bezier_point(points, 0.5)


def _end_angles(points: Tuple[Point, ...]) -> Tuple[float, float]:
    """Outward directions at both ends, skipping coincident points."""
    start = next((p for p in points[1:] if p != points[0]), points[-1])
    end = next((p for p in reversed(points[:-1]) if p != points[-1]), points[0])
    return _angle(start, points[0]), _angle(end, points[-1])


def resolve_edge(spec: EdgeSpec, registry: AnchorRegistry) -> ResolvedEdge:
    """Resolve one edge; raises UnknownAnchor."""
    source = registry.lookup(spec.source, str(spec))
    target = registry.lookup(spec.target, str(spec))
    points, label_at = edge_geometry(spec.style.shape, source, target)
    start_angle, end_angle = _end_angles(points)
    return ResolvedEdge(spec, source, target, points, spec.style.shape.is_curve,
                        label_at, start_angle, end_angle)


def resolve_edges(edges: Iterable[EdgeSpec], registry: AnchorRegistry
                  ) -> Tuple[Tuple[EdgeResult, ...], Tuple[UnknownAnchor, ...]]:
    """
    Resolve edges in declaration order.

    Returns:
        (results, warnings): one result per edge, and one UnknownAnchor
        per edge that could not be resolved
    """
    results: List[EdgeResult] = []
    warnings: List[UnknownAnchor] = []

    for spec in edges:
        try:
            results.append(resolve_edge(spec, registry))
        except UnknownAnchor as err:
            logger.warning("unresolved edge %s: %s", spec, err)
            known = tuple(a for a in (registry.get(spec.source),
                                      registry.get(spec.target)) if a is not None)
            results.append(UnresolvedEdge(spec, err, known))
            warnings.append(err)

    return tuple(results), tuple(warnings)
