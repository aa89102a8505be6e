"""
wavelane Layout Engine — Segments → pixel regions.
==================================================

Every signal shares one horizontal time axis, the ``LayoutGrid``:

  1. Column shrinking: a cycle column shrinks to ``gap_shrink`` of a cycle
     (never below ``gap_min_width``) only when every signal holds a repeat
     or gap there, or has already ended; columns never stretch.
  2. Column offsets: cumulative sum of column widths.
  3. Lanes: one uniform slot per signal or spacer, top to bottom in
     document order; groups add a margin above and below and an indent
     column per nesting level.
  4. Anchors: collected while signals are placed, then frozen into an
     ``AnchorRegistry`` for the edge pass.

Layout is O(total cycles) and deterministic. Its output is immutable.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from wavelane.figure.document import (
    Annotation,
    CompiledSignal,
    Document,
    GroupSpec,
    SignalSpec,
    compile_signal,
)
from wavelane.figure.edges import AnchorPoint, AnchorRegistry, Point
from wavelane.figure.options import RenderOptions
from wavelane.wave.segments import expand_clock
from wavelane.wave.types import Level, Segment, SegmentKind

logger = logging.getLogger(__name__)


# =============================================================================
# TIME GRID
# =============================================================================

@dataclass(frozen=True)
class LayoutGrid:
    """
    Shared horizontal timing axis.

    Attributes:
        cycle_width: Pixel width of an unshrunk cycle (already hscaled)
        total_cycles: Cycle count of the longest signal
        gap_shrink: Fraction applied to shrinkable columns
        column_widths: Pixel width of every column
        column_offsets: Column start offsets, plus the total width last
    """
    cycle_width: float
    total_cycles: int
    gap_shrink: float
    column_widths: Tuple[float, ...]
    column_offsets: Tuple[float, ...]
    _offsets: np.ndarray = field(init=False, repr=False, compare=False)
    _widths: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_offsets",
                           np.asarray(self.column_offsets, dtype=np.float64))
        object.__setattr__(self, "_widths",
                           np.asarray(self.column_widths, dtype=np.float64))

    @property
    def width(self) -> float:
        """Post-shrink width of the longest signal."""
        return self.column_offsets[-1]

    def x_at(self, cycle: float) -> float:
        """Offset of a (fractional) cycle position from the grid origin."""
        if self.total_cycles == 0:
            return 0.0
        if cycle >= self.total_cycles:
            return self.width + (cycle - self.total_cycles) * self.cycle_width
        i = max(int(cycle), 0)
        return self.column_offsets[i] + (cycle - i) * self.column_widths[i]

    def xs_at(self, cycles: Iterable[float]) -> np.ndarray:
        """Vectorised ``x_at`` for many positions."""
        u = np.asarray(list(cycles), dtype=np.float64)
        if self.total_cycles == 0:
            return np.zeros_like(u)
        i = np.clip(np.floor(u).astype(np.int64), 0, self.total_cycles - 1)
        inside = self._offsets[i] + (u - i) * self._widths[i]
        beyond = self.width + (u - self.total_cycles) * self.cycle_width
        return np.where(u >= self.total_cycles, beyond, inside)

    def cycle_units(self, start: int, end: int) -> Tuple[float, ...]:
        """Widths of columns [start, end) in cycle units."""
        return tuple(w / self.cycle_width for w in self.column_widths[start:end])

    def __repr__(self) -> str:
        return (f"LayoutGrid(cycles={self.total_cycles}, "
                f"width={self.width:.1f}px)")


def shrinkable_columns(compiled: Sequence[CompiledSignal], total: int) -> np.ndarray:
    """
    Columns every signal allows to shrink.

    A signal allows a column when a repeat or gap token (or declared-length
    padding) covers it, or when the signal has ended before it.
    """
    shrink = np.ones(total, dtype=bool)
    for sig in compiled:
        if sig.length == 0:
            continue
        allowed = np.ones(total, dtype=bool)
        allowed[:sig.length] = False
        period = sig.spec.period
        for token in sig.tokens:
            if token.tag.is_continuation:
                start = token.index * period
                allowed[start:min(start + period, sig.length)] = True
        allowed[len(sig.tokens) * period:sig.length] = True
        shrink &= allowed
    return shrink


def build_grid(compiled: Sequence[CompiledSignal], options: RenderOptions) -> LayoutGrid:
    """Build the shared time axis for a set of compiled signals."""
    total = max((sig.length for sig in compiled), default=0)
    width = options.scaled_cycle_width

    widths = np.full(total, width, dtype=np.float64)
    if options.gap_shrink < 1.0 and total:
        shrunk = min(max(width * options.gap_shrink, options.min_gap_width), width)
        widths[shrinkable_columns(compiled, total)] = shrunk

    offsets = np.concatenate([[0.0], np.cumsum(widths)])
    return LayoutGrid(
        cycle_width=width,
        total_cycles=total,
        gap_shrink=options.gap_shrink,
        column_widths=tuple(float(w) for w in widths),
        column_offsets=tuple(float(o) for o in offsets),
    )


# =============================================================================
# PLACED MODEL
# =============================================================================

@dataclass(frozen=True)
class PlacedSegment:
    """A segment with absolute pixel extents.

    ``pulses`` holds (x, level) steps for clocks; ``gap_marks`` holds the
    x centres of ``|`` markers.
    """
    segment: Segment
    x0: float
    x1: float
    pulses: Tuple[Tuple[float, Level], ...] = ()
    gap_marks: Tuple[float, ...] = ()


@dataclass(frozen=True)
class PlacedSignal:
    """A signal in its lane."""
    name: str
    slot: int
    depth: int
    y: float
    length: int
    segments: Tuple[PlacedSegment, ...]
    cycle_widths: Tuple[float, ...]
    name_at: Point

    @property
    def x0(self) -> float:
        return self.segments[0].x0 if self.segments else self.name_at[0]

    @property
    def x1(self) -> float:
        return self.segments[-1].x1 if self.segments else self.x0

    @property
    def width(self) -> float:
        return self.x1 - self.x0 if self.segments else 0.0


@dataclass(frozen=True)
class PlacedGroup:
    """A group bracket spanning its member lanes exactly."""
    label: Optional[str]
    depth: int
    first_slot: int
    last_slot: int
    y_top: float
    y_bottom: float
    bracket: Tuple[Point, ...]
    label_at: Point


@dataclass(frozen=True)
class PlacedText:
    text: str
    at: Point


@dataclass(frozen=True)
class PlacedAnnotation:
    """Head or foot: title and cycle numbers."""
    title: Optional[PlacedText]
    numbers: Tuple[PlacedText, ...]


@dataclass(frozen=True)
class Layout:
    """Everything the emitter needs, in absolute pixels."""
    options: RenderOptions
    grid: LayoutGrid
    width: float
    height: float
    schema_x: float
    schema_y: float
    schema_height: float
    signals: Tuple[PlacedSignal, ...]
    groups: Tuple[PlacedGroup, ...]
    order: Tuple[Union[PlacedGroup, PlacedSignal], ...]
    anchors: AnchorRegistry
    head: Optional[PlacedAnnotation] = None
    foot: Optional[PlacedAnnotation] = None

    @property
    def schema_width(self) -> float:
        return self.grid.width


# =============================================================================
# ENGINE
# =============================================================================

class _OpenGroup:
    def __init__(self, spec: GroupSpec, depth: int):
        self.spec = spec
        self.depth = depth
        self.first_slot: Optional[int] = None
        self.last_slot: Optional[int] = None
        self.y_top = 0.0
        self.y_bottom = 0.0
        self.position: Optional[int] = None


class LayoutEngine:
    """
    Assigns pixel extents to every signal, group and anchor of a document.

    Usage:
        layout = LayoutEngine(options).layout(document)
    """

    def __init__(self, options: Optional[RenderOptions] = None):
        self.options = options

    def layout(self, document: Document,
               compiled: Optional[Sequence[CompiledSignal]] = None) -> Layout:
        """
        Lay out ``document``.

        Args:
            document: Parsed document
            compiled: Compiled signals in document order; compiled here
                when omitted

        Raises:
            MalformedDocument: duplicate anchor names
        """
        opts = self.options or document.options
        if compiled is None:
            compiled = [compile_signal(spec) for spec in document.signals()]
        compiled = list(compiled)

        grid = build_grid(compiled, opts)
        h = opts.wave_height

        # Horizontal bands: group columns | names | schema
        lane_counts = self._lane_counts(document)
        depth = max((d for event, item, d in document.walk()
                     if event == "lane"), default=0)
        name_x = opts.padding_left + depth * opts.group_indent
        name_width = max((opts.text_width(sig.name) for sig in compiled), default=0.0)
        schema_x = name_x + name_width + (opts.name_spacing if compiled else 0.0)

        head_height = self._annotation_height(document.head, opts)
        schema_y = opts.padding_top + head_height
        lanes_start = schema_y + opts.schema_top

        cursor = lanes_start
        extent = lanes_start
        slot = 0
        pending = iter(compiled)

        signals: List[PlacedSignal] = []
        groups: List[PlacedGroup] = []
        order: List[Union[PlacedGroup, PlacedSignal, _OpenGroup]] = []
        anchors: List[AnchorPoint] = []
        open_groups: List[_OpenGroup] = []

        for event, item, d in document.walk():
            if event == "enter":
                group = _OpenGroup(item, d)
                open_groups.append(group)
                if lane_counts[id(item)]:
                    cursor += opts.group_margin
                    group.position = len(order)
                    order.append(group)
            elif event == "exit":
                group = open_groups.pop()
                if group.first_slot is None:
                    continue
                cursor += opts.group_margin
                extent += opts.group_margin
                placed = self._place_group(group, opts)
                groups.append(placed)
                order[group.position] = placed
            else:
                top = cursor
                cursor = top + h + opts.line_spacing
                extent = top + h
                for group in open_groups:
                    if group.first_slot is None:
                        group.first_slot = slot
                        group.y_top = top
                    group.last_slot = slot
                    group.y_bottom = top + h

                if isinstance(item, SignalSpec):
                    sig = next(pending)
                    placed_signal = self._place_signal(
                        sig, slot, d, top, name_x, schema_x, grid, opts, anchors)
                    signals.append(placed_signal)
                    order.append(placed_signal)
                slot += 1

        if slot:
            schema_height = opts.schema_top + (extent - lanes_start) + opts.schema_bottom
        else:
            schema_height = 0.0

        width = schema_x + grid.width + opts.padding_right
        foot_y = schema_y + schema_height
        height = (foot_y + self._annotation_height(document.foot, opts)
                  + opts.padding_bottom)

        layout = Layout(
            options=opts,
            grid=grid,
            width=width,
            height=height,
            schema_x=schema_x,
            schema_y=schema_y,
            schema_height=schema_height,
            signals=tuple(signals),
            groups=tuple(groups),
            order=tuple(order),
            anchors=AnchorRegistry(anchors),
            head=self._place_annotation(document.head, opts.padding_top,
                                        schema_x, grid, opts, head=True),
            foot=self._place_annotation(document.foot, foot_y,
                                        schema_x, grid, opts, head=False),
        )
        logger.debug("laid out %d signals over %d cycles (%.1f x %.1f px)",
                     len(signals), grid.total_cycles, width, height)
        return layout

    # -------------------------------------------------------------------------

    @staticmethod
    def _lane_counts(document: Document) -> Dict[int, int]:
        """Number of lanes inside each group, keyed by ``id``."""
        counts: Dict[int, int] = {}
        open_ids: List[int] = []
        for event, item, _ in document.walk():
            if event == "enter":
                counts[id(item)] = 0
                open_ids.append(id(item))
            elif event == "exit":
                open_ids.pop()
            else:
                for gid in open_ids:
                    counts[gid] += 1
        return counts

    @staticmethod
    def _place_signal(sig: CompiledSignal, slot: int, depth: int, top: float,
                      name_x: float, schema_x: float, grid: LayoutGrid,
                      opts: RenderOptions, anchors: List[AnchorPoint]) -> PlacedSignal:
        h = opts.wave_height
        spec = sig.spec
        placed: List[PlacedSegment] = []

        for seg in sig.segments:
            x0 = schema_x + grid.x_at(seg.start)
            x1 = schema_x + grid.x_at(seg.end)

            pulses: Tuple[Tuple[float, Level], ...] = ()
            if seg.kind == SegmentKind.CLOCK:
                train = expand_clock(seg.cycles, spec.period, spec.phase, seg.rising)
                xs = schema_x + grid.xs_at(seg.start + t for t, _ in train)
                pulses = tuple((float(x), level)
                               for x, (_, level) in zip(xs, train))

            marks = tuple(
                schema_x + grid.x_at(g + min(spec.period, sig.length - g) / 2.0)
                for g in seg.gaps)

            placed.append(PlacedSegment(seg, x0, x1, pulses, marks))

            if seg.anchor is not None:
                anchors.append(AnchorPoint(seg.anchor, sig.name, slot,
                                           seg.start, x0, top + h / 2))

        return PlacedSignal(
            name=sig.name,
            slot=slot,
            depth=depth,
            y=top,
            length=sig.length,
            segments=tuple(placed),
            cycle_widths=grid.cycle_units(0, sig.length),
            name_at=(name_x, top + h / 2),
        )

    @staticmethod
    def _place_group(group: _OpenGroup, opts: RenderOptions) -> PlacedGroup:
        indent = opts.group_indent
        left = opts.padding_left + group.depth * indent
        bar = left + indent * 0.75
        tip = left + indent - 2
        bracket = ((tip, group.y_top), (bar, group.y_top),
                   (bar, group.y_bottom), (tip, group.y_bottom))
        return PlacedGroup(
            label=group.spec.label,
            depth=group.depth,
            first_slot=group.first_slot,
            last_slot=group.last_slot,
            y_top=group.y_top,
            y_bottom=group.y_bottom,
            bracket=bracket,
            label_at=(left + indent * 0.35, (group.y_top + group.y_bottom) / 2),
        )

    @staticmethod
    def _annotation_height(note: Optional[Annotation], opts: RenderOptions) -> float:
        if note is None:
            return 0.0
        height = 0.0
        if note.text:
            height += opts.font_size + 8
        if note.tick is not None or note.tock is not None:
            height += opts.font_size + 4
        return height

    @staticmethod
    def _place_annotation(note: Optional[Annotation], y: float, schema_x: float,
                          grid: LayoutGrid, opts: RenderOptions,
                          head: bool) -> Optional[PlacedAnnotation]:
        if note is None:
            return None

        text_row = opts.font_size + 8 if note.text else 0.0
        number_row = opts.font_size + 4 if (note.tick is not None
                                            or note.tock is not None) else 0.0

        # head: title above numbers; foot: numbers above title
        if head:
            title_y, numbers_y = y + text_row / 2, y + text_row + number_row / 2
        else:
            numbers_y, title_y = y + number_row / 2, y + number_row + text_row / 2

        title = None
        if note.text:
            title = PlacedText(note.text, (schema_x + grid.width / 2, title_y))

        numbers: List[PlacedText] = []
        if note.tick is not None:
            for i in range(0, grid.total_cycles + 1, note.every):
                numbers.append(PlacedText(str(note.tick + i),
                                          (schema_x + grid.x_at(i), numbers_y)))
        if note.tock is not None:
            for i in range(0, grid.total_cycles, note.every):
                numbers.append(PlacedText(str(note.tock + i),
                                          (schema_x + grid.x_at(i + 0.5), numbers_y)))

        return PlacedAnnotation(title, tuple(numbers))
