"""
wavelane Segment Resolver — CycleTokens → Segments.
===================================================

Resolution pipeline:
  1. One piece per token, ``period`` cycles wide
  2. Data labels: inline ``[text]`` first, then the signal's data list
  3. Declared length: pad with repeats of the last piece, or clip
  4. Greedy left-to-right coalescing

Clocks are never drawn from their tokens: ``expand_clock`` rebuilds the
pulse train of a clock segment from its period and phase.
"""

import logging
import math
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence, Tuple

from wavelane.errors import MalformedDocument
from wavelane.wave.types import CycleTag, CycleToken, Level, Segment, SegmentKind

logger = logging.getLogger(__name__)

# Tolerance for half-period arithmetic on float phases
_EPS = 1e-9


def _kind(tag: CycleTag) -> SegmentKind:
    if tag == CycleTag.DATA:
        return SegmentKind.DATA
    if tag == CycleTag.DONT_CARE:
        return SegmentKind.GAP
    if tag.is_clock:
        return SegmentKind.CLOCK
    return SegmentKind.LEVEL


def _piece(token: CycleToken, period: int, label: Optional[str]) -> Segment:
    start = token.index * period
    tag = token.resolved
    return Segment(
        kind=_kind(tag),
        start=start,
        cycles=period,
        level=tag.level,
        tag=tag,
        color=token.color,
        label=label,
        anchor=token.anchor,
        continuation=token.tag.is_continuation,
        gaps=(start,) if token.tag == CycleTag.GAP else (),
    )


def _mergeable(left: Segment, right: Segment) -> bool:
    """Whether ``right`` extends ``left`` without a visible boundary."""
    if right.anchor is not None:
        return False
    if left.end != right.start:
        return False
    if (left.kind, left.level, left.color) != (right.kind, right.level, right.color):
        return False
    if left.kind == SegmentKind.DATA:
        # every explicit data symbol is a new value
        if not right.continuation:
            return False
        if right.label is not None and right.label != left.label:
            return False
    if left.kind == SegmentKind.CLOCK and left.tag != right.tag:
        return False
    return True


def coalesce(segments: Iterable[Segment]) -> Tuple[Segment, ...]:
    """
    Merge adjacent segments of the same rendered kind.

    Greedy and left-to-right; a merged segment keeps the attributes of its
    leftmost piece. Idempotent: coalescing its own output changes nothing.
    """
    out: List[Segment] = []
    gaps: List[List[int]] = []
    for seg in segments:
        if out and _mergeable(out[-1], seg):
            prev = out[-1]
            out[-1] = replace(prev, cycles=prev.cycles + seg.cycles)
            gaps[-1].extend(seg.gaps)
        else:
            out.append(seg)
            gaps.append(list(seg.gaps))
    return tuple(replace(seg, gaps=tuple(g)) if len(g) != len(seg.gaps) else seg
                 for seg, g in zip(out, gaps))


def _clip(pieces: List[Segment], length: int) -> List[Segment]:
    clipped = []
    for seg in pieces:
        if seg.start >= length:
            break
        if seg.end > length:
            seg = replace(seg, cycles=length - seg.start,
                          gaps=tuple(g for g in seg.gaps if g < length))
        clipped.append(seg)
    return clipped


def resolve_segments(tokens: Sequence[CycleToken],
                     period: int = 1,
                     data: Sequence[str] = (),
                     length: Optional[int] = None,
                     name: str = "") -> Tuple[Segment, ...]:
    """
    Resolve a signal's tokens into coalesced segments.

    Args:
        tokens: Output of the wave lexer
        period: Cycles per token
        data: Labels for data tokens without an inline label, in order
        length: Declared cycle count; pads or clips the token cycles
        name: Signal name for error messages

    Returns:
        Contiguous segments covering cycles [0, length)

    Raises:
        MalformedDocument: ``length`` clips off an anchored token
    """
    labels = iter(data)
    pieces: List[Segment] = []

    for token in tokens:
        label = None
        if token.tag == CycleTag.DATA:
            label = token.text if token.text is not None else next(labels, None)
        pieces.append(_piece(token, period, label))

    total = len(tokens) * period
    if length is not None:
        if length > total:
            if pieces:
                last = pieces[-1]
                pieces.append(replace(last, start=total, cycles=length - total,
                                      label=None, anchor=None,
                                      continuation=True, gaps=()))
            else:
                pieces.append(Segment(SegmentKind.GAP, 0, length,
                                      tag=CycleTag.DONT_CARE))
        elif length < total:
            for token in tokens:
                if token.anchor is not None and token.index * period >= length:
                    raise MalformedDocument(
                        f"Anchor {token.anchor!r} is past the declared cycle count",
                        name, token.index)
            pieces = _clip(pieces, length)

    segments = coalesce(pieces)
    logger.debug("resolved %d tokens into %d segments",
                 len(tokens), len(segments))
    return segments


def expand_clock(cycles: float, period: int = 1, phase: float = 0.0,
                 rising: bool = True) -> Tuple[Tuple[float, Level], ...]:
    """
    Pulse train of a clock segment.

    Each period opens with the polarity edge (rising for ``p``) and flips
    at half period. ``phase`` shifts the train left by that many cycles.

    Returns:
        (offset, level) pairs in cycles from the segment start; the first
        pair is at offset 0 and gives the entry level.
    """
    half = period / 2.0
    first = Level.HIGH if rising else Level.LOW
    second = Level.LOW if rising else Level.HIGH

    def level_at(u: float) -> Level:
        k = int(math.floor(u / half + _EPS))
        return first if k % 2 == 0 else second

    pulses = [(0.0, level_at(phase))]
    k = int(math.floor(phase / half + _EPS)) + 1
    t = k * half - phase
    while t < cycles - _EPS:
        pulses.append((t, level_at(t + phase)))
        k += 1
        t = k * half - phase
    return tuple(pulses)


def signal_length(segments: Sequence[Segment]) -> int:
    """Total cycles covered by a segment sequence."""
    return sum(seg.cycles for seg in segments)
