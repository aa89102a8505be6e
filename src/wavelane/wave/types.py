"""
wavelane wave types — Cycle tokens and waveform segments.

A wave string is read one symbol at a time into ``CycleToken``s; runs of
tokens are then coalesced into ``Segment``s, the units the layout engine
places on the time grid.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Tuple


class Level(IntEnum):
    """Signal level, ordered bottom to top."""
    LOW = 0
    MIDDLE = 1
    HIGH = 2

    @property
    def y_fraction(self) -> float:
        """Vertical position within a lane (0 = top, 1 = bottom)."""
        return {Level.HIGH: 0.0, Level.MIDDLE: 0.5, Level.LOW: 1.0}[self]


class Transition(Enum):
    """Direction of the edge at the start of a token."""
    NONE = "none"
    RISING = "rising"
    FALLING = "falling"


class CycleTag(Enum):
    """What a single wave symbol means."""
    LOW = "low"
    HIGH = "high"
    LOW_SHARP = "low_sharp"
    HIGH_SHARP = "high_sharp"
    LOW_MARKED = "low_marked"
    HIGH_MARKED = "high_marked"
    HIGH_Z = "high_z"
    DONT_CARE = "dont_care"
    DATA = "data"
    CLOCK_POS = "clock_pos"
    CLOCK_NEG = "clock_neg"
    CLOCK_POS_MARKED = "clock_pos_marked"
    CLOCK_NEG_MARKED = "clock_neg_marked"
    REPEAT = "repeat"
    GAP = "gap"

    @property
    def level(self) -> Optional[Level]:
        """Steady level of a level tag, None for boxes, clocks and repeats."""
        return _LEVELS.get(self)

    @property
    def is_clock(self) -> bool:
        return self in _CLOCKS

    @property
    def is_box(self) -> bool:
        return self in (CycleTag.DATA, CycleTag.DONT_CARE)

    @property
    def is_continuation(self) -> bool:
        return self in (CycleTag.REPEAT, CycleTag.GAP)

    @property
    def is_sharp(self) -> bool:
        return self in _SHARP

    @property
    def is_marked(self) -> bool:
        return self in _MARKED

    @property
    def entry_level(self) -> Optional[Level]:
        """Level right after the start of a period of this tag."""
        if self in (CycleTag.CLOCK_POS, CycleTag.CLOCK_POS_MARKED):
            return Level.HIGH
        if self in (CycleTag.CLOCK_NEG, CycleTag.CLOCK_NEG_MARKED):
            return Level.LOW
        return self.level

    @property
    def exit_level(self) -> Optional[Level]:
        """Level at the end of a period of this tag."""
        if self in (CycleTag.CLOCK_POS, CycleTag.CLOCK_POS_MARKED):
            return Level.LOW
        if self in (CycleTag.CLOCK_NEG, CycleTag.CLOCK_NEG_MARKED):
            return Level.HIGH
        return self.level


_LEVELS = {
    CycleTag.LOW: Level.LOW,
    CycleTag.LOW_SHARP: Level.LOW,
    CycleTag.LOW_MARKED: Level.LOW,
    CycleTag.HIGH: Level.HIGH,
    CycleTag.HIGH_SHARP: Level.HIGH,
    CycleTag.HIGH_MARKED: Level.HIGH,
    CycleTag.HIGH_Z: Level.MIDDLE,
}

_CLOCKS = frozenset({
    CycleTag.CLOCK_POS, CycleTag.CLOCK_NEG,
    CycleTag.CLOCK_POS_MARKED, CycleTag.CLOCK_NEG_MARKED,
})

_SHARP = frozenset({
    CycleTag.LOW_SHARP, CycleTag.HIGH_SHARP,
    CycleTag.LOW_MARKED, CycleTag.HIGH_MARKED,
}) | _CLOCKS

_MARKED = frozenset({
    CycleTag.LOW_MARKED, CycleTag.HIGH_MARKED,
    CycleTag.CLOCK_POS_MARKED, CycleTag.CLOCK_NEG_MARKED,
})


@dataclass(frozen=True)
class CycleToken:
    """One lexed wave symbol.

    Attributes:
        index: Position of the token in the wave (inline labels excluded)
        symbol: The wave character
        tag: What the character means on its own
        resolved: The tag actually drawn; repeat and gap tokens take the
            tag they continue
        previous: Resolved tag of the preceding token, None at the start
        color: Data colour index (2-9) for data tokens and their repeats
        text: Inline ``[label]`` of a data token
        anchor: Anchor name bound to this token's cycle
    """
    index: int
    symbol: str
    tag: CycleTag
    resolved: CycleTag
    previous: Optional[CycleTag] = None
    color: int = 0
    text: Optional[str] = None
    anchor: Optional[str] = None

    @property
    def edge(self) -> Transition:
        """Edge drawn where this token starts, from the previous level."""
        if self.tag.is_continuation or self.previous is None:
            return Transition.NONE
        before = self.previous.exit_level
        after = self.resolved.entry_level
        if before is None or after is None or before == after:
            return Transition.NONE
        return Transition.RISING if after > before else Transition.FALLING


class SegmentKind(Enum):
    """Rendered unit kinds."""
    LEVEL = "level"
    DATA = "data"
    CLOCK = "clock"
    GAP = "gap"


@dataclass(frozen=True)
class Segment:
    """A run of cycles drawn as one unit.

    ``GAP`` segments are don't-care runs (hatched blocks); ``|`` gap
    markers inside any segment are listed in ``gaps`` as absolute cycle
    indices.
    """
    kind: SegmentKind
    start: int
    cycles: int
    level: Optional[Level] = None
    tag: Optional[CycleTag] = None
    color: int = 0
    label: Optional[str] = None
    anchor: Optional[str] = None
    continuation: bool = False
    gaps: Tuple[int, ...] = ()

    @property
    def end(self) -> int:
        return self.start + self.cycles

    @property
    def is_box(self) -> bool:
        return self.kind in (SegmentKind.DATA, SegmentKind.GAP)

    @property
    def sharp(self) -> bool:
        return self.tag is not None and self.tag.is_sharp

    @property
    def marked(self) -> bool:
        return self.tag is not None and self.tag.is_marked

    @property
    def rising(self) -> bool:
        """Clock polarity: True when each period opens with a rising edge."""
        return self.tag in (CycleTag.CLOCK_POS, CycleTag.CLOCK_POS_MARKED)

    def __repr__(self) -> str:
        extra = f", label={self.label!r}" if self.label is not None else ""
        return (f"Segment({self.kind.value}, start={self.start}, "
                f"cycles={self.cycles}{extra})")
