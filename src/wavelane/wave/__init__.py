"""
wavelane.wave — Wave string compilation.

  - WaveLexer / lex_wave: wave string → CycleTokens
  - resolve_segments / coalesce: CycleTokens → Segments
  - expand_clock: algorithmic clock pulse trains
"""

from wavelane.wave.types import (
    CycleTag,
    CycleToken,
    Level,
    Segment,
    SegmentKind,
    Transition,
)
from wavelane.wave.lexer import SYMBOLS, WaveLexer, lex_wave
from wavelane.wave.segments import (
    coalesce,
    expand_clock,
    resolve_segments,
    signal_length,
)

__all__ = [
    "CycleTag",
    "CycleToken",
    "Level",
    "Segment",
    "SegmentKind",
    "Transition",
    "SYMBOLS",
    "WaveLexer",
    "lex_wave",
    "coalesce",
    "expand_clock",
    "resolve_segments",
    "signal_length",
]
