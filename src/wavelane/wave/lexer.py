"""
wavelane Wave Lexer — Wave string → CycleTokens.
=================================================

The wave grammar is stateful: a repeat or gap symbol means "whatever came
before", and every edge is shaped by the previous level. The lexer is a
small finite-state machine carrying one resolved token of look-back.

    "01.x=[ADDR]|p"
     │││││      ││
     ││││└──────┼┴── data with inline label, gap, clock
     │││└─────────── don't care
     ││└──────────── repeat of '1'
     └┴───────────── low, high
"""

import logging
from typing import List, Optional, Sequence, Tuple, Union

from wavelane.errors import DanglingRepeat, InvalidCycleSymbol, MalformedDocument
from wavelane.wave.types import CycleTag, CycleToken

logger = logging.getLogger(__name__)


SYMBOLS = {
    '0': CycleTag.LOW,
    '1': CycleTag.HIGH,
    'l': CycleTag.LOW_SHARP,
    'h': CycleTag.HIGH_SHARP,
    'L': CycleTag.LOW_MARKED,
    'H': CycleTag.HIGH_MARKED,
    'z': CycleTag.HIGH_Z,
    'x': CycleTag.DONT_CARE,
    '=': CycleTag.DATA,
    'p': CycleTag.CLOCK_POS,
    'n': CycleTag.CLOCK_NEG,
    'P': CycleTag.CLOCK_POS_MARKED,
    'N': CycleTag.CLOCK_NEG_MARKED,
    '.': CycleTag.REPEAT,
    '|': CycleTag.GAP,
}
for _digit in "23456789":
    SYMBOLS[_digit] = CycleTag.DATA

# '=' draws with the colour of '2'
DEFAULT_DATA_COLOR = 2

NO_ANCHOR = ('.', ' ')

NodeSpec = Union[str, Sequence[Optional[str]], None]


class WaveLexer:
    """
    Finite-state lexer for one signal's wave string.

    State carried between symbols:
      - the previous resolved token (drives edges and repeats)
      - the token index (inline labels do not consume cycles)
    """

    def __init__(self, name: str = "", initial: Optional[CycleToken] = None):
        self.name = name
        self.initial = initial

    def lex(self, wave: str, node: NodeSpec = None) -> Tuple[CycleToken, ...]:
        """Lex ``wave`` into one token per cycle symbol."""
        symbols = self._split(wave)
        anchors = node_names(node, len(symbols), self.name)

        tokens: List[CycleToken] = []
        prev = self.initial

        for index, (symbol, text) in enumerate(symbols):
            tag = SYMBOLS[symbol]
            token = self._resolve(index, symbol, tag, text, anchors[index], prev)
            tokens.append(token)
            prev = token

        logger.debug("lexed %d tokens for signal %r", len(tokens), self.name)
        return tuple(tokens)

    def _split(self, wave: str) -> List[Tuple[str, Optional[str]]]:
        """Split the raw string into (symbol, inline label) pairs."""
        out: List[Tuple[str, Optional[str]]] = []
        i = 0
        n = len(wave)

        while i < n:
            symbol = wave[i]
            if symbol not in SYMBOLS:
                reason = ("Inline label without a data symbol"
                          if symbol == '[' else "")
                raise InvalidCycleSymbol(symbol, self.name, len(out), reason)

            text = None
            if (i + 1 < n and wave[i + 1] == '['
                    and SYMBOLS[symbol] == CycleTag.DATA):
                close = wave.find(']', i + 2)
                if close < 0:
                    raise InvalidCycleSymbol(
                        '[', self.name, len(out), "Unterminated inline label")
                text = wave[i + 2:close]
                i = close + 1
            else:
                i += 1

            out.append((symbol, text))

        return out

    def _resolve(self, index: int, symbol: str, tag: CycleTag,
                 text: Optional[str], anchor: Optional[str],
                 prev: Optional[CycleToken]) -> CycleToken:
        previous = prev.resolved if prev is not None else None

        if tag == CycleTag.REPEAT:
            if prev is None:
                raise DanglingRepeat(self.name, index)
            return CycleToken(index, symbol, tag, prev.resolved, previous,
                              color=prev.color, anchor=anchor)

        if tag == CycleTag.GAP:
            # a leading gap continues an undefined state
            if prev is None:
                return CycleToken(index, symbol, tag, CycleTag.DONT_CARE,
                                  None, anchor=anchor)
            return CycleToken(index, symbol, tag, prev.resolved, previous,
                              color=prev.color, anchor=anchor)

        color = 0
        if tag == CycleTag.DATA:
            color = int(symbol) if symbol.isdigit() else DEFAULT_DATA_COLOR

        return CycleToken(index, symbol, tag, tag, previous,
                          color=color, text=text, anchor=anchor)


def node_names(node: NodeSpec, count: int, name: str = "") -> List[Optional[str]]:
    """Align a ``node`` spec with ``count`` tokens.

    A string holds one-character anchor names ('.' or ' ' for none); a
    sequence holds names or None. Anchors past the last token are an error.
    """
    if node is None:
        return [None] * count

    if isinstance(node, str):
        names = [None if c in NO_ANCHOR else c for c in node]
    else:
        names = [n if n else None for n in node]

    for index in range(count, len(names)):
        if names[index] is not None:
            raise MalformedDocument(
                f"Anchor {names[index]!r} is past the end of the wave",
                name, index)

    names = names[:count]
    names.extend([None] * (count - len(names)))
    return names


def lex_wave(wave: str, node: NodeSpec = None, name: str = "",
             initial: Optional[CycleToken] = None) -> Tuple[CycleToken, ...]:
    """Lex a wave string; see ``WaveLexer``."""
    return WaveLexer(name, initial).lex(wave, node)
