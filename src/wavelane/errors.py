"""
wavelane errors — Structural and edge-resolution failures.

Lexing, document and layout errors are structural: they abort the render of
the whole document. ``UnknownAnchor`` is local to one edge and is reported as
a warning on the finished diagram instead of being raised.
"""

from typing import Optional


class WavelaneError(ValueError):
    """Base class for every error raised while compiling a diagram."""


class SignalError(WavelaneError):
    """An error tied to one signal and, optionally, one cycle of it."""

    def __init__(self, message: str, signal: str = "",
                 index: Optional[int] = None):
        self.signal = signal
        self.index = index
        where = []
        if signal:
            where.append(f"signal {signal!r}")
        if index is not None:
            where.append(f"cycle {index}")
        if where:
            message = f"{message} ({', '.join(where)})"
        super().__init__(message)


class InvalidCycleSymbol(SignalError):
    """A wave string contains a character outside the symbol set."""

    def __init__(self, symbol: str, signal: str = "",
                 index: Optional[int] = None, reason: str = ""):
        self.symbol = symbol
        message = reason or f"Invalid cycle symbol {symbol!r}"
        super().__init__(message, signal, index)


class DanglingRepeat(SignalError):
    """A repeat symbol opens a wave string with nothing to repeat."""

    def __init__(self, signal: str = "", index: int = 0):
        super().__init__("Repeat symbol has no prior level to repeat",
                         signal, index)


class MalformedDocument(SignalError):
    """Missing required fields, wrong field types or duplicate anchors."""


class UnknownAnchor(WavelaneError):
    """An edge references an anchor that no wave string declares."""

    def __init__(self, name: str, edge: str = ""):
        self.name = name
        self.edge = edge
        message = f"Unknown anchor {name!r}"
        if edge:
            message += f" in edge {edge!r}"
        super().__init__(message)

    def __eq__(self, other):
        if not isinstance(other, UnknownAnchor):
            return NotImplemented
        return (self.name, self.edge) == (other.name, other.edge)

    def __hash__(self):
        return hash((UnknownAnchor, self.name, self.edge))
