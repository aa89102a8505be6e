"""
wavelane — Digital timing diagrams from wave strings.

wavelane compiles a declarative timing-diagram description (signals with
per-cycle wave strings, groups, named nodes and edges between them) into an
ordered set of drawing primitives, and from there into SVG.

Key Properties:
- Deterministic: the same document always yields the same primitives
- Shared time grid: every signal is aligned on one cycle axis
- Partial success: an edge to an unknown node is a warning, not a failure
- WaveDrom compatible: same wave symbols and document shape

Example:
    >>> from wavelane import render
    >>> diagram = render({"signal": [
    ...     {"name": "clk", "wave": "p...."},
    ...     {"name": "dat", "wave": "x3.x.", "data": ["A0"]},
    ... ]})
    >>> len(diagram.warnings)
    0

Logging:
    Modules log under the ``wavelane`` logger without handlers; call
    ``wavelane.setup_logging()`` to print them.

License: Apache-2.0
"""

__version__ = "0.1.0"
__license__ = "Apache-2.0"

# Convenience API
from .api import load, render, to_svg, verify

# Errors
from .errors import (
    DanglingRepeat,
    InvalidCycleSymbol,
    MalformedDocument,
    SignalError,
    UnknownAnchor,
    WavelaneError,
)

# Wave compilation
from .wave.lexer import WaveLexer, lex_wave
from .wave.segments import coalesce, expand_clock, resolve_segments
from .wave.types import CycleTag, CycleToken, Level, Segment, SegmentKind

# Figure
from .figure.options import RenderOptions
from .figure.document import Document, parse_document
from .figure.layout import Layout, LayoutEngine
from .figure.edges import AnchorRegistry, parse_edge, resolve_edges
from .figure.geometry import Diagram, Primitive, PrimitiveKind, emit

# Verification
from .verification.suite import VerificationSuite

# Logging
from .logging_config import setup_logging


# Adapters - LAZY LOADING (optional dependencies)
def __getattr__(name):
    """Lazy load adapters that require optional dependencies."""
    if name == "SvgAdapter":
        from .adapters.svg import SvgAdapter
        return SvgAdapter
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    # Version
    "__version__",
    # Errors
    "WavelaneError",
    "SignalError",
    "InvalidCycleSymbol",
    "DanglingRepeat",
    "MalformedDocument",
    "UnknownAnchor",
    # Wave
    "WaveLexer",
    "lex_wave",
    "resolve_segments",
    "coalesce",
    "expand_clock",
    "CycleTag",
    "CycleToken",
    "Level",
    "Segment",
    "SegmentKind",
    # Figure
    "RenderOptions",
    "Document",
    "parse_document",
    "Layout",
    "LayoutEngine",
    "AnchorRegistry",
    "parse_edge",
    "resolve_edges",
    "Diagram",
    "Primitive",
    "PrimitiveKind",
    "emit",
    # Adapters (lazy-loaded)
    "SvgAdapter",
    # Verification
    "VerificationSuite",
    # Convenience
    "load",
    "render",
    "to_svg",
    "verify",
    # Logging
    "setup_logging",
]


def get_version() -> str:
    """Return the current wavelane version."""
    return __version__
