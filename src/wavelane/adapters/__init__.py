"""
wavelane output adapters.

Adapters are lazy-loaded to avoid requiring optional dependencies
at import time. Install with:

    pip install wavelane[svg]   # SVG via svgwrite
"""


def __getattr__(name):
    """Lazy load adapters that require optional dependencies."""
    if name == "SvgAdapter":
        from .svg import SvgAdapter
        return SvgAdapter
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "SvgAdapter",
]
