"""
SVG adapter for wavelane.

Wraps a Diagram's primitives into an svgwrite Drawing. Only serialization
happens here; every coordinate and colour is already decided.
Requires: pip install wavelane[svg]
"""

import logging
from typing import Optional

from ..figure.geometry import (
    HATCH_PATTERN_ID,
    Diagram,
    Primitive,
    PrimitiveKind,
    fmt,
)
from ..figure.options import RenderOptions

logger = logging.getLogger(__name__)

HATCH_SIZE = 6


class SvgAdapter:
    """
    Bridge between wavelane Diagrams and SVG documents.
    """

    @staticmethod
    def _check_svgwrite():
        try:
            import svgwrite
            return svgwrite
        except ImportError:
            raise ImportError(
                "SvgAdapter requires the 'svgwrite' package. "
                "Install with: pip install wavelane[svg]"
            )

    @staticmethod
    def _options(diagram: Diagram, options: Optional[RenderOptions]) -> RenderOptions:
        if options is not None:
            return options
        if diagram.layout is not None:
            return diagram.layout.options
        return RenderOptions()

    @staticmethod
    def _hatch(dwg, options: RenderOptions):
        pattern = dwg.pattern(id=HATCH_PATTERN_ID, insert=(0, 0),
                              size=(HATCH_SIZE, HATCH_SIZE),
                              patternUnits="userSpaceOnUse")
        pattern.add(dwg.rect(insert=(0, 0), size=(HATCH_SIZE, HATCH_SIZE),
                             fill="#FFFFFF"))
        pattern.add(dwg.line(start=(0, HATCH_SIZE), end=(HATCH_SIZE, 0),
                             stroke=options.hatch_color, stroke_width=1))
        return pattern

    @staticmethod
    def _element(dwg, prim: Primitive):
        attrs = prim.attrs
        points = [(float(x), float(y)) for x, y in prim.points]

        if prim.kind == PrimitiveKind.RECT:
            (x0, y0), (x1, y1) = points
            return dwg.rect(insert=(x0, y0), size=(x1 - x0, y1 - y0), **attrs)
        if prim.kind == PrimitiveKind.BEZIER:
            (ax, ay), (bx, by), (cx, cy), (dx, dy) = points
            d = (f"M{fmt(ax)},{fmt(ay)} C{fmt(bx)},{fmt(by)} "
                 f"{fmt(cx)},{fmt(cy)} {fmt(dx)},{fmt(dy)}")
            return dwg.path(d=d, **attrs)
        if prim.kind == PrimitiveKind.TEXT:
            return dwg.text(prim.text or "", insert=points[0], **attrs)
        if prim.closed:
            return dwg.polygon(points=points, **attrs)
        return dwg.polyline(points=points, **attrs)

    @staticmethod
    def to_drawing(diagram: Diagram, options: Optional[RenderOptions] = None):
        """Convert a Diagram → svgwrite Drawing."""
        svgwrite = SvgAdapter._check_svgwrite()
        options = SvgAdapter._options(diagram, options)

        dwg = svgwrite.Drawing(size=(diagram.width, diagram.height),
                               profile="full", debug=False)
        dwg.viewbox(0, 0, diagram.width, diagram.height)
        dwg.defs.add(SvgAdapter._hatch(dwg, options))

        for prim in diagram.primitives:
            dwg.add(SvgAdapter._element(dwg, prim))

        logger.debug("assembled %d primitives into a %sx%s drawing",
                     len(diagram.primitives), fmt(diagram.width), fmt(diagram.height))
        return dwg

    @staticmethod
    def to_string(diagram: Diagram, options: Optional[RenderOptions] = None) -> str:
        """Convert a Diagram → SVG markup."""
        return SvgAdapter.to_drawing(diagram, options).tostring()

    @staticmethod
    def save(diagram: Diagram, filename: str,
             options: Optional[RenderOptions] = None) -> None:
        """Write a Diagram to an SVG file."""
        SvgAdapter.to_drawing(diagram, options).saveas(filename)

    @staticmethod
    def is_available() -> bool:
        """Check if svgwrite is available."""
        try:
            import svgwrite
            return True
        except ImportError:
            return False
