"""
wavelane convenience API.

Simple functions for common use cases:
    >>> from wavelane import render, to_svg
    >>> diagram = render({"signal": [{"name": "clk", "wave": "p..."}]})
    >>> svg = to_svg({"signal": [{"name": "d", "wave": "01.0"}]})
"""

import logging
from typing import Any, Mapping, Optional, Union

from wavelane.figure.document import Document, compile_signal, parse_document
from wavelane.figure.edges import resolve_edges
from wavelane.figure.geometry import Diagram, emit
from wavelane.figure.layout import LayoutEngine
from wavelane.figure.options import RenderOptions

logger = logging.getLogger(__name__)

DocumentLike = Union[Document, Mapping[str, Any]]


def load(document: DocumentLike, options: Optional[RenderOptions] = None) -> Document:
    """
    Validate a document.

    A mapping's ``config`` block is merged over ``options``; an already
    parsed Document is returned as is unless ``options`` replaces its own.
    """
    if isinstance(document, Document):
        if options is not None:
            return Document(document.items, document.edges, options,
                            document.head, document.foot)
        return document
    return parse_document(document, options)


def render(document: DocumentLike, options: Optional[RenderOptions] = None) -> Diagram:
    """
    Render a document into primitives.

    Args:
        document: Deserialized mapping or parsed Document
        options: Base render options

    Returns:
        Diagram with primitives, canvas size and edge warnings

    Raises:
        InvalidCycleSymbol, DanglingRepeat, MalformedDocument
    """
    doc = load(document, options)
    compiled = [compile_signal(spec) for spec in doc.signals()]
    layout = LayoutEngine(doc.options).layout(doc, compiled)
    edges, warnings = resolve_edges(doc.edges, layout.anchors)
    primitives = emit(layout, edges, doc.options)

    logger.debug("rendered %d signals into %d primitives (%d warnings)",
                 len(compiled), len(primitives), len(warnings))
    return Diagram(primitives, layout.width, layout.height, warnings, layout)


def to_svg(document: DocumentLike, options: Optional[RenderOptions] = None) -> str:
    """
    Render a document to SVG markup.

    Requires: pip install wavelane[svg]
    """
    from wavelane.adapters.svg import SvgAdapter
    return SvgAdapter.to_string(render(document, options))


def verify(document: DocumentLike, options: Optional[RenderOptions] = None) -> bool:
    """
    Render a document and run the verification checks on the result.

    Returns:
        True if every check passes
    """
    from wavelane.verification.suite import VerificationSuite
    return VerificationSuite(options).run_all(document).passed
