"""
wavelane.figure — Document model, layout, edges and primitives.

  - parse_document: deserialized mapping → Document
  - LayoutEngine: Document → Layout (time grid, lanes, anchors)
  - resolve_edges: edge specs → ResolvedEdge / UnresolvedEdge
  - emit: Layout + edges → Primitives
"""

from wavelane.figure.options import DEFAULT_OPTIONS, RenderOptions
from wavelane.figure.edges import (
    AnchorPoint,
    AnchorRegistry,
    EdgeShape,
    EdgeSpec,
    EdgeStyle,
    ResolvedEdge,
    UnresolvedEdge,
    parse_edge,
    resolve_edges,
)
from wavelane.figure.document import (
    Annotation,
    CompiledSignal,
    Document,
    GroupSpec,
    SignalSpec,
    Spacer,
    compile_signal,
    parse_document,
)
from wavelane.figure.layout import Layout, LayoutEngine, LayoutGrid, build_grid
from wavelane.figure.geometry import Diagram, Primitive, PrimitiveKind, emit

__all__ = [
    "DEFAULT_OPTIONS",
    "RenderOptions",
    "AnchorPoint",
    "AnchorRegistry",
    "EdgeShape",
    "EdgeSpec",
    "EdgeStyle",
    "ResolvedEdge",
    "UnresolvedEdge",
    "parse_edge",
    "resolve_edges",
    "Annotation",
    "CompiledSignal",
    "Document",
    "GroupSpec",
    "SignalSpec",
    "Spacer",
    "compile_signal",
    "parse_document",
    "Layout",
    "LayoutEngine",
    "LayoutGrid",
    "build_grid",
    "Diagram",
    "Primitive",
    "PrimitiveKind",
    "emit",
]
