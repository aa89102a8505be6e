"""
wavelane Document — Input contract and compiled signals.

The document arrives already deserialized (dicts, lists, strings):

    {
      "signal": [
        {"name": "clk", "wave": "p...."},
        ["bus", {"name": "addr", "wave": "x3.x", "data": "A0"}],
        {}
      ],
      "edge": ["a~>b label"],
      "config": {"hscale": 2},
      "head": {"text": "Read", "tick": 0}
    }

Lists are groups (a leading string is the group label), ``{}`` is a blank
lane. Nesting is unbounded; the tree is built with an explicit stack.
"""

import logging
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from wavelane.errors import MalformedDocument
from wavelane.figure.edges import EdgeSpec, parse_edge
from wavelane.figure.options import RenderOptions
from wavelane.wave.lexer import lex_wave
from wavelane.wave.segments import resolve_segments
from wavelane.wave.types import CycleToken, Segment

logger = logging.getLogger(__name__)

SIGNAL_KEYS = frozenset({"name", "wave", "data", "node", "period", "phase", "cycles"})
ANNOTATION_KEYS = frozenset({"text", "tick", "tock", "every"})


@dataclass(frozen=True)
class SignalSpec:
    """One signal as declared in the document."""
    name: str
    wave: str
    data: Tuple[str, ...] = ()
    node: Union[str, Tuple[Optional[str], ...], None] = None
    period: int = 1
    phase: float = 0.0
    cycles: Optional[int] = None


@dataclass(frozen=True)
class Spacer:
    """A blank lane."""


@dataclass(frozen=True)
class GroupSpec:
    """A labelled bracket around signals and nested groups."""
    label: Optional[str]
    members: Tuple['Item', ...]


Item = Union[SignalSpec, Spacer, GroupSpec]


@dataclass(frozen=True)
class Annotation:
    """Head or foot: a title line and optional cycle numbering.

    ``tick`` numbers column boundaries, ``tock`` numbers column centres,
    both counting up from the given start; only every ``every``-th
    position is labelled.
    """
    text: Optional[str] = None
    tick: Optional[int] = None
    tock: Optional[int] = None
    every: int = 1


@dataclass(frozen=True)
class Document:
    """A validated, immutable diagram description."""
    items: Tuple[Item, ...]
    edges: Tuple[EdgeSpec, ...] = ()
    options: RenderOptions = field(default_factory=RenderOptions)
    head: Optional[Annotation] = None
    foot: Optional[Annotation] = None

    def walk(self):
        """Yield ``(event, item, depth)`` in document order.

        Events are ``"enter"`` / ``"exit"`` for groups and ``"lane"`` for
        signals and spacers.
        """
        stack: List[Tuple[str, Any, int]] = [
            ("lane" if not isinstance(item, GroupSpec) else "enter", item, 0)
            for item in reversed(self.items)
        ]
        while stack:
            event, item, depth = stack.pop()
            yield event, item, depth
            if event == "enter":
                stack.append(("exit", item, depth))
                for member in reversed(item.members):
                    stack.append(("enter" if isinstance(member, GroupSpec)
                                  else "lane", member, depth + 1))

    def signals(self) -> List[SignalSpec]:
        """All signals in document order."""
        return [item for event, item, _ in self.walk()
                if event == "lane" and isinstance(item, SignalSpec)]


@dataclass(frozen=True)
class CompiledSignal:
    """A signal after lexing and segment resolution."""
    spec: SignalSpec
    tokens: Tuple[CycleToken, ...]
    segments: Tuple[Segment, ...]
    length: int

    @property
    def name(self) -> str:
        return self.spec.name


def compile_signal(spec: SignalSpec) -> CompiledSignal:
    """Lex and resolve one signal."""
    tokens = lex_wave(spec.wave, spec.node, spec.name)
    length = spec.cycles if spec.cycles is not None else len(tokens) * spec.period
    segments = resolve_segments(tokens, spec.period, spec.data, length, spec.name)
    return CompiledSignal(spec, tokens, segments, length)


# =============================================================================
# PARSING
# =============================================================================

def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_signal(raw: Mapping[str, Any]) -> Union[SignalSpec, Spacer]:
    if not raw:
        return Spacer()

    for key in raw:
        if key not in SIGNAL_KEYS:
            logger.debug("ignoring unknown signal key %r", key)

    name = raw.get("name", "")
    if not isinstance(name, str):
        raise MalformedDocument(f"Signal name must be a string, got {name!r}")

    wave = raw.get("wave")
    cycles = raw.get("cycles")
    if wave is None and cycles is None:
        raise MalformedDocument("Signal has neither a wave nor a cycle count", name)
    if wave is not None and not isinstance(wave, str):
        raise MalformedDocument("Signal wave must be a string", name)
    if cycles is not None and (not _is_int(cycles) or cycles < 0):
        raise MalformedDocument(
            f"Signal cycles must be a non-negative integer, got {cycles!r}", name)

    data = raw.get("data", ())
    if isinstance(data, str):
        data = tuple(data.split())
    elif isinstance(data, (list, tuple)):
        if not all(isinstance(d, (str, Real)) and not isinstance(d, bool) for d in data):
            raise MalformedDocument("Signal data entries must be strings", name)
        data = tuple(str(d) for d in data)
    else:
        raise MalformedDocument("Signal data must be a string or a list", name)

    node = raw.get("node")
    if isinstance(node, (list, tuple)):
        if not all(n is None or isinstance(n, str) for n in node):
            raise MalformedDocument("Signal node entries must be strings", name)
        node = tuple(node)
    elif node is not None and not isinstance(node, str):
        raise MalformedDocument("Signal node must be a string or a list", name)

    period = raw.get("period", 1)
    if not _is_int(period) or period < 1:
        raise MalformedDocument(
            f"Signal period must be a positive integer, got {period!r}", name)

    phase = raw.get("phase", 0.0)
    if isinstance(phase, bool) or not isinstance(phase, Real):
        raise MalformedDocument(f"Signal phase must be a number, got {phase!r}", name)

    return SignalSpec(name=name, wave=wave or "", data=data, node=node,
                      period=period, phase=float(phase), cycles=cycles)


class _Frame:
    """Group under construction."""

    def __init__(self, label: Optional[str], raw: Sequence[Any]):
        self.label = label
        self.items = iter(raw)
        self.members: List[Item] = []


def _split_group(raw: Sequence[Any]) -> Tuple[Optional[str], Sequence[Any]]:
    if raw and isinstance(raw[0], str):
        label, rest = raw[0], raw[1:]
    else:
        label, rest = None, raw
    for item in rest:
        if isinstance(item, str):
            raise MalformedDocument(
                f"Group {label!r} has a second label {item!r}")
    return label, rest


def parse_items(raw: Sequence[Any]) -> Tuple[Item, ...]:
    """Parse the ``signal`` list into a tree of items."""
    if not isinstance(raw, (list, tuple)):
        raise MalformedDocument("'signal' must be a list")

    _END = object()
    stack = [_Frame(None, raw)]
    result: Tuple[Item, ...] = ()

    while stack:
        frame = stack[-1]
        item = next(frame.items, _END)

        if item is _END:
            stack.pop()
            if stack:
                stack[-1].members.append(GroupSpec(frame.label, tuple(frame.members)))
            else:
                result = tuple(frame.members)
        elif isinstance(item, Mapping):
            frame.members.append(_parse_signal(item))
        elif isinstance(item, (list, tuple)):
            label, rest = _split_group(item)
            stack.append(_Frame(label, rest))
        else:
            raise MalformedDocument(
                f"Unexpected {type(item).__name__} in signal list: {item!r}")

    return result


def _parse_annotation(raw: Any, key: str) -> Optional[Annotation]:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise MalformedDocument(f"'{key}' must be a mapping")

    for k in raw:
        if k not in ANNOTATION_KEYS:
            logger.debug("ignoring unknown %s key %r", key, k)

    text = raw.get("text")
    if text is not None and not isinstance(text, str):
        raise MalformedDocument(f"{key}.text must be a string")
    for k in ("tick", "tock"):
        if raw.get(k) is not None and not _is_int(raw[k]):
            raise MalformedDocument(f"{key}.{k} must be an integer")
    every = raw.get("every", 1)
    if not _is_int(every) or every < 1:
        raise MalformedDocument(f"{key}.every must be a positive integer")

    return Annotation(text=text, tick=raw.get("tick"), tock=raw.get("tock"),
                      every=every)


def parse_document(raw: Mapping[str, Any],
                   options: Optional[RenderOptions] = None) -> Document:
    """
    Validate a deserialized document.

    Args:
        raw: Mapping with a required ``signal`` list and optional ``edge``,
            ``config``, ``head`` and ``foot``
        options: Base options the document ``config`` is merged over

    Raises:
        MalformedDocument: missing ``signal``, wrong field types
    """
    if not isinstance(raw, Mapping):
        raise MalformedDocument(
            f"Document must be a mapping, got {type(raw).__name__}")
    if "signal" not in raw:
        raise MalformedDocument("Document has no 'signal' list")

    items = parse_items(raw["signal"])

    raw_edges = raw.get("edge", ())
    if not isinstance(raw_edges, (list, tuple)):
        raise MalformedDocument("'edge' must be a list")
    edges = tuple(parse_edge(e) for e in raw_edges)

    return Document(
        items=items,
        edges=edges,
        options=RenderOptions.from_config(raw.get("config"), options),
        head=_parse_annotation(raw.get("head"), "head"),
        foot=_parse_annotation(raw.get("foot"), "foot"),
    )
