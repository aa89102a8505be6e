"""
wavelane Render Options — Dimensions, spacing and theme.

All pixel constants of a render live here. A document's ``config`` block is
merged over the defaults with ``RenderOptions.from_config``.
"""

import logging
from dataclasses import dataclass, field, fields, replace
from numbers import Real
from typing import Any, Callable, Mapping, Optional, Tuple

from wavelane.errors import MalformedDocument

logger = logging.getLogger(__name__)


# WaveDrom data box colours for symbols '2' through '9'
DEFAULT_BACKGROUNDS = (
    "#FFFFFF",
    "#F7F7A1",
    "#F9D49F",
    "#ADDEFF",
    "#ACD5B6",
    "#A4ABE1",
    "#E8A8F0",
    "#FBDADA",
)


@dataclass(frozen=True)
class RenderOptions:
    """
    Render configuration.

    Wave geometry:
      cycle_width × hscale is the width of one cycle column; gap_shrink
      scales columns that hold only repeats and gaps (1.0 = no shrink),
      never below gap_min_width.

    Figure layout:
      padding_* surround the figure, schema_* pad the lane area,
      line_spacing separates lanes, group_indent is added per nesting
      level and group_margin above and below each group.
    """
    # Wave geometry
    cycle_width: float = 48.0
    hscale: float = 1.0
    wave_height: float = 24.0
    transition_offset: float = 4.0
    gap_shrink: float = 1.0
    gap_min_width: float = 16.0

    # Figure layout
    padding_top: float = 8.0
    padding_bottom: float = 8.0
    padding_left: float = 8.0
    padding_right: float = 8.0
    schema_top: float = 8.0
    schema_bottom: float = 8.0
    name_spacing: float = 16.0
    line_spacing: float = 16.0
    group_indent: float = 24.0
    group_margin: float = 8.0

    # Text
    font_family: str = "Helvetica"
    font_size: float = 14.0
    char_width: float = 0.6      # glyph advance as a fraction of font size
    text_color: str = "#000000"

    # Theme
    stroke: str = "#000000"
    stroke_width: float = 1.0
    edge_color: str = "#0041C4"
    hatch_color: str = "#888888"
    error_color: str = "#FF0000"
    backgrounds: Tuple[str, ...] = DEFAULT_BACKGROUNDS

    # (text, font_size) -> pixel width; None uses the char_width estimate
    text_measure: Optional[Callable[[str, float], float]] = field(
        default=None, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "backgrounds", tuple(self.backgrounds))
        if self.cycle_width <= 0 or self.hscale <= 0:
            raise MalformedDocument(
                f"cycle_width and hscale must be positive, got "
                f"{self.cycle_width} and {self.hscale}")
        if not 0 < self.gap_shrink <= 1:
            raise MalformedDocument(
                f"gap_shrink must be in (0, 1], got {self.gap_shrink}")
        if self.wave_height <= 0:
            raise MalformedDocument("wave_height must be positive")
        if self.transition_offset * 2 > self.cycle_width * self.hscale:
            raise MalformedDocument(
                "transition_offset does not fit in one cycle")
        if len(self.backgrounds) < 8:
            raise MalformedDocument("backgrounds needs 8 colours ('2'-'9')")

    @property
    def scaled_cycle_width(self) -> float:
        """Width in pixels of one unshrunk cycle column."""
        return self.cycle_width * self.hscale

    @property
    def min_gap_width(self) -> float:
        """Smallest width a shrunk column may take."""
        return min(max(self.gap_min_width, self.transition_offset * 2),
                   self.scaled_cycle_width)

    def background(self, color: int) -> str:
        """Fill colour of a data box (colour index 2-9)."""
        return self.backgrounds[color - 2]

    def text_width(self, text: str) -> float:
        """
        Rendered width of ``text``.

        Without a ``text_measure`` function this is an estimate: every glyph
        advances ``char_width`` x ``font_size``. Pass a measuring function
        backed by real font metrics for proportional fonts.
        """
        if self.text_measure is not None:
            return float(self.text_measure(text, self.font_size))
        return len(text) * self.font_size * self.char_width

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]],
                    base: Optional['RenderOptions'] = None) -> 'RenderOptions':
        """
        Merge a document ``config`` block over ``base`` (or the defaults).

        Option names are accepted at the top level; ``theme`` may hold the
        same names as a nested mapping. Unknown keys are ignored.
        """
        base = base or cls()
        if not config:
            return base
        if not isinstance(config, Mapping):
            raise MalformedDocument(
                f"config must be a mapping, got {type(config).__name__}")

        merged = dict(config)
        theme = merged.pop("theme", None)
        if theme is not None:
            if not isinstance(theme, Mapping):
                raise MalformedDocument("config.theme must be a mapping")
            merged.update(theme)

        known = {f.name: f for f in fields(cls) if f.name not in _NOT_CONFIGURABLE}
        updates = {}
        for key, value in merged.items():
            if key not in known:
                logger.debug("ignoring unknown config key %r", key)
                continue
            updates[key] = _check_value(key, value, getattr(base, key))

        return replace(base, **updates)


_NOT_CONFIGURABLE = frozenset({"text_measure"})


def _check_value(key: str, value: Any, default: Any) -> Any:
    if isinstance(default, tuple):
        if (not isinstance(value, (list, tuple))
                or not all(isinstance(v, str) for v in value)):
            raise MalformedDocument(f"config {key!r} must be a list of colours")
        return tuple(value)
    if isinstance(default, str):
        if not isinstance(value, str):
            raise MalformedDocument(f"config {key!r} must be a string")
        return value
    if isinstance(value, bool) or not isinstance(value, Real):
        raise MalformedDocument(
            f"config {key!r} must be a number, got {value!r}")
    return float(value)


DEFAULT_OPTIONS = RenderOptions()
