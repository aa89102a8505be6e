"""wavelane stress testing utilities."""

from wavelane.stress.generators import (
    generate_clock,
    generate_document,
    generate_wave,
)

__all__ = ["generate_document", "generate_wave", "generate_clock"]
