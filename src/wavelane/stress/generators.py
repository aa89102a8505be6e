"""
wavelane stress generators — Seeded random documents.

All generators are reproducible: the same arguments and seed give the same
output.
"""

from typing import Any, Dict, List, Optional

import numpy as np

# Symbols a wave may start with
OPENING_SYMBOLS = "01hlHLzx=23456789"
# Everything, continuation symbols included
WAVE_SYMBOLS = OPENING_SYMBOLS + "..|"


def generate_wave(n_cycles: int, seed: Optional[int] = None,
                  repeat_bias: float = 0.3) -> str:
    """
    Random wave string of ``n_cycles`` symbols.

    Args:
        n_cycles: Number of cycle symbols
        seed: RandomState seed
        repeat_bias: Probability of a '.' after the first cycle

    Returns:
        A wave string that always lexes
    """
    if n_cycles <= 0:
        return ""
    rng = np.random.RandomState(seed)
    symbols = [OPENING_SYMBOLS[rng.randint(len(OPENING_SYMBOLS))]]
    for _ in range(n_cycles - 1):
        if rng.random_sample() < repeat_bias:
            symbols.append(".")
        else:
            symbols.append(WAVE_SYMBOLS[rng.randint(len(WAVE_SYMBOLS))])
    return "".join(symbols)


def generate_clock(n_cycles: int, marked: bool = False,
                   negative: bool = False) -> str:
    """Clock wave: one clock symbol followed by repeats."""
    if n_cycles <= 0:
        return ""
    symbol = "n" if negative else "p"
    if marked:
        symbol = symbol.upper()
    return symbol + "." * (n_cycles - 1)


def _data_count(wave: str) -> int:
    return sum(1 for c in wave if c == "=" or c in "23456789")


def generate_document(n_signals: int = 8, n_cycles: int = 16,
                      seed: Optional[int] = None,
                      group_every: int = 0,
                      n_edges: int = 0) -> Dict[str, Any]:
    """
    Random document with a clock followed by random signals.

    Args:
        n_signals: Number of random (non-clock) signals
        n_cycles: Cycles per signal
        seed: RandomState seed
        group_every: Wrap each run of this many signals in a group (0 = none)
        n_edges: Number of edges between random anchors

    Returns:
        A deserialized document mapping
    """
    rng = np.random.RandomState(seed)
    signals: List[Dict[str, Any]] = [{"name": "clk", "wave": generate_clock(n_cycles)}]
    anchors: List[str] = []

    for i in range(n_signals):
        wave = generate_wave(n_cycles, seed=int(rng.randint(2 ** 31 - 1)))
        sig: Dict[str, Any] = {"name": f"s{i}", "wave": wave}
        n_data = _data_count(wave)
        if n_data:
            sig["data"] = [f"D{j}" for j in range(n_data)]
        if n_edges and n_cycles:
            cycle = int(rng.randint(n_cycles))
            name = f"n{i}"
            sig["node"] = [None] * cycle + [name]
            anchors.append(name)
        signals.append(sig)

    items: List[Any] = signals[:1]
    body = signals[1:]
    if group_every > 0:
        for start in range(0, len(body), group_every):
            items.append([f"g{start // group_every}"] + body[start:start + group_every])
    else:
        items.extend(body)

    doc: Dict[str, Any] = {"signal": items}
    if n_edges and len(anchors) >= 2:
        edges = []
        for _ in range(n_edges):
            a, b = rng.choice(len(anchors), size=2, replace=False)
            edges.append(f"{anchors[a]}~>{anchors[b]}")
        doc["edge"] = edges
    return doc
