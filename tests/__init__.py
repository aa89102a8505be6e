"""
wavelane Test Suite
===================

    python -m pytest tests/                 # Run all tests
    python -m pytest tests/unit             # Stage-by-stage unit tests
    python -m pytest tests/integration      # Full render pipeline

SVG tests are skipped when svgwrite is not installed.
"""
