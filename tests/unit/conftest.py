# tests/unit/conftest.py
"""
Marker assignment for unit tests.
"""

from __future__ import annotations


def pytest_collection_modifyitems(items):
    """Add tier markers to unit tests based on type.

    Tier 1 (every commit): Pure logic tests with no I/O or mocks
    Tier 2 (PR merge): Tests with fakes, temp files or mock transports
    """
    # Files that should be tier1 (pure logic, fast, no external deps)
    TIER1_PATTERNS = [
        "test_variations",
        "test_priority",
        "test_patterns",
        "test_synthesizer",
        "test_linker",
        "test_matcher",
        "test_steps",
        "test_activation",
        "test_decay",
    ]

    for item in items:
        fspath = str(item.fspath)

        # Only process tests in unit directory
        if "/unit/" not in fspath and "\\unit\\" not in fspath:
            continue

        if any(pattern in fspath for pattern in TIER1_PATTERNS):
            item.add_marker("tier1")
        else:
            item.add_marker("tier2")
