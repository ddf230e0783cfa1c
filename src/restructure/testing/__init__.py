"""Restructure testing framework.

Data-driven helpers for structuring tests: case dataclasses and assertions
on primitive sequences. The ``runner`` module imports pytest and is not
re-exported here::

    from restructure.testing import StructuringCase
    from restructure.testing.runner import run_structuring_test
"""

from .assertions import (
    assert_consumption,
    assert_partition,
    assert_references_valid,
    assert_sound,
    assert_structured,
    replay,
)
from .cases import ExpectedPrimitive, StructuringCase

__all__ = [
    "ExpectedPrimitive",
    "StructuringCase",
    "assert_consumption",
    "assert_partition",
    "assert_references_valid",
    "assert_sound",
    "assert_structured",
    "replay",
]
