"""
restructure.core.typing: Shared typing imports.

Use ``from restructure.core import typing`` instead of importing from typing
directly, so the names the package relies on are kept in one place.
"""

# isort: skip_file
from __future__ import annotations

from typing import (
    Any,
    Iterable,
    Iterator,
    Mapping,
    Sequence,
    TYPE_CHECKING,
    TypeAlias,
)


__all__ = [
    "Any",
    "Iterable",
    "Iterator",
    "Mapping",
    "Sequence",
    "TYPE_CHECKING",
    "TypeAlias",
]
