from .library import PatternLibrary
from .pattern import Pattern, RoleKind

__all__ = ["Pattern", "PatternLibrary", "RoleKind"]
