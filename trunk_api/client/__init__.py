"""
Presentation-tier helpers: the read-only flag mirror and element sweep
"""

from .flag_mirror import FlagMirror, TaggedElement, resolve_environment

__all__ = ["FlagMirror", "TaggedElement", "resolve_environment"]
