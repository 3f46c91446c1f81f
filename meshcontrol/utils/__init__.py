# meshcontrol/utils/__init__.py
"""
Utility classes and constants for meshcontrol.
"""

from .versioned_cache import VersionedCache


__all__ = [
    "VersionedCache",
]
