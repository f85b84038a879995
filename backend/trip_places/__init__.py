"""Place normalization & boarding-point resolution for the trip-booking backend."""

from .hierarchy import build_groups
from .normalizer import normalize
from .resolver import resolve_leaf

__all__ = ["build_groups", "normalize", "resolve_leaf"]
