"""Family capabilities built from keyset handles."""
from __future__ import annotations

from .factory import PrimitiveSet, build, primitive_set
from .prefix import PREFIX_SIZE, output_prefix

__all__ = ["PrimitiveSet", "build", "primitive_set", "PREFIX_SIZE", "output_prefix"]
