"""Cross-language conformance testing server for keyset-based primitives."""
from .version import __version__

__all__ = ["__version__"]
