"""Utility exports."""
from .encoding import b64d, b64e
from .validation import ensure_loopback_host, resolve_socket_path

__all__ = ["b64d", "b64e", "ensure_loopback_host", "resolve_socket_path"]
