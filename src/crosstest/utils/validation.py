"""Checks applied to listener settings before the server binds."""
from __future__ import annotations

import ipaddress
from pathlib import Path


def ensure_loopback_host(host: str) -> str:
    """Return ``host`` normalised, or raise ``ValueError`` if it is routable.

    The server executes arbitrary key material sent by its callers, so it only
    ever listens on loopback. ``localhost`` (any case, optional trailing dot)
    and bracketed IPv6 literals such as ``[::1]`` are accepted.
    """

    candidate = host.strip()
    if candidate.startswith("[") and candidate.endswith("]"):
        candidate = candidate[1:-1]
    if not candidate:
        raise ValueError("Host must not be empty")
    if candidate.lower().rstrip(".") == "localhost":
        return "localhost"
    try:
        address = ipaddress.ip_address(candidate)
    except ValueError:
        raise ValueError(f"Host '{host}' must resolve to localhost or loopback") from None
    if not address.is_loopback:
        raise ValueError(f"Host '{host}' must be a loopback address")
    return str(address)


def resolve_socket_path(path: Path | str) -> Path:
    """Resolve a Unix socket location.

    Relative paths may not climb out of the working directory and the target
    must not be an existing directory.
    """

    raw = Path(path).expanduser()
    if not raw.is_absolute() and ".." in raw.parts:
        raise ValueError(f"Path traversal is not allowed: {path}")
    resolved = (raw if raw.is_absolute() else Path.cwd() / raw).resolve(strict=False)
    if resolved.is_dir():
        raise ValueError(f"Expected socket path but found directory: {resolved}")
    return resolved


__all__ = ["ensure_loopback_host", "resolve_socket_path"]
