import asyncio
from typing import Any, Callable, Dict

import pytest
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.ciphers.aead import AESGCMSIV

from crosstest.daemon.protocol import JSONRPCRequest, MethodContext
from crosstest.keyset import templates
from crosstest.keyset.handle import KeysetHandle
from crosstest.services import build_registry
from crosstest.utils.encoding import b64e


@pytest.fixture
def gcm_siv() -> None:
    try:
        AESGCMSIV(bytes(16))
    except UnsupportedAlgorithm:
        pytest.skip("AES-GCM-SIV is not available in this OpenSSL build")


@pytest.fixture
def new_handle() -> Callable[[str], KeysetHandle]:
    def _new(name: str) -> KeysetHandle:
        return KeysetHandle.generate_new(templates.get_template(name))

    return _new


@pytest.fixture
def new_keyset(new_handle) -> Callable[[str], str]:
    """Fresh binary keyset for a template name, base64url encoded for RPC params."""

    def _new(name: str) -> str:
        return b64e(new_handle(name).write())

    return _new


@pytest.fixture(scope="session")
def registry():
    return build_registry()


@pytest.fixture
def rpc(registry) -> Callable[..., Dict[str, Any]]:
    def _call(method: str, **params: Any) -> Dict[str, Any]:
        request = JSONRPCRequest(method=method, params=params, id=1)
        return asyncio.run(registry.dispatch(MethodContext(server=None, connection=None), request))

    return _call
