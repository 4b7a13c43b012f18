import pytest
from pydantic import ValidationError

from crosstest.keyset.models import KeysetEncoding
from crosstest.services.messages import (
    EncryptParams,
    FromJsonParams,
    PrfComputeParams,
    ReadEncryptedParams,
)


def test_binary_fields_decode_from_base64() -> None:
    params = EncryptParams.model_validate({"keyset": "AAE", "plaintext": "aGk="})
    assert params.keyset == b"\x00\x01"
    assert params.plaintext == b"hi"
    assert params.associated_data == b""


def test_null_associated_data_is_empty() -> None:
    params = EncryptParams.model_validate({"keyset": "", "plaintext": "", "associated_data": None})
    assert params.associated_data == b""


@pytest.mark.parametrize(
    "payload",
    [
        {"plaintext": "aGk="},
        {"keyset": "***", "plaintext": "aGk="},
        {"keyset": 5, "plaintext": "aGk="},
        {"keyset": "", "plaintext": "", "unexpected": 1},
    ],
)
def test_invalid_params(payload: dict) -> None:
    with pytest.raises(ValidationError):
        EncryptParams.model_validate(payload)


def test_prf_params() -> None:
    params = PrfComputeParams.model_validate({"keyset": "", "input_data": "", "output_length": 0})
    assert params.key_id is None
    with pytest.raises(ValidationError):
        PrfComputeParams.model_validate({"keyset": "", "input_data": "", "output_length": -1})
    with pytest.raises(ValidationError):
        PrfComputeParams.model_validate(
            {"keyset": "", "input_data": "", "output_length": 1, "key_id": 2**32}
        )


def test_encoding_defaults_and_parsing() -> None:
    params = ReadEncryptedParams.model_validate({"encrypted_keyset": "", "master_keyset": ""})
    assert params.encoding is KeysetEncoding.BINARY
    params = ReadEncryptedParams.model_validate(
        {"encrypted_keyset": "", "master_keyset": "", "encoding": "json"}
    )
    assert params.encoding is KeysetEncoding.JSON
    with pytest.raises(ValidationError):
        ReadEncryptedParams.model_validate({"encrypted_keyset": "", "master_keyset": "", "encoding": "xml"})


def test_from_json_allows_secret_by_default() -> None:
    assert FromJsonParams.model_validate({"json_keyset": "{}"}).allow_secret is True
