import pytest

from crosstest.utils.encoding import b64d, b64e


def test_b64e_is_urlsafe_without_padding() -> None:
    assert b64e(b"\xfb\xff") == "-_8"
    assert b64e(b"") == ""


@pytest.mark.parametrize("value", ["-_8", "-_8=", "+/8=", "+/8"])
def test_b64d_accepts_both_alphabets_and_optional_padding(value: str) -> None:
    assert b64d(value) == b"\xfb\xff"


@pytest.mark.parametrize("value", ["a", "ab$d", "ä"])
def test_b64d_rejects_garbage(value: str) -> None:
    with pytest.raises(ValueError):
        b64d(value)
