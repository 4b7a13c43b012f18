import json
from pathlib import Path

from typer.testing import CliRunner

from crosstest.cli.main import app
from crosstest.keyset import binary, templates
from crosstest.utils.encoding import b64d
from crosstest.version import __version__

runner = CliRunner()


def test_version() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.stdout.strip() == __version__


def test_templates_lists_names() -> None:
    result = runner.invoke(app, ["templates"])
    assert result.exit_code == 0
    assert result.stdout.split() == templates.template_names()


def test_template_prints_base64url() -> None:
    result = runner.invoke(app, ["template", "aes128_gcm"])
    assert result.exit_code == 0
    assert b64d(result.stdout.strip()) == templates.serialized_template("AES128_GCM")


def test_unknown_template_exits_nonzero() -> None:
    result = runner.invoke(app, ["template", "NOPE"])
    assert result.exit_code == 1


def test_generate_binary_and_json() -> None:
    result = runner.invoke(app, ["generate", "HMAC_SHA256_PRF"])
    assert result.exit_code == 0
    keyset = binary.decode_keyset(b64d(result.stdout.strip()))
    assert keyset.keys[0].key_id == keyset.primary_key_id

    result = runner.invoke(app, ["generate", "ED25519", "--json"])
    assert result.exit_code == 0
    document = json.loads(result.stdout)
    assert document["key"][0]["keyData"]["typeUrl"].endswith("Ed25519PrivateKey")


def test_init_config(tmp_path: Path) -> None:
    target = tmp_path / "config.yaml"
    result = runner.invoke(app, ["init-config", "--destination", str(target)])
    assert result.exit_code == 0
    assert target.is_file()
    result = runner.invoke(app, ["init-config", "--destination", str(target)])
    assert result.exit_code == 1
    result = runner.invoke(app, ["--config", str(target), "init-config", "--destination", str(target), "--force"])
    assert result.exit_code == 0
