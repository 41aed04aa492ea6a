"""CLI tests: sign, verify and inspect against files on disk."""

from pathlib import Path

import sys

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dxt_signing import SIGNATURE_PATH, DxtArchive
from dxt_signing.cli import EXIT_RUNTIME_ERROR, EXIT_SUCCESS, EXIT_VERIFICATION_FAILED, main
from dxt_signing.config import load_config_from_env
from dxt_signing.keys import public_key_pem


PRIVATE_KEY = rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def workspace(tmp_path: Path) -> dict[str, Path]:
    private_path = tmp_path / "private.pem"
    private_path.write_bytes(PRIVATE_KEY.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ))
    public_path = tmp_path / "public.pem"
    public_path.write_text(public_key_pem(PRIVATE_KEY), encoding="utf-8")

    archive_path = tmp_path / "demo.dxt"
    DxtArchive.from_mapping({
        "manifest.json": '{"name": "demo"}',
        "server/index.js": "module.exports = {};\n",
    }).write(archive_path)

    return {
        "private": private_path,
        "public": public_path,
        "archive": archive_path,
        "signed": tmp_path / "demo.signed.dxt",
    }


def _sign(ws: dict[str, Path], key_id: str = "k1") -> int:
    return main(["sign", str(ws["archive"]), str(ws["private"]), key_id, str(ws["signed"])])


def test_sign_then_verify(workspace, capsys):
    assert _sign(workspace) == EXIT_SUCCESS
    assert workspace["signed"].exists()
    assert SIGNATURE_PATH in DxtArchive.from_path(workspace["signed"])
    assert SIGNATURE_PATH not in DxtArchive.from_path(workspace["archive"])

    code = main(["verify", str(workspace["signed"]), "k1", str(workspace["public"])])
    assert code == EXIT_SUCCESS
    assert "verification successful" in capsys.readouterr().out


def test_verify_untrusted_key_id(workspace, capsys):
    _sign(workspace, key_id="k1")
    code = main(["verify", str(workspace["signed"]), "k2", str(workspace["public"])])
    assert code == EXIT_VERIFICATION_FAILED
    assert "UNTRUSTED_KEY" in capsys.readouterr().err


def test_verify_unsigned_archive(workspace, capsys):
    code = main(["verify", str(workspace["archive"]), "k1", str(workspace["public"])])
    assert code == EXIT_VERIFICATION_FAILED
    assert "SIGNATURE_NOT_FOUND" in capsys.readouterr().err


def test_verify_tampered_archive(workspace, capsys):
    _sign(workspace)
    signed = DxtArchive.from_path(workspace["signed"])
    signed.with_entry("server/index.js", b"evil();\n").write(workspace["signed"])

    code = main(["verify", str(workspace["signed"]), "k1", str(workspace["public"])])
    assert code == EXIT_VERIFICATION_FAILED
    assert "PAYLOAD_DIGEST_MISMATCH" in capsys.readouterr().err


def test_sign_without_manifest_writes_nothing(workspace, capsys):
    DxtArchive.from_mapping({"payload.bin": b"\x01"}).write(workspace["archive"])

    assert _sign(workspace) == EXIT_RUNTIME_ERROR
    assert not workspace["signed"].exists()
    assert "MANIFEST_MISSING" in capsys.readouterr().err


def test_sign_with_bad_key_writes_nothing(workspace, capsys):
    workspace["private"].write_text("not a key", encoding="utf-8")

    assert _sign(workspace) == EXIT_RUNTIME_ERROR
    assert not workspace["signed"].exists()
    assert "SIGNING_KEY_INVALID" in capsys.readouterr().err


def test_sign_with_empty_key_id_writes_nothing(workspace, capsys):
    assert _sign(workspace, key_id="") == EXIT_RUNTIME_ERROR
    assert not workspace["signed"].exists()
    assert "SIGNING_KEY_INVALID" in capsys.readouterr().err


def test_verify_malformed_signature_file(workspace, capsys):
    _sign(workspace)
    signed = DxtArchive.from_path(workspace["signed"])
    signed.with_entry(SIGNATURE_PATH, b"[" * 100000).write(workspace["signed"])

    code = main(["verify", str(workspace["signed"]), "k1", str(workspace["public"])])
    assert code == EXIT_VERIFICATION_FAILED
    assert "MALFORMED_SIGNATURE" in capsys.readouterr().err


def test_missing_archive_is_runtime_error(workspace):
    code = main(["verify", str(workspace["archive"].with_name("nope.dxt")), "k1", str(workspace["public"])])
    assert code == EXIT_RUNTIME_ERROR


def test_inspect(workspace, capsys):
    _sign(workspace)
    capsys.readouterr()

    assert main(["inspect", str(workspace["signed"])]) == EXIT_SUCCESS
    out = capsys.readouterr().out
    assert "key k1 (SHA256withRSA)" in out
    assert "2 entries" in out


def test_inspect_unsigned(workspace):
    assert main(["inspect", str(workspace["archive"])]) == EXIT_VERIFICATION_FAILED


def test_no_command_prints_help(capsys):
    assert main([]) == EXIT_RUNTIME_ERROR
    assert "usage" in capsys.readouterr().out.lower()


def test_config_from_env():
    config = load_config_from_env({
        "DXT_LOG_LEVEL": "debug",
        "DXT_CHECK_MANIFEST_DIGEST": "true",
    })
    assert config.log_level == "DEBUG"
    assert config.check_manifest_digest is True
    assert config.log_file is None

    defaults = load_config_from_env({})
    assert defaults.log_level == "INFO"
    assert defaults.check_manifest_digest is False
