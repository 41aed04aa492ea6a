"""
RSA key loading and the SHA256withRSA signature primitive.

Keys are PEM text. Signatures are RSASSA-PKCS1-v1_5 with SHA-256, the
same scheme as Node's crypto.createSign("RSA-SHA256").
"""

from pathlib import Path
from typing import Mapping, Protocol, Union

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .errors import SigningKeyInvalid


PrivateKeyInput = Union[str, bytes, rsa.RSAPrivateKey]
PublicKeyInput = Union[str, bytes, rsa.RSAPublicKey]


class SignaturePrimitive(Protocol):
    """Detached signature scheme used by sign_archive / verify_archive."""

    algorithm: str

    def sign(self, private_key: rsa.RSAPrivateKey, message: bytes) -> bytes:
        ...

    def verify(self, public_key: rsa.RSAPublicKey, message: bytes, signature: bytes) -> bool:
        ...


class RsaSha256Primitive:
    """RSA PKCS#1 v1.5 over SHA-256."""

    algorithm = "SHA256withRSA"

    def sign(self, private_key: rsa.RSAPrivateKey, message: bytes) -> bytes:
        return private_key.sign(message, padding.PKCS1v15(), hashes.SHA256())

    def verify(self, public_key: rsa.RSAPublicKey, message: bytes, signature: bytes) -> bool:
        try:
            public_key.verify(signature, message, padding.PKCS1v15(), hashes.SHA256())
        except InvalidSignature:
            return False
        return True


DEFAULT_PRIMITIVE = RsaSha256Primitive()


def _pem_bytes(value: str | bytes) -> bytes:
    data = value.encode("utf-8") if isinstance(value, str) else bytes(value)
    if not data.strip():
        raise ValueError("empty key material")
    return data


def load_private_key(key: PrivateKeyInput, password: bytes | None = None) -> rsa.RSAPrivateKey:
    """
    Load an RSA private key from PEM text.

    Raises:
        SigningKeyInvalid: not PEM, encrypted without a password, or not RSA
    """
    if isinstance(key, rsa.RSAPrivateKey):
        return key
    if not isinstance(key, (str, bytes, bytearray)):
        raise SigningKeyInvalid(
            "Expected RSA private key",
            {"key_type": type(key).__name__},
        )
    try:
        key_obj = serialization.load_pem_private_key(_pem_bytes(key), password=password)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise SigningKeyInvalid(f"Invalid PEM private key ({exc})") from exc
    if not isinstance(key_obj, rsa.RSAPrivateKey):
        raise SigningKeyInvalid(
            "Expected RSA private key",
            {"key_type": type(key_obj).__name__},
        )
    return key_obj


def load_public_key(key: PublicKeyInput) -> rsa.RSAPublicKey:
    """
    Load an RSA public key from PEM text.

    Raises:
        ValueError: not a PEM public key, or not RSA
    """
    if isinstance(key, rsa.RSAPublicKey):
        return key
    if not isinstance(key, (str, bytes, bytearray)):
        raise ValueError("expected RSA public key")
    try:
        key_obj = serialization.load_pem_public_key(_pem_bytes(key))
    except (TypeError, UnsupportedAlgorithm) as exc:
        raise ValueError(f"invalid PEM public key ({exc})") from exc
    if not isinstance(key_obj, rsa.RSAPublicKey):
        raise ValueError("expected RSA public key")
    return key_obj


def load_private_key_file(path: str | Path, password: bytes | None = None) -> rsa.RSAPrivateKey:
    return load_private_key(Path(path).read_text(encoding="utf-8"), password=password)


def load_trusted_keys(paths: Mapping[str, str | Path]) -> dict[str, str]:
    """Read a {key_id: pem_path} mapping into a {key_id: pem_text} trust store."""
    return {
        key_id: Path(path).read_text(encoding="utf-8")
        for key_id, path in paths.items()
    }


def public_key_pem(key: rsa.RSAPrivateKey | rsa.RSAPublicKey) -> str:
    """SubjectPublicKeyInfo PEM of a key pair's public half."""
    public = key.public_key() if isinstance(key, rsa.RSAPrivateKey) else key
    return public.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("utf-8")
