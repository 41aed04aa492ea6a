"""
Signature file model and JSON codec.

The signature file lives at META-INF/dxt-signatures.json:

    {
      "signatures": [
        {"version": 1, "signingKeyId": ..., "algorithm": "SHA256withRSA",
         "signature": <base64>, "certificate": "", "timestamp": <int>}
      ],
      "signedPayload": {"digestAlgorithm": "SHA-256", "digest": <hex>,
                        "dxtVersion": "1.0.0", "manifestDigest": <hex>}
    }
"""

import json
from dataclasses import dataclass, field
from typing import Any

from .archive import SIGNATURE_PATH, DxtArchive
from .errors import MalformedSignature, SignatureNotFound


RECORD_VERSION = 1
SIGNATURE_ALGORITHM = "SHA256withRSA"
DXT_VERSION = "1.0.0"


def _require(data: dict[str, Any], key: str, kind: type, where: str) -> Any:
    if key not in data:
        raise MalformedSignature(
            f"Missing required field: {where}.{key}",
            {"field": f"{where}.{key}"},
        )
    value = data[key]
    # bool is an int subclass; a boolean version or timestamp is still wrong
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise MalformedSignature(
            f"Field {where}.{key} must be {kind.__name__}, got {type(value).__name__}",
            {"field": f"{where}.{key}", "type": type(value).__name__},
        )
    return value


@dataclass
class SignedPayload:
    """What the signature covers: the payload digest plus context."""
    digest: str
    manifest_digest: str
    digest_algorithm: str = "SHA-256"
    dxt_version: str = DXT_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "digestAlgorithm": self.digest_algorithm,
            "digest": self.digest,
            "dxtVersion": self.dxt_version,
            "manifestDigest": self.manifest_digest,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "SignedPayload":
        if not isinstance(data, dict):
            raise MalformedSignature("signedPayload must be an object")
        return cls(
            digest_algorithm=_require(data, "digestAlgorithm", str, "signedPayload"),
            digest=_require(data, "digest", str, "signedPayload"),
            dxt_version=_require(data, "dxtVersion", str, "signedPayload"),
            manifest_digest=_require(data, "manifestDigest", str, "signedPayload"),
        )


@dataclass
class SignatureRecord:
    """One detached signature over SignedPayload.digest."""
    signing_key_id: str
    signature: str
    timestamp: int
    version: int = RECORD_VERSION
    algorithm: str = SIGNATURE_ALGORITHM
    certificate: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "signingKeyId": self.signing_key_id,
            "algorithm": self.algorithm,
            "signature": self.signature,
            "certificate": self.certificate,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "SignatureRecord":
        if not isinstance(data, dict):
            raise MalformedSignature("Signature record must be an object")
        certificate = data.get("certificate", "")
        if certificate is None:
            certificate = ""
        if not isinstance(certificate, str):
            raise MalformedSignature(
                "Field signatures[].certificate must be str",
                {"field": "signatures[].certificate"},
            )
        return cls(
            version=_require(data, "version", int, "signatures[]"),
            signing_key_id=_require(data, "signingKeyId", str, "signatures[]"),
            algorithm=_require(data, "algorithm", str, "signatures[]"),
            signature=_require(data, "signature", str, "signatures[]"),
            certificate=certificate,
            timestamp=_require(data, "timestamp", int, "signatures[]"),
        )


@dataclass
class SignatureFile:
    """The document stored at META-INF/dxt-signatures.json."""
    signed_payload: SignedPayload
    signatures: list[SignatureRecord] = field(default_factory=list)

    @property
    def latest(self) -> SignatureRecord | None:
        """The authoritative record: the last one appended."""
        return self.signatures[-1] if self.signatures else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "signatures": [sig.to_dict() for sig in self.signatures],
            "signedPayload": self.signed_payload.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "SignatureFile":
        if not isinstance(data, dict):
            raise MalformedSignature(
                "Signature file must be a JSON object",
                {"type": type(data).__name__},
            )
        signatures = _require(data, "signatures", list, "$")
        payload = _require(data, "signedPayload", dict, "$")
        return cls(
            signatures=[SignatureRecord.from_dict(item) for item in signatures],
            signed_payload=SignedPayload.from_dict(payload),
        )


def parse_signature_file(data: bytes | str) -> SignatureFile:
    """
    Parse signature file bytes.

    Raises:
        MalformedSignature: not UTF-8 JSON, or a required field is
            missing or has the wrong type
    """
    try:
        text = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data
        document = json.loads(text)
    except (ValueError, RecursionError) as exc:
        # ValueError covers UnicodeDecodeError, JSONDecodeError and
        # integer literals over the int string-conversion limit
        raise MalformedSignature(f"Signature file is not valid JSON: {exc}") from exc
    return SignatureFile.from_dict(document)


def serialize_signature_file(signature_file: SignatureFile) -> bytes:
    """Serialize with stable field order and 2-space indent."""
    return json.dumps(signature_file.to_dict(), indent=2, ensure_ascii=False).encode("utf-8")


def extract_signature_file(archive: DxtArchive) -> SignatureFile:
    """
    Read and parse the signature entry of an archive.

    Raises:
        SignatureNotFound: the archive has no signature entry
        MalformedSignature: the entry cannot be parsed
    """
    if not archive.has_entry(SIGNATURE_PATH):
        raise SignatureNotFound(
            f"Signature file not found: {SIGNATURE_PATH}",
            {"path": SIGNATURE_PATH},
        )
    return parse_signature_file(archive.read(SIGNATURE_PATH))
