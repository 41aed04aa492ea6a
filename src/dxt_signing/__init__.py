"""
dxt-signing: signing and offline verification of DXT archives.

A signed archive carries META-INF/dxt-signatures.json, binding a SHA-256
digest of every other entry to an RSA (SHA256withRSA) signature. Trust is
decided against a caller-supplied map of key id -> public key.
"""

__version__ = "1.0.0"

from .archive import MANIFEST_PATH, SIGNATURE_PATH, DxtArchive, DxtEntry
from .codec import (
    SignatureFile,
    SignatureRecord,
    SignedPayload,
    extract_signature_file,
    parse_signature_file,
    serialize_signature_file,
)
from .digest import compute_manifest_digest, compute_payload_digest
from .errors import (
    DxtSignatureError,
    ErrorCode,
    MalformedSignature,
    ManifestDigestMismatch,
    ManifestMissing,
    NoSignatures,
    PayloadDigestMismatch,
    SignatureInvalid,
    SignatureNotFound,
    SigningKeyInvalid,
    UntrustedKey,
    VerificationError,
    VerificationResult,
)
from .keys import (
    RsaSha256Primitive,
    SignaturePrimitive,
    load_private_key,
    load_public_key,
    load_trusted_keys,
)
from .sign import sign_archive, sign_dxt_file
from .verify import verify_archive, verify_dxt_file

__all__ = [
    # Archive
    "MANIFEST_PATH",
    "SIGNATURE_PATH",
    "DxtArchive",
    "DxtEntry",
    # Digest
    "compute_payload_digest",
    "compute_manifest_digest",
    # Codec
    "SignatureFile",
    "SignatureRecord",
    "SignedPayload",
    "parse_signature_file",
    "serialize_signature_file",
    "extract_signature_file",
    # Keys
    "RsaSha256Primitive",
    "SignaturePrimitive",
    "load_private_key",
    "load_public_key",
    "load_trusted_keys",
    # Signing
    "sign_archive",
    "sign_dxt_file",
    # Verification
    "verify_archive",
    "verify_dxt_file",
    # Errors
    "ErrorCode",
    "DxtSignatureError",
    "SignatureNotFound",
    "NoSignatures",
    "MalformedSignature",
    "ManifestMissing",
    "ManifestDigestMismatch",
    "PayloadDigestMismatch",
    "UntrustedKey",
    "SignatureInvalid",
    "SigningKeyInvalid",
    "VerificationError",
    "VerificationResult",
]
