"""
Offline DXT signature verification.

verify_archive runs a fixed chain of guards and stops at the first one
that fails:

    signature file present -> at least one record -> payload digest matches
    -> (optional) manifest digest matches -> key id trusted
    -> signature valid

Only the last record in `signatures` is considered.
"""

import base64
import binascii
import hmac
import logging
from pathlib import Path
from typing import Mapping

from .archive import DxtArchive
from .codec import SignatureFile, SignatureRecord, extract_signature_file
from .digest import compute_manifest_digest, compute_payload_digest
from .errors import (
    DxtSignatureError,
    ManifestDigestMismatch,
    NoSignatures,
    PayloadDigestMismatch,
    SignatureInvalid,
    UntrustedKey,
    VerificationResult,
)
from .keys import DEFAULT_PRIMITIVE, PublicKeyInput, SignaturePrimitive, load_public_key


logger = logging.getLogger(__name__)


def _safe_equal(left: str, right: str) -> bool:
    """
    Constant-time string comparison to prevent timing side-channel attacks.
    """
    return hmac.compare_digest(left.encode("utf-8"), right.encode("utf-8"))


def select_signature(signature_file: SignatureFile) -> SignatureRecord:
    """Return the authoritative (last) record. Raises NoSignatures."""
    record = signature_file.latest
    if record is None:
        raise NoSignatures("Signature file contains no signatures")
    return record


def verify_payload_digest(archive: DxtArchive, signature_file: SignatureFile) -> str:
    """Recompute the payload digest and compare it with the signed one."""
    actual = compute_payload_digest(archive)
    expected = signature_file.signed_payload.digest
    if not _safe_equal(actual, expected):
        raise PayloadDigestMismatch(
            "Payload digest mismatch",
            {"expected": expected, "actual": actual},
        )
    return actual


def verify_manifest_digest(archive: DxtArchive, signature_file: SignatureFile) -> None:
    actual = compute_manifest_digest(archive)
    expected = signature_file.signed_payload.manifest_digest
    if not _safe_equal(actual, expected):
        raise ManifestDigestMismatch(
            "Manifest digest mismatch",
            {"expected": expected, "actual": actual},
        )


def resolve_trusted_key(
    record: SignatureRecord,
    trusted_keys: Mapping[str, PublicKeyInput],
) -> PublicKeyInput:
    key_id = record.signing_key_id
    key = trusted_keys.get(key_id)
    if not key:
        raise UntrustedKey(f"Untrusted key ID: {key_id}", {"signing_key_id": key_id})
    return key


def verify_record_signature(
    record: SignatureRecord,
    digest: str,
    public_key: PublicKeyInput,
    primitive: SignaturePrimitive,
) -> None:
    """Check the record's signature over the UTF-8 digest text."""
    details = {"signing_key_id": record.signing_key_id}

    if record.algorithm != primitive.algorithm:
        raise SignatureInvalid(
            f"Unsupported signature algorithm: {record.algorithm}",
            {**details, "algorithm": record.algorithm},
        )

    try:
        key = load_public_key(public_key)
    except ValueError as exc:
        raise SignatureInvalid(f"Invalid trusted public key: {exc}", details) from exc

    try:
        # Line breaks and spaces are tolerated, as in PEM-style wrapped base64
        compact = "".join(record.signature.split())
        signature_bytes = base64.b64decode(compact, validate=True)
    except binascii.Error as exc:
        raise SignatureInvalid("Signature is not valid base64", details) from exc

    if not primitive.verify(key, digest.encode("utf-8"), signature_bytes):
        raise SignatureInvalid("Signature verification failed", details)


def verify_archive(
    archive: DxtArchive,
    trusted_keys: Mapping[str, PublicKeyInput],
    *,
    check_manifest_digest: bool = False,
    primitive: SignaturePrimitive | None = None,
) -> VerificationResult:
    """
    Decide whether an archive is authentic and unmodified.

    Args:
        archive: Archive to verify
        trusted_keys: Map of signing key id -> PEM text or RSA public key
        check_manifest_digest: Also require signedPayload.manifestDigest to
            match the current manifest.json
        primitive: Signature scheme (default: SHA256withRSA)

    Returns:
        VerificationResult; on failure `errors` holds the single failing guard
    """
    primitive = primitive or DEFAULT_PRIMITIVE
    key_id: str | None = None
    try:
        signature_file = extract_signature_file(archive)
        record = select_signature(signature_file)
        key_id = record.signing_key_id
        digest = verify_payload_digest(archive, signature_file)
        if check_manifest_digest:
            verify_manifest_digest(archive, signature_file)
        public_key = resolve_trusted_key(record, trusted_keys)
        verify_record_signature(record, digest, public_key, primitive)
    except DxtSignatureError as exc:
        logger.warning("DXT verification failed: %s: %s", exc.code.value, exc.message)
        return VerificationResult(valid=False, errors=[exc.to_error()], signing_key_id=key_id)

    logger.info("DXT signature verification successful (key %s)", key_id)
    return VerificationResult(valid=True, signing_key_id=key_id)


def verify_dxt_file(
    archive_path: str | Path,
    trusted_keys: Mapping[str, PublicKeyInput],
    *,
    check_manifest_digest: bool = False,
    primitive: SignaturePrimitive | None = None,
) -> VerificationResult:
    """Load an archive from disk and verify it. I/O errors propagate."""
    archive = DxtArchive.from_path(archive_path)
    return verify_archive(
        archive,
        trusted_keys,
        check_manifest_digest=check_manifest_digest,
        primitive=primitive,
    )
