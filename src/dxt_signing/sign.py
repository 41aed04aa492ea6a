"""
DXT archive signing.

Signs the payload digest with an RSA private key and embeds the resulting
signature file at META-INF/dxt-signatures.json. Any signature file already
in the archive is replaced, not extended.
"""

import base64
import logging
import time
from pathlib import Path
from typing import Callable

from .archive import SIGNATURE_PATH, DxtArchive
from .codec import (
    DXT_VERSION,
    RECORD_VERSION,
    SignatureFile,
    SignatureRecord,
    SignedPayload,
    serialize_signature_file,
)
from .digest import DIGEST_ALGORITHM, compute_manifest_digest, compute_payload_digest
from .errors import SigningKeyInvalid
from .keys import DEFAULT_PRIMITIVE, PrivateKeyInput, SignaturePrimitive, load_private_key


logger = logging.getLogger(__name__)


def sign_archive(
    archive: DxtArchive,
    private_key: PrivateKeyInput,
    key_id: str,
    *,
    primitive: SignaturePrimitive | None = None,
    clock: Callable[[], float] = time.time,
) -> tuple[DxtArchive, SignatureFile]:
    """
    Sign an archive and return a signed copy.

    The signature covers the UTF-8 text of the hex payload digest. The
    input archive is left untouched.

    Args:
        archive: Archive to sign
        private_key: PEM text or a loaded RSA private key
        key_id: Identifier verifiers look up in their trust store
        primitive: Signature scheme (default: SHA256withRSA)
        clock: Source of the record timestamp

    Returns:
        (signed archive, the embedded SignatureFile)

    Raises:
        ManifestMissing: the archive has no manifest.json
        SigningKeyInvalid: the key cannot be loaded or used, or key_id is empty
    """
    if not key_id:
        raise SigningKeyInvalid("Signing key id must not be empty", {"key_id": key_id})

    primitive = primitive or DEFAULT_PRIMITIVE
    key = load_private_key(private_key)

    digest = compute_payload_digest(archive)
    manifest_digest = compute_manifest_digest(archive)

    try:
        signature_bytes = primitive.sign(key, digest.encode("utf-8"))
    except (ValueError, TypeError) as exc:
        raise SigningKeyInvalid(f"Signing failed: {exc}", {"key_id": key_id}) from exc

    record = SignatureRecord(
        version=RECORD_VERSION,
        signing_key_id=key_id,
        algorithm=primitive.algorithm,
        signature=base64.b64encode(signature_bytes).decode("ascii"),
        certificate="",
        timestamp=int(clock()),
    )
    signature_file = SignatureFile(
        signatures=[record],
        signed_payload=SignedPayload(
            digest_algorithm=DIGEST_ALGORITHM,
            digest=digest,
            dxt_version=DXT_VERSION,
            manifest_digest=manifest_digest,
        ),
    )

    if archive.has_entry(SIGNATURE_PATH):
        logger.info("Replacing existing signature file in archive")
    signed = archive.with_entry(SIGNATURE_PATH, serialize_signature_file(signature_file))
    logger.info("Signed payload digest %s with key %s", digest, key_id)
    return signed, signature_file


def sign_dxt_file(
    archive_path: str | Path,
    private_key_path: str | Path,
    key_id: str,
    out_path: str | Path,
    *,
    primitive: SignaturePrimitive | None = None,
) -> SignatureFile:
    """
    Sign the archive at `archive_path` and write the result to `out_path`.

    Nothing is written unless signing succeeds.
    """
    private_key = Path(private_key_path).read_text(encoding="utf-8")
    archive = DxtArchive.from_path(archive_path)
    signed, signature_file = sign_archive(archive, private_key, key_id, primitive=primitive)
    signed.write(out_path)
    logger.info("DXT signed and written to: %s", out_path)
    return signature_file
