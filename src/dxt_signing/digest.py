"""
Payload digest for DXT archives.

The digest is SHA-256 over the raw bytes of every entry except the
signature entry, concatenated in archive order with no names, sizes or
separators. Reordering entries therefore changes the digest; this is the
format that already-signed archives carry, so it is kept as is.
"""

import hashlib
import logging

from .archive import MANIFEST_PATH, SIGNATURE_PATH, DxtArchive
from .errors import ManifestMissing


logger = logging.getLogger(__name__)

DIGEST_ALGORITHM = "SHA-256"


def sha256_hex(data: bytes) -> str:
    """Lowercase hex SHA-256 of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def payload_entries(archive: DxtArchive) -> list[str]:
    """Names that feed the payload digest, in digest order."""
    return [entry.name for entry in archive if entry.name != SIGNATURE_PATH]


def compute_payload_digest(archive: DxtArchive) -> str:
    """
    Compute the payload digest of an archive.

    Args:
        archive: Loaded DXT archive

    Returns:
        64-character lowercase hex SHA-256
    """
    hasher = hashlib.sha256()
    count = 0
    for entry in archive:
        if entry.name == SIGNATURE_PATH:
            continue
        hasher.update(entry.data)
        count += 1
    digest = hasher.hexdigest()
    logger.debug("Payload digest over %d entries: %s", count, digest)
    return digest


def compute_manifest_digest(archive: DxtArchive) -> str:
    """
    SHA-256 of the manifest's UTF-8 text. Raises ManifestMissing.

    Invalid UTF-8 sequences decode to U+FFFD, so the digest of a
    non-UTF-8 manifest is that of its replacement-decoded text.
    """
    if not archive.has_entry(MANIFEST_PATH):
        raise ManifestMissing(
            f"Archive has no {MANIFEST_PATH}",
            {"path": MANIFEST_PATH},
        )
    text = archive.read_text(MANIFEST_PATH, errors="replace")
    return sha256_hex(text.encode("utf-8"))
