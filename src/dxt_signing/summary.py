"""
Signature file summary utilities for human-readable inspection.

Reads the embedded signature file without verifying it.
"""

from datetime import datetime, timezone
from typing import Any

from .archive import DxtArchive
from .codec import extract_signature_file
from .digest import payload_entries


def signature_summary(archive: DxtArchive) -> dict[str, Any]:
    """
    Extract a summary of an archive's signature file.

    Args:
        archive: A signed DXT archive

    Returns:
        Dict with signing_key_id, algorithm, signed_at, signature_count,
        digest, manifest_digest, dxt_version and payload_entries

    Raises:
        SignatureNotFound, MalformedSignature
    """
    signature_file = extract_signature_file(archive)
    payload = signature_file.signed_payload
    latest = signature_file.latest

    signed_at = ""
    if latest is not None:
        signed_at = datetime.fromtimestamp(latest.timestamp, tz=timezone.utc).isoformat()

    return {
        "signing_key_id": latest.signing_key_id if latest else "",
        "algorithm": latest.algorithm if latest else "",
        "signed_at": signed_at,
        "signature_count": len(signature_file.signatures),
        "digest": payload.digest,
        "manifest_digest": payload.manifest_digest,
        "dxt_version": payload.dxt_version,
        "payload_entries": len(payload_entries(archive)),
    }


def format_signature_summary(archive: DxtArchive) -> str:
    """
    Format an archive's signature file as a single-line string.

    Returns:
        String like "key k1 (SHA256withRSA) | 2026-10-19T... | 3 entries | 1a2b3c..."
    """
    s = signature_summary(archive)
    digest_short = s["digest"][:16] + "..." if len(s["digest"]) > 16 else s["digest"]
    key = s["signing_key_id"] or "<none>"
    return (
        f"key {key} ({s['algorithm'] or 'unsigned'}) | {s['signed_at'] or '-'} | "
        f"{s['payload_entries']} entries | {s['signature_count']} signature(s) | {digest_short}"
    )
