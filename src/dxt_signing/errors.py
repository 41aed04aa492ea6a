"""
Error codes and types for dxt-signing.

Every guard in the sign and verify paths fails with its own code so
callers (and the CLI) can tell a tampered payload from an untrusted key.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """
    Signing and verification error codes.
    """
    SIGNATURE_NOT_FOUND = "SIGNATURE_NOT_FOUND"
    NO_SIGNATURES = "NO_SIGNATURES"
    MALFORMED_SIGNATURE = "MALFORMED_SIGNATURE"
    MANIFEST_MISSING = "MANIFEST_MISSING"
    MANIFEST_DIGEST_MISMATCH = "MANIFEST_DIGEST_MISMATCH"
    PAYLOAD_DIGEST_MISMATCH = "PAYLOAD_DIGEST_MISMATCH"
    UNTRUSTED_KEY = "UNTRUSTED_KEY"
    SIGNATURE_INVALID = "SIGNATURE_INVALID"
    SIGNING_KEY_INVALID = "SIGNING_KEY_INVALID"


class DxtSignatureError(Exception):
    """Base class for all signing and verification failures."""

    code: ErrorCode = ErrorCode.SIGNATURE_INVALID

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_error(self) -> "VerificationError":
        return VerificationError(code=self.code, message=self.message, details=dict(self.details))


class SignatureNotFound(DxtSignatureError):
    code = ErrorCode.SIGNATURE_NOT_FOUND


class NoSignatures(DxtSignatureError):
    code = ErrorCode.NO_SIGNATURES


class MalformedSignature(DxtSignatureError):
    code = ErrorCode.MALFORMED_SIGNATURE


class ManifestMissing(DxtSignatureError):
    code = ErrorCode.MANIFEST_MISSING


class ManifestDigestMismatch(DxtSignatureError):
    code = ErrorCode.MANIFEST_DIGEST_MISMATCH


class PayloadDigestMismatch(DxtSignatureError):
    code = ErrorCode.PAYLOAD_DIGEST_MISMATCH


class UntrustedKey(DxtSignatureError):
    code = ErrorCode.UNTRUSTED_KEY


class SignatureInvalid(DxtSignatureError):
    code = ErrorCode.SIGNATURE_INVALID


class SigningKeyInvalid(DxtSignatureError):
    code = ErrorCode.SIGNING_KEY_INVALID


_ERRORS_BY_CODE: dict[ErrorCode, type[DxtSignatureError]] = {
    cls.code: cls
    for cls in (
        SignatureNotFound,
        NoSignatures,
        MalformedSignature,
        ManifestMissing,
        ManifestDigestMismatch,
        PayloadDigestMismatch,
        UntrustedKey,
        SignatureInvalid,
        SigningKeyInvalid,
    )
}


@dataclass
class VerificationError:
    """
    A single verification error with typed code and audit details.
    """
    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }

    def to_exception(self) -> DxtSignatureError:
        cls = _ERRORS_BY_CODE.get(self.code, DxtSignatureError)
        return cls(self.message, self.details)


@dataclass
class VerificationResult:
    """
    Result of a verification operation.

    A failed result carries exactly one error: the guard that stopped it.
    """
    valid: bool
    errors: list[VerificationError] = field(default_factory=list)
    signing_key_id: str | None = None

    @property
    def error(self) -> VerificationError | None:
        return self.errors[0] if self.errors else None

    def raise_for_error(self) -> None:
        """Re-raise the failing guard as its exception type."""
        if self.error is not None:
            raise self.error.to_exception()

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "signing_key_id": self.signing_key_id,
            "errors": [e.to_dict() for e in self.errors],
        }
