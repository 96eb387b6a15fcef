"""
Error taxonomy for certificate key management.

Every error carries a user-facing message and an optional hint describing
how the operator can resolve the problem.
"""

from typing import Optional


class CertMagicError(Exception):
    """Base class for all certmagic errors."""

    exit_code = 1

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.hint = hint


class OverwriteGuardError(CertMagicError):
    """An encrypted private key already exists and force was not given."""

    exit_code = 5


class NotFoundError(CertMagicError):
    """A required artifact or input file does not exist."""

    exit_code = 4


class CryptoProviderError(CertMagicError):
    """A key-management call failed."""

    exit_code = 6


class AuthorizationError(CryptoProviderError):
    """KMS refused the operation, e.g. the encryption context did not match."""

    exit_code = 3


class VerificationError(CertMagicError):
    """The certificate does not belong to the stored private key."""

    exit_code = 7


class UploadError(CertMagicError):
    """Uploading the certificate to the certificate store failed."""


class QuotaExceededError(UploadError):
    """The account has reached its server certificate limit."""
