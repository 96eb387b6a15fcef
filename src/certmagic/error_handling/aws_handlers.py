"""
AWS error handling utilities.

Maps botocore errors raised by KMS and IAM calls to certmagic errors with
user-friendly messages and hints.
"""

from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from ..errors import (
    AuthorizationError,
    CertMagicError,
    CryptoProviderError,
    QuotaExceededError,
    UploadError,
)

# KMS error codes meaning "this ciphertext/context/key is not yours to use"
KMS_AUTHORIZATION_CODES = (
    "InvalidCiphertextException",
    "AccessDeniedException",
    "IncorrectKeyException",
)

IAM_QUOTA_CODES = ("LimitExceeded", "LimitExceededException")

QUOTA_HINT = (
    "You have reached the ServerCertificatesPerAccount limit for your account. "
    "Request more by opening a support ticket with AWS."
)


def client_error_code(error: Any) -> str:
    """Extract the service error code from a botocore ClientError.

    Args:
        error: The exception to inspect

    Returns:
        The error code, or "Unknown" if it cannot be determined
    """
    if not isinstance(error, ClientError):
        return "Unknown"
    return error.response.get("Error", {}).get("Code", "Unknown")


def is_quota_error(error: Any) -> bool:
    """Determine if an IAM error means the certificate quota is exhausted.

    Args:
        error: The exception to check

    Returns:
        True if the error is a quota error, False otherwise
    """
    return client_error_code(error) in IAM_QUOTA_CODES


def map_client_error(error: Exception, operation: str) -> CertMagicError:
    """Map a botocore error to a certmagic error with a hint.

    Args:
        error: The botocore error
        operation: The operation that failed, e.g. "kms:Decrypt" or
            "iam:UploadServerCertificate". The service prefix picks the
            error family.

    Returns:
        The matching CertMagicError instance (not raised)
    """
    service = operation.split(":", 1)[0]
    code = client_error_code(error)
    message = str(error)

    if service == "iam":
        if is_quota_error(error):
            return QuotaExceededError(
                f"Certificate quota exceeded during {operation}",
                hint=QUOTA_HINT,
            )
        if isinstance(error, BotoCoreError):
            return UploadError(
                f"Could not reach IAM during {operation}: {message}",
                hint="Check network connectivity and AWS credentials.",
            )
        return UploadError(
            f"An error occurred during {operation} ({code}): {message}",
            hint="Check the certificate, chain and IAM permissions.",
        )

    if code in KMS_AUTHORIZATION_CODES:
        return AuthorizationError(
            f"KMS refused {operation} ({code})",
            hint=(
                "1. The encrypted key may belong to a different domain\n"
                "2. Check the key policy grants your credentials access\n"
                "3. Use --key-profile to select the account holding the key"
            ),
        )

    if isinstance(error, BotoCoreError):
        return CryptoProviderError(
            f"Could not reach KMS during {operation}: {message}",
            hint="Check network connectivity, region and AWS credentials.",
        )

    return CryptoProviderError(
        f"KMS error during {operation} ({code}): {message}",
        hint="Check the KMS key state and your region.",
    )
