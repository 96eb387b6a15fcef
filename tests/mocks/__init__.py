"""Mock implementations for certmagic tests.

Provides mock objects for:
- AWS KMS (authenticated encryption bound to the encryption context)
- AWS IAM server certificate uploads
- A certificate authority issuing test certificates
"""

from .mock_aws import (
    MockAwsClients,
    MockIAMClient,
    MockKMSClient,
    client_error,
)
from .mock_ca import MockCA

__all__ = [
    "MockAwsClients",
    "MockIAMClient",
    "MockKMSClient",
    "MockCA",
    "client_error",
]
