"""
IAM server certificate store.

Uploads verified certificates, their private key and trust chain to IAM.
"""

import logging
from datetime import date
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from .error_handling import map_client_error

logger = logging.getLogger(__name__)


def store_entry_name(name: str, expiry: date) -> str:
    """Name of the IAM entry for a safe name and expiry date.

    Names sort by expiry and stay unique across re-installs of a domain.
    """
    return f"{name}-exp{expiry.isoformat()}"


class IamCertificateStore:
    """Uploads server certificates to IAM."""

    def __init__(self, iam_client: Any):
        self.iam_client = iam_client

    def upload(
        self,
        entry_name: str,
        private_key: str,
        certificate_body: str,
        certificate_chain: str,
    ) -> str:
        """Upload a server certificate.

        Args:
            entry_name: Server certificate name
            private_key: Private key PEM
            certificate_body: Leaf certificate PEM
            certificate_chain: Issuer chain PEM (may be empty)

        Returns:
            The ARN of the uploaded certificate

        Raises:
            QuotaExceededError: If the account certificate limit is reached
            UploadError: If the upload fails for any other reason
        """
        request = {
            "ServerCertificateName": entry_name,
            "PrivateKey": private_key,
            "CertificateBody": certificate_body,
        }
        if certificate_chain.strip():
            request["CertificateChain"] = certificate_chain

        logger.info("Uploading server certificate %s", entry_name)
        try:
            response = self.iam_client.upload_server_certificate(**request)
        except (ClientError, BotoCoreError) as e:
            raise map_client_error(e, "iam:UploadServerCertificate") from e

        return response["ServerCertificateMetadata"]["Arn"]
