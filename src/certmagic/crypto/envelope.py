"""
KMS envelope encryption for private keys.

Private keys are encrypted with a single shared KMS key found by alias.
The domain is passed as the KMS encryption context, so a ciphertext only
decrypts when the same domain is supplied again.
"""

import logging
from typing import Any, Optional, Union

from botocore.exceptions import BotoCoreError, ClientError

from ..error_handling import map_client_error
from ..errors import NotFoundError

logger = logging.getLogger(__name__)

ENCRYPTION_CONTEXT_KEY = "Domain"


def encryption_context(domain: str) -> dict[str, str]:
    """Build the KMS encryption context binding a ciphertext to a domain."""
    return {ENCRYPTION_CONTEXT_KEY: domain}


class EnvelopeCrypto:
    """Encrypts and decrypts private keys with AWS KMS."""

    def __init__(self, kms_client: Any, key_alias: str = "alias/certificate-magic"):
        """Initialize the crypto provider.

        Args:
            kms_client: boto3 KMS client
            key_alias: Alias of the KMS key used for all certificate keys
        """
        self.kms_client = kms_client
        self.key_alias = key_alias
        self._key_id: Optional[str] = None

    def resolve_key_alias(self) -> str:
        """Look up the KMS key id behind the configured alias.

        Returns:
            The target key id

        Raises:
            NotFoundError: If no key carries the alias
            CryptoProviderError: If the KMS call fails
        """
        if self._key_id:
            return self._key_id

        paginator = self.kms_client.get_paginator("list_aliases")
        try:
            for page in paginator.paginate():
                for alias in page.get("Aliases", []):
                    if alias.get("AliasName") == self.key_alias and alias.get("TargetKeyId"):
                        self._key_id = alias["TargetKeyId"]
                        logger.debug("Resolved %s to key %s", self.key_alias, self._key_id)
                        return self._key_id
        except (ClientError, BotoCoreError) as e:
            raise map_client_error(e, "kms:ListAliases") from e

        raise NotFoundError(
            f"KMS key alias {self.key_alias} not found",
            hint="Create a KMS key with this alias in the selected account and region.",
        )

    def encrypt(self, plaintext: Union[str, bytes], domain: str) -> bytes:
        """Encrypt a private key for a domain.

        Args:
            plaintext: Private key PEM
            domain: Domain the key belongs to, used as encryption context

        Returns:
            The opaque KMS ciphertext blob
        """
        if isinstance(plaintext, str):
            plaintext = plaintext.encode()

        key_id = self.resolve_key_alias()
        try:
            response = self.kms_client.encrypt(
                KeyId=key_id,
                Plaintext=plaintext,
                EncryptionContext=encryption_context(domain),
            )
        except (ClientError, BotoCoreError) as e:
            raise map_client_error(e, "kms:Encrypt") from e
        return response["CiphertextBlob"]

    def decrypt(self, ciphertext: bytes, domain: str) -> bytes:
        """Decrypt a private key for a domain.

        Args:
            ciphertext: KMS ciphertext blob
            domain: Domain the key is expected to belong to

        Returns:
            The private key PEM bytes

        Raises:
            AuthorizationError: If KMS rejects the ciphertext or context
            CryptoProviderError: If the KMS call fails otherwise
        """
        try:
            response = self.kms_client.decrypt(
                CiphertextBlob=ciphertext,
                EncryptionContext=encryption_context(domain),
            )
        except (ClientError, BotoCoreError) as e:
            raise map_client_error(e, "kms:Decrypt") from e
        return response["Plaintext"]
