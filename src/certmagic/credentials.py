"""
AWS credential selection.

A command resolves its credential strategies once and passes them down:
one for KMS key operations and, for install, one for the IAM account the
certificate is deployed to.
"""

from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.exceptions import ProfileNotFound

from .error_handling import validate_profile_name
from .errors import NotFoundError


@dataclass(frozen=True)
class CredentialStrategy:
    """How to obtain AWS credentials.

    Attributes:
        profile: Named profile from the shared AWS config (None = default
            provider chain: environment, config files, instance role)
    """
    profile: Optional[str] = None

    @property
    def uses_default_chain(self) -> bool:
        return self.profile is None

    def describe(self) -> str:
        """Human-readable description of the strategy."""
        if self.profile is None:
            return "default credential chain"
        return f"profile '{self.profile}'"

    def session(self, region: str) -> boto3.Session:
        """Create a boto3 session for this strategy.

        Raises:
            NotFoundError: If the named profile does not exist
        """
        try:
            return boto3.Session(profile_name=self.profile, region_name=region)
        except ProfileNotFound as e:
            raise NotFoundError(
                f"AWS profile '{self.profile}' not found",
                hint="Check ~/.aws/config or omit the profile to use the default chain.",
            ) from e


def resolve(profile: Optional[str] = None) -> CredentialStrategy:
    """Resolve the credential strategy for a profile name.

    Args:
        profile: Named profile, or None for the default provider chain

    Returns:
        The credential strategy
    """
    return CredentialStrategy(profile=validate_profile_name(profile))


def resolve_install(
    key_credentials: CredentialStrategy,
    install_profile: Optional[str] = None,
) -> CredentialStrategy:
    """Resolve the credentials used to upload certificates.

    Falls back to the key-operations credentials when no install profile
    is given.
    """
    if install_profile is None:
        return key_credentials
    return resolve(install_profile)
