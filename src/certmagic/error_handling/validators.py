"""
Input validation functions for certmagic commands.

Provides validation for domains, AWS region names and AWS profile names.
"""

import re
from typing import Optional

_DOMAIN_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")
_REGION = re.compile(r"^[a-z]{2}(-[a-z]+)+-\d$")


def validate_domain(domain: str) -> str:
    """Validate a certificate domain.

    A single leading wildcard label is allowed ("*.example.com").

    Args:
        domain: The domain to validate

    Returns:
        The validated domain

    Raises:
        ValueError: If the domain is invalid
    """
    if not domain:
        raise ValueError(
            "Domain cannot be empty. "
            "Hint: Pass the certificate common name, e.g. 'www.example.com'."
        )

    domain = domain.strip()
    labels = domain.split(".")
    if len(labels) < 2:
        raise ValueError(
            f"Invalid domain: '{domain}'. "
            "Must contain at least two labels (e.g., 'example.com')."
        )

    for index, label in enumerate(labels):
        if label == "*" and index == 0:
            continue
        if not _DOMAIN_LABEL.match(label):
            raise ValueError(
                f"Invalid domain: '{domain}'. "
                f"Label '{label}' is not a valid DNS label. "
                "Hint: Wildcards are only allowed as the first label."
            )

    return domain


def validate_region(region: str) -> str:
    """Validate an AWS region name.

    Args:
        region: The region name to validate

    Returns:
        The validated region name

    Raises:
        ValueError: If the region name is malformed
    """
    if not region or not _REGION.match(region):
        raise ValueError(
            f"Invalid AWS region: '{region}'. "
            "Hint: Use a region name such as 'eu-west-1'."
        )
    return region


def validate_profile_name(profile: Optional[str]) -> Optional[str]:
    """Validate an optional AWS profile name.

    Args:
        profile: The profile name, or None for the default provider chain

    Returns:
        The validated profile name, or None

    Raises:
        ValueError: If the profile name is blank
    """
    if profile is None:
        return None
    if not profile.strip():
        raise ValueError(
            "AWS profile name cannot be blank. "
            "Hint: Omit the option to use the default credential chain."
        )
    return profile.strip()
