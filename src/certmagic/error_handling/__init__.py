"""
Error handling utilities for certmagic.

Provides input validators and AWS error mapping.
"""

from .validators import (
    validate_domain,
    validate_region,
    validate_profile_name,
)
from .aws_handlers import (
    client_error_code,
    is_quota_error,
    map_client_error,
)

__all__ = [
    # Validators
    "validate_domain",
    "validate_region",
    "validate_profile_name",
    # AWS handlers
    "client_error_code",
    "is_quota_error",
    "map_client_error",
]
