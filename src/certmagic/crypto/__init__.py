"""
Cryptographic components: KMS envelope encryption and X.509 helpers.
"""

from .envelope import EnvelopeCrypto, encryption_context

__all__ = [
    "EnvelopeCrypto",
    "encryption_context",
]
