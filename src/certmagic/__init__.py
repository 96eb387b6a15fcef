"""
Certmagic - TLS certificate key management backed by AWS KMS.

This package creates private keys and CSRs for a domain, keeps the private
key encrypted at rest with a KMS key bound to the domain, and installs issued
certificates into IAM once the certificate is verified against the stored key.
"""

__version__ = "0.1.0"
