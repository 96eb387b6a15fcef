"""
X.509 helpers for certificate key management.

Generates key pairs and CSRs, parses issued certificates, compares public
keys and derives issuer chains from Authority Information Access metadata.
"""

import logging
from datetime import date
from typing import Callable, Optional

import httpx
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)
from cryptography.x509.oid import AuthorityInformationAccessOID, NameOID

from ..errors import NotFoundError, VerificationError

logger = logging.getLogger(__name__)

MAX_CHAIN_DEPTH = 10

IssuerFetcher = Callable[[str], bytes]


def create_key_pair(key_size: int = 2048) -> rsa.RSAPrivateKey:
    """Generate a fresh RSA private key."""
    return rsa.generate_private_key(public_exponent=65537, key_size=key_size)


def key_to_pem(key) -> str:
    """Convert private key to an unencrypted PKCS8 PEM string."""
    return key.private_bytes(
        encoding=Encoding.PEM,
        format=PrivateFormat.PKCS8,
        encryption_algorithm=NoEncryption(),
    ).decode()


def create_csr(key, domain: str) -> x509.CertificateSigningRequest:
    """Build a CSR for a domain signed by the given key.

    Args:
        key: Private key of the new key pair
        domain: Common name, also added as a DNS subject alternative name

    Returns:
        The signed CSR
    """
    return (
        x509.CertificateSigningRequestBuilder()
        .subject_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, domain)]))
        .add_extension(
            x509.SubjectAlternativeName([x509.DNSName(domain)]),
            critical=False,
        )
        .sign(key, hashes.SHA256())
    )


def csr_to_pem(csr: x509.CertificateSigningRequest) -> str:
    return csr.public_bytes(Encoding.PEM).decode()


def cert_to_pem(cert: x509.Certificate) -> str:
    return cert.public_bytes(Encoding.PEM).decode()


def read_certificate(pem: bytes) -> x509.Certificate:
    """Parse the leaf certificate from PEM data.

    Only the first certificate is used if the data holds several.

    Raises:
        ValueError: If no certificate can be parsed
    """
    try:
        return x509.load_pem_x509_certificates(pem)[0]
    except (ValueError, IndexError) as e:
        raise ValueError(f"Couldn't read certificate: {e}") from e


def read_csr(pem: bytes) -> x509.CertificateSigningRequest:
    """Parse a PEM CSR.

    Raises:
        VerificationError: If the data is not a CSR
    """
    try:
        return x509.load_pem_x509_csr(pem)
    except ValueError as e:
        raise VerificationError(f"Couldn't read CSR: {e}") from e


def read_private_key(pem: bytes):
    """Load a decrypted private key.

    Raises:
        VerificationError: If the data is not an unencrypted PEM private key
    """
    try:
        return serialization.load_pem_private_key(pem, password=None)
    except (ValueError, TypeError) as e:
        raise VerificationError(f"Couldn't read decrypted private key: {e}") from e


def get_common_name(subject: x509.Name) -> str:
    """Get the common name of a certificate or CSR subject.

    Raises:
        VerificationError: If the subject has no common name
    """
    attributes = subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    if not attributes:
        raise VerificationError("Certificate subject has no common name")
    return str(attributes[0].value)


def get_expiry_date(cert: x509.Certificate) -> date:
    """Get the certificate's notAfter as a UTC calendar date."""
    return cert.not_valid_after_utc.date()


def public_key_bytes(public_key) -> bytes:
    """DER-encoded SubjectPublicKeyInfo of a public key."""
    return public_key.public_bytes(Encoding.DER, PublicFormat.SubjectPublicKeyInfo)


def verify_key_matches_certificate(private_key, cert: x509.Certificate) -> None:
    """Check the certificate was issued for the private key.

    Raises:
        VerificationError: If the public keys differ
    """
    key_public = public_key_bytes(private_key.public_key())
    cert_public = public_key_bytes(cert.public_key())
    logger.debug("Key public key %d bytes, certificate public key %d bytes",
                 len(key_public), len(cert_public))
    if key_public != cert_public:
        raise VerificationError(
            "Invalid certificate: Public key in certificate and public key "
            "in stored keypair do not match",
            hint="Make sure the certificate was issued from the CSR created for this domain.",
        )


def is_self_signed(cert: x509.Certificate) -> bool:
    return cert.issuer == cert.subject


def ca_issuer_urls(cert: x509.Certificate) -> list[str]:
    """Get the CA Issuers URLs from the Authority Information Access extension."""
    try:
        aia = cert.extensions.get_extension_for_class(x509.AuthorityInformationAccess)
    except x509.ExtensionNotFound:
        return []
    return [
        desc.access_location.value
        for desc in aia.value
        if desc.access_method == AuthorityInformationAccessOID.CA_ISSUERS
        and isinstance(desc.access_location, x509.UniformResourceIdentifier)
    ]


def http_fetch(url: str, timeout: float = 10.0) -> bytes:
    """Download an issuer certificate."""
    response = httpx.get(url, timeout=timeout, follow_redirects=True)
    response.raise_for_status()
    return response.content


def _load_issuer(data: bytes) -> x509.Certificate:
    if b"-----BEGIN CERTIFICATE-----" in data:
        return x509.load_pem_x509_certificates(data)[0]
    return x509.load_der_x509_certificate(data)


def chain_from_certificate(
    cert: x509.Certificate,
    fetch: Optional[IssuerFetcher] = None,
) -> list[x509.Certificate]:
    """Derive the issuer chain of a certificate by walking AIA CA Issuers URLs.

    The walk stops at a self-signed certificate (which is not included),
    at a certificate without CA Issuers metadata, or after MAX_CHAIN_DEPTH
    issuers.

    Args:
        cert: The leaf certificate
        fetch: Callable downloading a URL; defaults to http_fetch

    Returns:
        Issuer certificates ordered from the leaf's issuer upwards

    Raises:
        NotFoundError: If an issuer certificate cannot be downloaded or parsed
    """
    fetch = fetch or http_fetch
    chain: list[x509.Certificate] = []
    current = cert

    while len(chain) < MAX_CHAIN_DEPTH and not is_self_signed(current):
        urls = ca_issuer_urls(current)
        if not urls:
            break

        url = urls[0]
        logger.info("Fetching issuer certificate from %s", url)
        try:
            issuer = _load_issuer(fetch(url))
        except (httpx.HTTPError, ValueError) as e:
            raise NotFoundError(
                f"Couldn't fetch issuer certificate from {url}: {e}",
                hint="Supply the chain explicitly with --chain.",
            ) from e

        if is_self_signed(issuer):
            break
        chain.append(issuer)
        current = issuer

    return chain
