"""
Certificate lifecycle commands.

Implements create, install, list and tidy on top of the artifact store,
KMS envelope encryption and the IAM certificate store.

Artifacts for a domain move between two states: absent, and keyed (CSR
plus encrypted private key). create enters keyed, install reads it without
changing it, and tidy returns to absent after operator confirmation.
"""

import functools
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from . import credentials as credential_resolver
from .certificate_store import IamCertificateStore, store_entry_name
from .config import CertMagicConfig
from .console import Confirmer, OutputSink, is_affirmative, terminal_confirm
from .credentials import CredentialStrategy
from .crypto import EnvelopeCrypto
from .crypto import pki
from .error_handling import validate_domain
from .errors import (
    NotFoundError,
    OverwriteGuardError,
    QuotaExceededError,
    UploadError,
    VerificationError,
)
from .storage import ArtifactKind, ArtifactStore, safe_name

logger = logging.getLogger(__name__)


class AwsClients:
    """Creates boto3 clients for credential strategies in one region."""

    def __init__(self, region: Optional[str]):
        self.region = region

    def kms(self, credentials: CredentialStrategy) -> Any:
        return credentials.session(self.region).client("kms")

    def iam(self, credentials: CredentialStrategy) -> Any:
        return credentials.session(self.region).client("iam")


@dataclass
class CreateResult:
    """Result of a create command.

    Attributes:
        domain: Certificate domain
        safe_name: Storage name of the domain
        csr_pem: The new CSR
        csr_location: Where the CSR was written
        key_location: Where the encrypted private key was written
    """
    domain: str
    safe_name: str
    csr_pem: str
    csr_location: str
    key_location: str


@dataclass
class InstallResult:
    """Result of an install command.

    Attributes:
        success: Whether the certificate was uploaded
        domain: Common name of the certificate
        store_name: Name of the IAM server certificate entry
        arn: ARN of the uploaded certificate
        quota_exceeded: The upload hit the account certificate limit
        error: Error message if the upload failed
    """
    success: bool
    domain: str
    store_name: str
    arn: Optional[str] = None
    quota_exceeded: bool = False
    error: Optional[str] = None


@dataclass
class ArtifactListing:
    """Stored artifacts across all domains."""
    csr: set[str] = field(default_factory=set)
    pkenc: set[str] = field(default_factory=set)
    common_names: dict[str, str] = field(default_factory=dict)

    @property
    def safe_names(self) -> list[str]:
        """Every safe name with at least one artifact, once each."""
        return sorted(self.csr | self.pkenc)

    @property
    def incomplete(self) -> list[str]:
        """Safe names missing either their CSR or their encrypted key."""
        return sorted(self.csr ^ self.pkenc)


@dataclass
class TidyResult:
    """Result of a tidy command."""
    domain: str
    found: bool
    confirmed: bool = False
    deleted: list[str] = field(default_factory=list)


class CertificateLifecycle:
    """Operator commands for a domain's certificate key material."""

    def __init__(
        self,
        config: CertMagicConfig,
        store: ArtifactStore,
        clients: Any,
        output: Optional[OutputSink] = None,
        confirm: Optional[Confirmer] = None,
        fetch_issuer: Optional[pki.IssuerFetcher] = None,
    ):
        """Initialize the lifecycle commands.

        Args:
            config: Certmagic configuration
            store: Artifact store for CSRs and encrypted keys
            clients: Factory with kms(credentials) and iam(credentials)
            output: Primary/diagnostic output sink
            confirm: Callable asking the operator a question
            fetch_issuer: Downloads issuer certificates for chain building
        """
        self.config = config
        self.store = store
        self.clients = clients
        self.output = output or OutputSink()
        self.confirm = confirm or terminal_confirm
        self.fetch_issuer = fetch_issuer or functools.partial(
            pki.http_fetch, timeout=config.aia_timeout
        )

    def _crypto(self, credentials: CredentialStrategy) -> EnvelopeCrypto:
        return EnvelopeCrypto(self.clients.kms(credentials), self.config.key_alias)

    def create(
        self,
        domain: str,
        credentials: Optional[CredentialStrategy] = None,
        force: bool = False,
    ) -> CreateResult:
        """Create a key pair and CSR for a domain.

        The private key is only persisted encrypted with KMS, bound to the
        domain. The encrypted key is written before the CSR.

        Args:
            domain: Certificate domain, wildcards allowed
            credentials: Credentials for KMS (default chain if None)
            force: Replace an existing encrypted key

        Returns:
            CreateResult with the CSR and artifact locations

        Raises:
            OverwriteGuardError: If a key exists for the domain and force is False
        """
        domain = validate_domain(domain)
        name = safe_name(domain)
        credentials = credentials or credential_resolver.resolve()

        if not force and self.store.exists(name, ArtifactKind.PKENC):
            location = self.store.location(name, ArtifactKind.PKENC)
            raise OverwriteGuardError(
                f"Private key already exists at {location}",
                hint=(
                    "Use --force to overwrite if you are sure you no longer "
                    "need this private key"
                ),
            )

        key = pki.create_key_pair(self.config.key_size)
        key_pem = pki.key_to_pem(key)

        logger.info("Encrypting private key for %s with %s", domain, credentials.describe())
        ciphertext = self._crypto(credentials).encrypt(key_pem, domain)
        key_location = self.store.save(ciphertext, name, ArtifactKind.PKENC, overwrite=force)

        # The CSR must follow the key just written, so a stale one is replaced
        csr_pem = pki.csr_to_pem(pki.create_csr(key, domain))
        csr_location = self.store.save(csr_pem, name, ArtifactKind.CSR, overwrite=True)

        self.output.primary(csr_pem.rstrip("\n"))
        self.output.diagnostic(
            f"Written encrypted PK to {key_location} and CSR to {csr_location}"
        )

        return CreateResult(
            domain=domain,
            safe_name=name,
            csr_pem=csr_pem,
            csr_location=csr_location,
            key_location=key_location,
        )

    def _read_chain(self, cert, chain_file: Optional[Path]) -> str:
        if chain_file is not None:
            try:
                return Path(chain_file).read_text()
            except FileNotFoundError:
                raise NotFoundError(f"Chain file not found: {chain_file}") from None

        chain = pki.chain_from_certificate(cert, fetch=self.fetch_issuer)
        return "\n".join(pki.cert_to_pem(issuer).strip() for issuer in chain)

    def install(
        self,
        certificate_file: Path,
        key_credentials: Optional[CredentialStrategy] = None,
        install_credentials: Optional[CredentialStrategy] = None,
        chain_file: Optional[Path] = None,
    ) -> InstallResult:
        """Verify an issued certificate against the stored key and upload it to IAM.

        Nothing is uploaded unless the certificate's public key matches the
        decrypted private key.

        Args:
            certificate_file: PEM file holding the issued certificate
            key_credentials: Credentials for KMS (default chain if None)
            install_credentials: Credentials for IAM (key credentials if None)
            chain_file: PEM trust chain; derived from the certificate if None

        Returns:
            InstallResult; upload failures are reported here, not raised

        Raises:
            NotFoundError: If the certificate, chain or encrypted key is missing
            CryptoProviderError: If KMS cannot decrypt the key for this domain
            VerificationError: If the certificate does not match the key
        """
        certificate_file = Path(certificate_file)
        try:
            certificate_pem = certificate_file.read_bytes()
        except FileNotFoundError:
            raise NotFoundError(f"Certificate file not found: {certificate_file}") from None

        cert = pki.read_certificate(certificate_pem)
        domain = pki.get_common_name(cert.subject)
        name = safe_name(domain)
        expiry = pki.get_expiry_date(cert)
        logger.info("Certificate for %s expires %s", domain, expiry.isoformat())

        key_credentials = key_credentials or credential_resolver.resolve()
        install_credentials = install_credentials or key_credentials

        if not self.store.exists(name, ArtifactKind.PKENC):
            raise NotFoundError(
                f"Couldn't find encrypted private key for {domain}",
                hint="Run 'certmagic list' to see stored keys.",
            )
        ciphertext = self.store.read(name, ArtifactKind.PKENC)
        decrypted_pem = self._crypto(key_credentials).decrypt(ciphertext, domain)

        private_key = pki.read_private_key(decrypted_pem)
        pki.verify_key_matches_certificate(private_key, cert)
        self.output.diagnostic("successfully decrypted private key")

        chain_pem = self._read_chain(cert, chain_file)

        store_name = store_entry_name(name, expiry)
        self.output.diagnostic(f"installing to IAM as {store_name}")
        certificate_store = IamCertificateStore(self.clients.iam(install_credentials))
        try:
            arn = certificate_store.upload(
                entry_name=store_name,
                private_key=decrypted_pem.decode(),
                certificate_body=pki.cert_to_pem(cert),
                certificate_chain=chain_pem,
            )
        except QuotaExceededError as e:
            self.output.diagnostic(e.hint or e.message)
            return InstallResult(
                success=False,
                domain=domain,
                store_name=store_name,
                quota_exceeded=True,
                error=e.message,
            )
        except UploadError as e:
            self.output.diagnostic(f"An error occurred during upload: {e.message}")
            return InstallResult(
                success=False,
                domain=domain,
                store_name=store_name,
                error=e.message,
            )

        self.output.diagnostic(f"successfully installed certificate in IAM as {arn}")
        return InstallResult(success=True, domain=domain, store_name=store_name, arn=arn)

    def _csr_common_name(self, name: str) -> Optional[str]:
        try:
            csr = pki.read_csr(self.store.read(name, ArtifactKind.CSR))
            return pki.get_common_name(csr.subject)
        except VerificationError as e:
            logger.warning("Could not read CSR subject for %s: %s", name, e)
            return None

    def list(self) -> ArtifactListing:
        """List stored CSRs and encrypted keys across all domains."""
        listing = ArtifactListing(
            csr=self.store.list(ArtifactKind.CSR),
            pkenc=self.store.list(ArtifactKind.PKENC),
        )
        for name in sorted(listing.csr):
            common_name = self._csr_common_name(name)
            if common_name:
                listing.common_names[name] = common_name

        self.output.diagnostic("Currently created keys")
        for name in listing.safe_names:
            kinds = [kind.value for kind, names in
                     ((ArtifactKind.CSR, listing.csr), (ArtifactKind.PKENC, listing.pkenc))
                     if name in names]
            line = f"{name}\t{','.join(kinds)}"
            if name in listing.common_names:
                line += f"\t{listing.common_names[name]}"
            self.output.primary(line)

        for name in listing.incomplete:
            self.output.diagnostic(
                f"warning: {name} is incomplete, recreate it with 'certmagic create --force'"
            )
        return listing

    def tidy(self, domain: str) -> TidyResult:
        """Delete the CSR and encrypted key of a domain after confirmation.

        The operator must check the certificate is installed and working
        first; the key cannot be recovered once deleted.

        Args:
            domain: Certificate domain

        Returns:
            TidyResult describing what was deleted
        """
        domain = validate_domain(domain)
        name = safe_name(domain)
        csr_exists = self.store.exists(name, ArtifactKind.CSR)
        pkenc_exists = self.store.exists(name, ArtifactKind.PKENC)

        if not csr_exists and not pkenc_exists:
            self.output.diagnostic(f"No files found for {domain}, nothing to tidy up")
            return TidyResult(domain=domain, found=False)

        if csr_exists:
            self.output.diagnostic(f"CSR file for {domain} will be deleted")
        if pkenc_exists:
            self.output.diagnostic(f"Encrypted private key for {domain} will be deleted")
        self.output.diagnostic(
            "make sure you have tested the certificate is correctly installed "
            "before running this command"
        )

        if not is_affirmative(self.confirm("proceed [y/N] ")):
            self.output.diagnostic("Nothing deleted")
            return TidyResult(domain=domain, found=True, confirmed=False)

        result = TidyResult(domain=domain, found=True, confirmed=True)
        if csr_exists and self.store.delete(name, ArtifactKind.CSR):
            result.deleted.append(f"{name}.csr")
            self.output.primary(f"deleted {name}.csr")
        if pkenc_exists and self.store.delete(name, ArtifactKind.PKENC):
            result.deleted.append(f"{name}.pkenc")
            self.output.primary(f"deleted encrypted private key {name}.pkenc")
        return result
