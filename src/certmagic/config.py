"""
Configuration for certmagic.

Configuration is loaded from a YAML file named by CERTMAGIC_CONFIG, from
environment variables, or falls back to defaults.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from .error_handling import validate_region

DEFAULT_REGION = "eu-west-1"
DEFAULT_KEY_ALIAS = "alias/certificate-magic"
DEFAULT_KEY_SIZE = 2048
DEFAULT_AIA_TIMEOUT = 10.0


def default_keys_dir() -> Path:
    """Get the default directory holding CSRs and encrypted keys."""
    if os.name == "nt":
        base = Path(os.environ.get("LOCALAPPDATA", "~"))
    else:
        base = Path(os.environ.get("XDG_DATA_HOME", "~/.local/share"))
    return base.expanduser() / "certmagic" / "keys"


def resolve_region(explicit: Optional[str] = None, fallback: Optional[str] = None) -> str:
    """Resolve the AWS region for a command.

    Order: explicit value, then AWS_DEFAULT_REGION, then the fallback
    (the configured region), then eu-west-1.

    Args:
        explicit: Region given on the command line
        fallback: Region used when neither the flag nor the environment
            names one

    Returns:
        The validated region name
    """
    region = explicit or os.environ.get("AWS_DEFAULT_REGION") or fallback or DEFAULT_REGION
    return validate_region(region)


@dataclass
class CertMagicConfig:
    """Configuration for certificate key management.

    Attributes:
        keys_dir: Directory holding <safe name>.csr and <safe name>.pkenc
        region: Default AWS region (None = resolve per command)
        key_alias: KMS alias of the key protecting all private keys
        key_size: RSA key size for new private keys
        aia_timeout: Timeout in seconds for issuer certificate downloads
    """
    keys_dir: Path = field(default_factory=default_keys_dir)
    region: Optional[str] = None
    key_alias: str = DEFAULT_KEY_ALIAS
    key_size: int = DEFAULT_KEY_SIZE
    aia_timeout: float = DEFAULT_AIA_TIMEOUT

    @classmethod
    def from_config_file(cls, config_path: str) -> "CertMagicConfig":
        """Load configuration from a YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            CertMagicConfig instance

        Raises:
            FileNotFoundError: If the config file does not exist
        """
        path = Path(config_path).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        keys_dir = data.get("keys_dir")
        return cls(
            keys_dir=Path(keys_dir).expanduser() if keys_dir else default_keys_dir(),
            region=data.get("region"),
            key_alias=data.get("key_alias", DEFAULT_KEY_ALIAS),
            key_size=int(data.get("key_size", DEFAULT_KEY_SIZE)),
            aia_timeout=float(data.get("aia_timeout", DEFAULT_AIA_TIMEOUT)),
        )

    @classmethod
    def from_env(cls) -> "CertMagicConfig":
        """Load configuration from environment variables.

        Environment variables:
            CERTMAGIC_KEYS_DIR: Artifact directory
            CERTMAGIC_KEY_ALIAS: KMS key alias
        """
        keys_dir = os.environ.get("CERTMAGIC_KEYS_DIR")
        return cls(
            keys_dir=Path(keys_dir).expanduser() if keys_dir else default_keys_dir(),
            key_alias=os.environ.get("CERTMAGIC_KEY_ALIAS", DEFAULT_KEY_ALIAS),
        )

    def validate(self) -> None:
        """Validate the configuration.

        Raises:
            ValueError: If a setting is invalid
        """
        if not self.key_alias:
            raise ValueError("KMS key alias is required")
        if not self.key_alias.startswith("alias/"):
            raise ValueError(
                f"Invalid KMS key alias '{self.key_alias}': must start with 'alias/'"
            )
        if self.key_size < 2048:
            raise ValueError(f"RSA key size must be at least 2048, got {self.key_size}")
        if self.region:
            validate_region(self.region)


def load_config(config_path: Optional[str] = None) -> CertMagicConfig:
    """Load configuration from a file or the environment.

    Args:
        config_path: Optional config file path; CERTMAGIC_CONFIG is used
            when not given

    Returns:
        Validated CertMagicConfig instance
    """
    config_path = config_path or os.environ.get("CERTMAGIC_CONFIG")
    if config_path:
        config = CertMagicConfig.from_config_file(config_path)
    else:
        config = CertMagicConfig.from_env()

    config.validate()
    return config
