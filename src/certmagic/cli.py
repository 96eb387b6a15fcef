"""
Certmagic command line - Main entry point.

Commands:
    create <domain> [--profile P] [--force] [--region R]
    install <cert file> [--chain F] [--key-profile P] [--install-profile P] [--region R]
    list
    tidy <domain>
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from . import __version__
from . import credentials
from .config import load_config, resolve_region
from .errors import CertMagicError
from .lifecycle import AwsClients, CertificateLifecycle
from .storage import LocalArtifactStore

logger = logging.getLogger("certmagic")

EXIT_OK = 0
EXIT_INVALID_USAGE = 64  # EX_USAGE

AWS_COMMANDS = ("create", "install")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="certmagic",
        description="Create KMS-protected TLS keys and install issued certificates in IAM.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="YAML config file (default: $CERTMAGIC_CONFIG)")
    parser.add_argument("--keys-dir", type=Path, help="Directory holding CSRs and encrypted keys")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create", help="Create a private key and CSR for a domain")
    create.add_argument("domain")
    create.add_argument("--profile", help="AWS profile for KMS")
    create.add_argument("--force", action="store_true",
                        help="Overwrite an existing encrypted private key")
    create.add_argument("--region", help="AWS region")

    install = commands.add_parser("install", help="Verify an issued certificate and upload it to IAM")
    install.add_argument("certificate", type=Path, help="PEM certificate file")
    install.add_argument("--chain", type=Path, help="PEM chain file (derived from the certificate if omitted)")
    install.add_argument("--key-profile", help="AWS profile for KMS")
    install.add_argument("--install-profile", help="AWS profile for IAM (defaults to the key profile)")
    install.add_argument("--region", help="AWS region")

    commands.add_parser("list", help="List stored CSRs and encrypted keys")

    tidy = commands.add_parser("tidy", help="Delete the CSR and encrypted key of a domain")
    tidy.add_argument("domain")

    return parser


def run(args: argparse.Namespace, lifecycle_factory=CertificateLifecycle) -> int:
    """Run a parsed command.

    Args:
        args: Parsed command line
        lifecycle_factory: Builds the CertificateLifecycle for the command

    Returns:
        Process exit status
    """
    config = load_config(args.config)
    if args.keys_dir:
        config.keys_dir = args.keys_dir

    # list and tidy only touch local files
    region = None
    if args.command in AWS_COMMANDS:
        region = resolve_region(args.region, fallback=config.region)
    store = LocalArtifactStore(config.keys_dir)
    lifecycle = lifecycle_factory(config, store, AwsClients(region))

    if args.command == "create":
        lifecycle.create(args.domain, credentials.resolve(args.profile), force=args.force)
    elif args.command == "install":
        key_credentials = credentials.resolve(args.key_profile)
        install_credentials = credentials.resolve_install(key_credentials, args.install_profile)
        lifecycle.install(
            args.certificate,
            key_credentials=key_credentials,
            install_credentials=install_credentials,
            chain_file=args.chain,
        )
    elif args.command == "list":
        lifecycle.list()
    elif args.command == "tidy":
        lifecycle.tidy(args.domain)

    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        sys.exit(run(args))
    except CertMagicError as e:
        print(f"error: {e.message}", file=sys.stderr)
        if e.hint:
            print(e.hint, file=sys.stderr)
        sys.exit(e.exit_code)
    except (ValueError, FileNotFoundError) as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(EXIT_INVALID_USAGE)
    except KeyboardInterrupt:
        logger.info("Interrupted")
        sys.exit(130)


if __name__ == "__main__":
    main()
