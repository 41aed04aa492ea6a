"""
dxt-signing command line interface.

Usage:
    python -m dxt_signing sign <archivePath> <privateKeyPath> <keyId> <outputPath>
    python -m dxt_signing verify <archivePath> <keyId> <publicKeyPath> [--check-manifest-digest]
    python -m dxt_signing inspect <archivePath>

Environment Variables:
    DXT_LOG_LEVEL               Log level (default: INFO)
    DXT_LOG_FILE                Also log to this file
    DXT_CHECK_MANIFEST_DIGEST   Re-check signedPayload.manifestDigest on verify
"""

from __future__ import annotations

import argparse
import logging
import sys
import zipfile
from typing import Sequence

from . import __version__
from .archive import DxtArchive
from .config import DxtConfig, load_config_from_env
from .errors import DxtSignatureError
from .keys import load_trusted_keys
from .sign import sign_dxt_file
from .summary import format_signature_summary
from .verify import verify_dxt_file


logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="dxt-sign",
        description="Sign and verify DXT archives.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides DXT_LOG_LEVEL)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    sign_parser = subparsers.add_parser(
        "sign",
        help="Sign an archive and write a signed copy",
    )
    sign_parser.add_argument("archive", help="Path to the .dxt archive")
    sign_parser.add_argument("private_key", help="Path to the PEM RSA private key")
    sign_parser.add_argument("key_id", help="Signing key identifier")
    sign_parser.add_argument("output", help="Path of the signed archive to write")

    verify_parser = subparsers.add_parser(
        "verify",
        help="Verify an archive against a trusted public key",
    )
    verify_parser.add_argument("archive", help="Path to the signed .dxt archive")
    verify_parser.add_argument("key_id", help="Trusted key identifier")
    verify_parser.add_argument("public_key", help="Path to the PEM RSA public key")
    verify_parser.add_argument(
        "--check-manifest-digest",
        action="store_true",
        default=None,
        help="Also require the signed manifest digest to match manifest.json",
    )

    inspect_parser = subparsers.add_parser(
        "inspect",
        help="Show the embedded signature file without verifying it",
    )
    inspect_parser.add_argument("archive", help="Path to the .dxt archive")

    return parser


def cmd_sign(args: argparse.Namespace, config: DxtConfig) -> int:
    try:
        sign_dxt_file(args.archive, args.private_key, args.key_id, args.output)
    except DxtSignatureError as exc:
        print(f"Signing failed: {exc.code.value}: {exc.message}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    print(f"DXT signed and written to: {args.output}")
    return EXIT_SUCCESS


def cmd_verify(args: argparse.Namespace, config: DxtConfig) -> int:
    check_manifest = config.check_manifest_digest
    if args.check_manifest_digest is not None:
        check_manifest = args.check_manifest_digest

    trusted_keys = load_trusted_keys({args.key_id: args.public_key})
    result = verify_dxt_file(args.archive, trusted_keys, check_manifest_digest=check_manifest)
    if not result.valid:
        error = result.error
        print(f"Verification failed: {error.code.value}: {error.message}", file=sys.stderr)
        return EXIT_VERIFICATION_FAILED
    print("DXT signature verification successful.")
    return EXIT_SUCCESS


def cmd_inspect(args: argparse.Namespace, config: DxtConfig) -> int:
    archive = DxtArchive.from_path(args.archive)
    try:
        print(format_signature_summary(archive))
    except DxtSignatureError as exc:
        print(f"{exc.code.value}: {exc.message}", file=sys.stderr)
        return EXIT_VERIFICATION_FAILED
    return EXIT_SUCCESS


COMMANDS = {
    "sign": cmd_sign,
    "verify": cmd_verify,
    "inspect": cmd_inspect,
}


def main(argv: Sequence[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    config = load_config_from_env()
    if args.log_level:
        config.log_level = args.log_level
    setup_logging(config.log_level, config.log_file)

    try:
        return COMMANDS[args.command](args, config)
    except (OSError, zipfile.BadZipFile) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
