"""CLI entry point for s3presign."""

import argparse
import json
import logging
import sys
from pathlib import Path

import s3presign.metrics as _metrics
from s3presign.config import PresignConfig, load_config, load_config_from_env
from s3presign.errors import PresignError
from s3presign.logging_config import configure_logging
from s3presign.presign import PresignedUrlSigner

logger = logging.getLogger("s3presign")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        prog="s3presign",
        description="s3presign - issue AWS SigV4 presigned GET URLs for S3 objects",
    )
    parser.add_argument(
        "keys",
        nargs="*",
        metavar="KEY",
        help="Object keys to presign",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: read the environment)",
    )
    parser.add_argument(
        "--expires",
        type=int,
        default=None,
        help="URL lifetime in seconds, 1-604800 (overrides config, default: 300)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="url",
        choices=["url", "json"],
        help="Print bare URLs or one JSON object per key",
    )
    parser.add_argument(
        "--verify",
        type=str,
        default=None,
        metavar="URL",
        help="Verify a presigned URL against the configured credentials",
    )
    parser.add_argument(
        "--metrics-file",
        type=Path,
        default=None,
        metavar="PATH",
        help="Enable metrics and write them to PATH in Prometheus text format on exit",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config, default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=["text", "json"],
        help="Log format: 'text' (human-readable) or 'json' (structured)",
    )
    args = parser.parse_args(argv)
    if not args.keys and args.verify is None:
        parser.error("at least one KEY or --verify URL is required")
    return args


def _load(args: argparse.Namespace) -> PresignConfig:
    if args.config is None:
        return load_config_from_env()
    return load_config(args.config)


def _run(args: argparse.Namespace, signer: PresignedUrlSigner) -> int:
    """Verify or presign as requested. Returns the process exit status."""
    if args.verify is not None:
        try:
            info = signer.verify(args.verify)
        except PresignError as exc:
            logger.error("Verification failed: %s", exc.message, extra={"error_code": exc.code})
            return 1
        print(json.dumps({"valid": True, **info}))
        return 0

    failed = False
    for key in args.keys:
        try:
            result = signer.presign(key)
        except PresignError as exc:
            failed = True
            if args.output == "json":
                print(json.dumps({"success": False, "key": key, "error": exc.message}))
            continue

        if args.output == "json":
            print(
                json.dumps(
                    {
                        "success": True,
                        "downloadUrl": result.url,
                        "filename": result.filename,
                        "expiresAt": result.expires_at.isoformat(),
                    }
                )
            )
        else:
            print(result.url)

    return 1 if failed else 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the s3presign CLI.

    Loads configuration, applies CLI overrides, builds one signer and prints
    a URL (or JSON object) per key on stdout. Exits with status 1 on any
    configuration, validation or verification error. When a metrics file is
    configured, the counters are written to it before exiting.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].
    """
    args = parse_args(argv)

    # Use a basic stderr logger for config-loading errors
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)

    try:
        config = _load(args)
    except FileNotFoundError:
        logger.error("Config file not found: %s", args.config)
        sys.exit(1)
    except Exception as exc:
        logger.error("Failed to load config: %s", exc)
        sys.exit(1)

    if args.log_level is not None:
        config.logging.level = args.log_level
    if args.log_format is not None:
        config.logging.format = args.log_format
    if args.metrics_file is not None:
        config.observability.metrics_file = str(args.metrics_file)

    configure_logging(level=config.logging.level, fmt=config.logging.format)

    if config.observability.metrics or config.observability.metrics_file:
        _metrics.init_metrics()

    try:
        signer = PresignedUrlSigner(config, default_expiration=args.expires)
    except PresignError as exc:
        logger.error("%s", exc.message, extra={"error_code": exc.code})
        status = 1
    else:
        status = _run(args, signer)

    if config.observability.metrics_file:
        try:
            _metrics.write_textfile(config.observability.metrics_file)
        except OSError as exc:
            logger.error("Failed to write metrics file: %s", exc)
            status = 1

    if status:
        sys.exit(status)


if __name__ == "__main__":
    main()
