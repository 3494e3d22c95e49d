"""CLI entry point for s3signer."""

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from s3signer import auth
from s3signer.config import S3SignerConfig, load_config
from s3signer.errors import S3SignerError
from s3signer.logging_config import configure_logging
from s3signer.metrics import init_metrics
from s3signer.models import BytesContent, Request

logger = logging.getLogger("s3signer")


def _parse_timestamp(value: str) -> datetime:
    try:
        return datetime.strptime(value, "%Y%m%dT%H%M%SZ").replace(tzinfo=timezone.utc)
    except ValueError:
        raise argparse.ArgumentTypeError(f"timestamp must be YYYYMMDDThhmmssZ, got {value!r}")


def _parse_header(value: str) -> tuple[str, str]:
    if ":" not in value:
        raise argparse.ArgumentTypeError(f"header must be NAME:VALUE, got {value!r}")
    name, val = value.split(":", 1)
    return name.strip(), val.strip()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        prog="s3signer",
        description="s3signer - sign S3 requests and build presigned URLs",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument("--access-key", default=None, help="Access key ID (overrides config)")
    parser.add_argument("--secret-key", default=None, help="Secret access key (overrides config)")
    parser.add_argument("--region", default=None, help="Region (overrides config)")
    parser.add_argument("--endpoint", default=None, help="Service host (overrides config)")
    parser.add_argument(
        "--signature-version",
        default=None,
        choices=["v2", "v4"],
        help="Signing variant (overrides config)",
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

    sub = parser.add_subparsers(dest="command", required=True)

    sign_parser = sub.add_parser("sign", help="Print the headers of a signed request as JSON")
    presign_parser = sub.add_parser("presign", help="Print a presigned URL")
    for p in (sign_parser, presign_parser):
        p.add_argument("method", help="HTTP method (GET, PUT, DELETE, POST, HEAD)")
        p.add_argument("bucket", help="Bucket name")
        p.add_argument("key", nargs="?", default="", help="Object key")
        p.add_argument(
            "--timestamp",
            type=_parse_timestamp,
            default=None,
            help="Signing time as YYYYMMDDThhmmssZ (default: now)",
        )
        p.add_argument(
            "--header",
            type=_parse_header,
            action="append",
            default=[],
            help="Extra header NAME:VALUE (repeatable)",
        )

    sign_parser.add_argument("--body-file", type=Path, default=None, help="File to use as body")
    presign_parser.add_argument(
        "--expires", type=int, default=None, help="URL lifetime in seconds (1-604800)"
    )
    return parser.parse_args(argv)


def _apply_overrides(config: S3SignerConfig, args: argparse.Namespace) -> None:
    if args.access_key is not None:
        config.credentials.access_key = args.access_key
    if args.secret_key is not None:
        config.credentials.secret_key = args.secret_key
    if args.region is not None:
        config.client.region = args.region
    if args.endpoint is not None:
        config.client.endpoint = args.endpoint
    if args.signature_version is not None:
        config.client.signature_version = args.signature_version
    if args.log_level is not None:
        config.logging.level = args.log_level
    if args.log_format is not None:
        config.logging.format = args.log_format


def _build_request(config: S3SignerConfig, args: argparse.Namespace) -> Request:
    request = Request(
        args.method,
        args.bucket,
        args.key,
        timestamp=args.timestamp,
        endpoint=config.client.endpoint,
        scheme=config.client.scheme,
        addressing_style=config.client.addressing_style,
    )
    for name, value in args.header:
        request.set_header(name, value)
    body_file = getattr(args, "body_file", None)
    if body_file is not None:
        request.set_content(BytesContent(body_file.read_bytes()))
    return request


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the s3signer CLI.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].

    Returns:
        Process exit status.
    """
    args = parse_args(argv)

    logging.basicConfig(level=logging.INFO, stream=sys.stderr)

    if args.config is not None:
        try:
            config = load_config(args.config)
        except FileNotFoundError:
            logger.error("Config file not found: %s", args.config)
            return 1
        except Exception as exc:
            logger.error("Failed to load config: %s", exc)
            return 1
    else:
        config = S3SignerConfig()

    _apply_overrides(config, args)
    configure_logging(level=config.logging.level, fmt=config.logging.format)
    if config.metrics.enabled:
        init_metrics()

    try:
        request = _build_request(config, args)
        credentials = config.to_credentials()
        context = config.signing_context()
        if args.command == "sign":
            signed = auth.sign(request, credentials, context)
            output = {
                "method": signed.method.value,
                "url": signed.url,
                "headers": dict(signed.headers),
            }
            print(json.dumps(output, indent=2))
        else:
            expires = args.expires if args.expires is not None else config.presign.default_expires
            print(auth.presign(request, credentials, context, expires))
    except S3SignerError as exc:
        logger.error("%s: %s", exc.code, exc.message)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
