"""
Command-line interface for PaySign Python SDK
Signs requests, performs signed API calls and verifies received signatures
"""

import argparse
import sys
import json
import logging
from datetime import datetime
from typing import Optional, Dict

from . import initialize_sdk, __version__
from .config import ConfigManager, LoggingConfig, ConfigError, configure_logging
from .crypto.keys import load_private_key_file, load_public_key_file
from .exceptions import PaySignSDKError, ServerCommunicationError, UnsupportedPlatformError
from .http_client import create_client_from_config
from .signing import SigningRequest, SigningError, create_key_material, sign_request
from .verification import verify_request


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog='paysign-cli',
        description='PaySign SDK command-line interface for RSA-SHA256 request signing'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'PaySign Python SDK {__version__}'
    )

    parser.add_argument(
        '--check-compatibility',
        action='store_true',
        help='Check platform compatibility and exit'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    setup_sign_parser(subparsers)
    setup_request_parser(subparsers)
    setup_verify_parser(subparsers)

    return parser


def _add_request_arguments(parser):
    parser.add_argument('--method', required=True, help='HTTP method, e.g. GET or POST')
    parser.add_argument('--path', required=True, help='Request path, e.g. /api/v1/accounts')
    parser.add_argument('--query', help='Raw query string without the leading ?')
    body_group = parser.add_mutually_exclusive_group()
    body_group.add_argument('--body', help='Request body as text')
    body_group.add_argument('--body-file', help='File containing the request body')


def setup_sign_parser(subparsers):
    """Setup sign subcommand."""
    sign_parser = subparsers.add_parser('sign', help='Compute signature headers for a request')
    sign_parser.add_argument('--key-id', required=True, help='Key identifier registered with the API')
    sign_parser.add_argument('--key-file', required=True, help='PEM file holding the RSA private key')
    sign_parser.add_argument('--key-password', help='Password for an encrypted private key')
    _add_request_arguments(sign_parser)
    sign_parser.add_argument(
        '--date',
        help='Signing time as ISO 8601 (defaults to now, UTC)'
    )


def setup_request_parser(subparsers):
    """Setup request subcommand."""
    request_parser = subparsers.add_parser('request', help='Perform a signed API request')
    request_parser.add_argument('method', help='HTTP method')
    request_parser.add_argument('path', help='API path relative to the configured base URL')
    request_parser.add_argument('--json', dest='json_body', help='JSON request body')
    request_parser.add_argument(
        '--config',
        help='JSON configuration file (defaults to PAYSIGN_* environment variables)'
    )


def setup_verify_parser(subparsers):
    """Setup verify subcommand."""
    verify_parser = subparsers.add_parser('verify', help='Verify the signature headers of a request')
    verify_parser.add_argument('--public-key-file', required=True, help='PEM file holding the RSA public key')
    verify_parser.add_argument('--key-id', required=True, help='Key identifier expected in the Authorization header')
    _add_request_arguments(verify_parser)
    verify_parser.add_argument('--headers', required=True, help='Received headers as a JSON object')
    verify_parser.add_argument('--max-clock-skew', type=float, help='Reject Date headers older or newer than this many seconds')


def _read_body(args) -> Optional[bytes]:
    if args.body_file:
        with open(args.body_file, 'rb') as f:
            return f.read()
    if args.body is not None:
        return args.body.encode('utf-8')
    return None


def handle_sign_command(args) -> int:
    """Handle request signing command."""
    try:
        timestamp = None
        if args.date:
            try:
                timestamp = datetime.fromisoformat(args.date.replace('Z', '+00:00'))
            except ValueError:
                print(f"Error: Invalid --date value: {args.date}", file=sys.stderr)
                return 1

        private_key = load_private_key_file(args.key_file, args.key_password)
        key = create_key_material(args.key_id, private_key)

        request = SigningRequest(
            method=args.method,
            path=args.path,
            query=args.query,
            body=_read_body(args),
            timestamp=timestamp
        )
        headers = sign_request(request, key)

        print(json.dumps(headers.headers, indent=2))
        return 0

    except (PaySignSDKError, SigningError, OSError) as e:
        print(f"Error signing request: {e}", file=sys.stderr)
        return 1


def _load_config(path: Optional[str]) -> ConfigManager:
    if path:
        return ConfigManager.from_file(path)
    return ConfigManager.from_env()


def handle_request_command(args) -> int:
    """Handle signed API request command."""
    try:
        json_body = None
        if args.json_body is not None:
            try:
                json_body = json.loads(args.json_body)
            except json.JSONDecodeError as e:
                print(f"Error: --json is not valid JSON: {e}", file=sys.stderr)
                return 1

        manager = _load_config(args.config)

        with create_client_from_config(manager) as client:
            response = client.request(args.method, args.path, json_body=json_body)

        print(f"HTTP {response.status_code}", file=sys.stderr)
        if response.data is not None:
            print(json.dumps(response.data, indent=2))
        elif response.text:
            print(response.text)
        return 0

    except ServerCommunicationError as e:
        print(f"Server communication error: {e}", file=sys.stderr)
        if e.details.get('body'):
            print(e.details['body'])
        return 1
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    except (PaySignSDKError, SigningError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def handle_verify_command(args) -> int:
    """Handle signature verification command."""
    try:
        try:
            headers: Dict[str, str] = json.loads(args.headers)
        except json.JSONDecodeError as e:
            print(f"Error: --headers is not valid JSON: {e}", file=sys.stderr)
            return 1

        if not isinstance(headers, dict):
            print("Error: --headers must be a JSON object", file=sys.stderr)
            return 1

        public_key = load_public_key_file(args.public_key_file)

        result = verify_request(
            method=args.method,
            path=args.path,
            headers=headers,
            public_key=public_key,
            query=args.query,
            body=_read_body(args),
            max_clock_skew=args.max_clock_skew
        )

        if result.error is not None:
            print(f"✗ Verification error: {result.error['message']}")
            return 1

        if result.key_id != args.key_id:
            print(f"✗ Key ID mismatch: expected {args.key_id}, got {result.key_id}")
            return 1

        if result.signature_valid:
            print(f"✓ Signature is valid for key ID {result.key_id}")
            return 0

        print("✗ Signature is invalid")
        for error in result.errors:
            print(f"  {error}")
        return 1

    except (PaySignSDKError, OSError) as e:
        print(f"Error verifying request: {e}", file=sys.stderr)
        return 1


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for the CLI

    Args:
        argv: Command line arguments (None to use sys.argv)

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging(LoggingConfig(level='DEBUG' if args.verbose else 'WARNING'))

    try:
        if args.check_compatibility:
            result = initialize_sdk()
            if result['compatible']:
                print("✓ Platform is compatible with PaySign SDK")
                for warning in result['warnings']:
                    print(f"  Warning: {warning}")
                return 0
            else:
                print("✗ Platform is not compatible with PaySign SDK")
                for warning in result['warnings']:
                    print(f"  Error: {warning}")
                return 1

        try:
            initialize_sdk(strict=True)
        except UnsupportedPlatformError as e:
            print(f"Error: {e}", file=sys.stderr)
            for warning in e.details.get('warnings', []):
                print(f"  {warning}", file=sys.stderr)
            return 1

        if args.command == 'sign':
            return handle_sign_command(args)
        elif args.command == 'request':
            return handle_request_command(args)
        elif args.command == 'verify':
            return handle_verify_command(args)
        else:
            # No command specified, show help
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except Exception as e:
        logging.getLogger(__name__).debug("Unhandled CLI error", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
