"""CLI entry point: python -m oauth2_client_auth."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from oauth2_client_auth import provision_client
from oauth2_client_auth.client import JsonFileClientRepository
from oauth2_client_auth.errors import UnsupportedMethod
from oauth2_client_auth.registry import DEFAULT_METHODS, MethodRegistry, build_registry
from oauth2_client_auth.server import serve

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        print(f"Error: {name} must be an integer, got {raw!r}.", file=sys.stderr)
        sys.exit(1)


def _add_registry_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--methods",
        default=",".join(DEFAULT_METHODS),
        help=f'Comma-separated authentication methods, in evaluation order (default: "{",".join(DEFAULT_METHODS)}").',
    )
    parser.add_argument(
        "--realm",
        default=os.environ.get("CLIENT_AUTH_REALM", "oauth2"),
        help='Realm advertised by client_secret_basic (default: $CLIENT_AUTH_REALM or "oauth2").',
    )
    parser.add_argument(
        "--secret-lifetime",
        type=int,
        default=None,
        help="Lifetime of generated secrets in seconds, 0 = unlimited (default: $CLIENT_AUTH_SECRET_LIFETIME or 0).",
    )
    parser.add_argument(
        "--audience",
        default=None,
        help="Expected audience of JWT client assertions (usually the token endpoint URL).",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the oauth2-client-auth CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m oauth2_client_auth",
        description="OAuth2 token endpoint client authentication.",
    )
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default="INFO",
        help="Logging level (default: INFO).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run a token endpoint guarded by client authentication.")
    serve_parser.add_argument(
        "--clients-file",
        type=Path,
        default=None,
        help="JSON file holding the list of registered clients (default: $CLIENT_AUTH_CLIENTS_FILE).",
    )
    serve_parser.add_argument("--host", default="127.0.0.1", help="Host address (default: 127.0.0.1).")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port (default: 8000, range: 1-65535).")
    serve_parser.add_argument("--token-path", default="/token", help='Token endpoint path (default: "/token").')
    _add_registry_options(serve_parser)

    provision_parser = subparsers.add_parser("provision", help="Print the configuration of a new client as JSON.")
    provision_parser.add_argument("client_id", help="Identifier of the new client.")
    provision_parser.add_argument(
        "--method",
        default="client_secret_basic",
        help='Token endpoint authentication method of the client (default: "client_secret_basic").',
    )
    _add_registry_options(provision_parser)

    schemes_parser = subparsers.add_parser("schemes", help="List enabled methods and WWW-Authenticate challenges.")
    _add_registry_options(schemes_parser)

    return parser


def _registry_from_args(args: argparse.Namespace) -> MethodRegistry:
    secret_lifetime = args.secret_lifetime
    if secret_lifetime is None:
        secret_lifetime = _env_int("CLIENT_AUTH_SECRET_LIFETIME", 0)
    methods = [m.strip() for m in args.methods.split(",") if m.strip()]
    try:
        return build_registry(
            methods,
            realm=args.realm,
            secret_lifetime=secret_lifetime,
            assertion_audience=args.audience,
        )
    except (UnsupportedMethod, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


def _run_serve(args: argparse.Namespace) -> None:
    if args.port < 1 or args.port > 65535:
        print(f"Error: --port must be in range 1-65535, got {args.port}.", file=sys.stderr)
        sys.exit(1)

    clients_file = args.clients_file
    if clients_file is None and os.environ.get("CLIENT_AUTH_CLIENTS_FILE"):
        clients_file = Path(os.environ["CLIENT_AUTH_CLIENTS_FILE"])
    if clients_file is None:
        print("Error: --clients-file or CLIENT_AUTH_CLIENTS_FILE is required.", file=sys.stderr)
        sys.exit(1)
    if not clients_file.is_file():
        print(f"Error: --clients-file '{clients_file}' does not exist.", file=sys.stderr)
        sys.exit(1)

    registry = _registry_from_args(args)
    repository = JsonFileClientRepository.load(clients_file)
    if len(repository) == 0:
        logger.warning("No clients registered in '%s'.", clients_file)

    try:
        serve(
            registry,
            repository,
            host=args.host,
            port=args.port,
            log_level=args.log_level,
            token_path=args.token_path,
        )
    except Exception:
        logger.exception("Server startup failed.")
        sys.exit(2)


def _run_provision(args: argparse.Namespace) -> None:
    registry = _registry_from_args(args)
    try:
        client = provision_client(registry, args.client_id, args.method)
    except (UnsupportedMethod, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    print(json.dumps(client.model_dump(), indent=2))


def _run_schemes(args: argparse.Namespace) -> None:
    registry = _registry_from_args(args)
    print(json.dumps({"methods": registry.list(), "challenges": registry.schemes()}, indent=2))


def main() -> None:
    """CLI entry point.

    Exit codes:
        0 - Success / normal shutdown
        1 - Invalid arguments or configuration
        2 - Startup failure (argparse error, serve() exception)
    """
    parser = _build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.command == "serve":
        _run_serve(args)
    elif args.command == "provision":
        _run_provision(args)
    else:
        _run_schemes(args)


if __name__ == "__main__":
    main()
