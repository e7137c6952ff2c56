#!/usr/bin/env python3
"""
user-service -- operator CLI for the identity service.

Usage:
  python main.py serve
  python main.py serve --port 8080 --reload
  python main.py list-users
  python main.py create-user --name Ann --email a@x.com --password secret
  python main.py create-user --name Admin --email admin@x.com --role admin --password-stdin
  python main.py issue-token user_1718000000000
  python main.py verify-token <token>
  python main.py decode-token <token>

Environment variables (read through core.config.Settings, .env supported):
  JWT_SECRET            Required. Signing secret for bearer tokens.
  TOKEN_EXPIRE_SECONDS  Token lifetime, default 86400 (24h).
  USERS_FILE            Path of the users document, default data/users.json.
  BCRYPT_ROUNDS         bcrypt work factor, default 10.
"""

import argparse
import getpass
import json
import sys

from auth.errors import UserServiceError
from auth.gateway import AuthGateway, build_gateway
from auth.tokens import TokenService
from core.config import get_settings


def _print_json(data) -> None:
    print(json.dumps(data, indent=2))


def _read_password(args: argparse.Namespace):
    if args.password_stdin:
        return sys.stdin.readline().rstrip("\n") or None
    if args.password is not None:
        return args.password
    if args.prompt_password:
        return getpass.getpass("Password: ") or None
    return None


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "api.main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


def cmd_list_users(gateway: AuthGateway, args: argparse.Namespace) -> int:
    users = [u.public() for u in gateway.store.list_all()]
    if args.json:
        _print_json(users)
        return 0
    if not users:
        print("  No users.")
        return 0
    for u in users:
        print(f"  {u['id']:<22} {u.get('role', ''):<8} {u.get('email') or '-':<30} {u['name']}")
    return 0


def cmd_create_user(gateway: AuthGateway, args: argparse.Namespace) -> int:
    candidate = {
        "name": args.name,
        "id": args.id,
        "email": args.email,
        "password": _read_password(args),
        "role": args.role,
    }
    user = gateway.store.create({k: v for k, v in candidate.items() if v is not None})
    _print_json(user.public())
    return 0


def cmd_issue_token(gateway: AuthGateway, args: argparse.Namespace) -> int:
    user = gateway.validate_user(args.user_id)
    print(gateway.tokens.issue(user, expire_seconds=args.expire_seconds))
    return 0


def cmd_verify_token(gateway: AuthGateway, args: argparse.Namespace) -> int:
    result = gateway.tokens.verify(args.token)
    if not result.ok:
        print(f"  [!] Token rejected: {result.error.reason}")
        return 1
    _print_json(result.claims)
    return 0


def cmd_decode_token(args: argparse.Namespace) -> int:
    claims = TokenService.decode(args.token)
    if claims is None:
        print("  [!] Not a parseable JWT.")
        return 1
    print("  (unverified -- signature and expiry NOT checked)", file=sys.stderr)
    _print_json(claims)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="user-service",
        description="User records, password login, and bearer tokens.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  JWT_SECRET=change-me python main.py serve
  python main.py create-user --name Ann --email a@x.com --password secret
  python main.py list-users --json
  python main.py decode-token eyJhbGciOi...
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST or 0.0.0.0)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: PORT or 3003)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development)")

    list_users = sub.add_parser("list-users", help="Print every user (passwords omitted)")
    list_users.add_argument("--json", action="store_true", help="Output JSON instead of a table")

    create = sub.add_parser("create-user", help="Create a user record")
    create.add_argument("--name", required=True)
    create.add_argument("--email", default=None)
    create.add_argument("--id", default=None, help="Explicit user id (default: user_<epoch ms>)")
    create.add_argument("--role", default=None, help='Role (default: "user")')
    pw = create.add_mutually_exclusive_group()
    pw.add_argument("--password", default=None, help="Plaintext password (visible in shell history)")
    pw.add_argument("--password-stdin", action="store_true", help="Read the password from stdin")
    pw.add_argument("--prompt-password", action="store_true", help="Prompt for the password")

    issue = sub.add_parser("issue-token", help="Issue a bearer token for an existing user")
    issue.add_argument("user_id")
    issue.add_argument("--expire-seconds", type=int, default=None)

    verify = sub.add_parser("verify-token", help="Verify a token and print its claims")
    verify.add_argument("token")

    decode = sub.add_parser("decode-token", help="Print a token's claims WITHOUT verifying it")
    decode.add_argument("token")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0
    if args.command == "serve":
        return cmd_serve(args)
    if args.command == "decode-token":
        # Diagnostics only: needs no secret and no store.
        return cmd_decode_token(args)

    handlers = {
        "list-users": cmd_list_users,
        "create-user": cmd_create_user,
        "issue-token": cmd_issue_token,
        "verify-token": cmd_verify_token,
    }
    try:
        gateway = build_gateway()
        return handlers[args.command](gateway, args)
    except UserServiceError as exc:
        print(f"  [!] {exc.message}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
