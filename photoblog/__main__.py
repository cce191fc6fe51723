"""Command line entry point.

Usage::

    python -m photoblog serve --reload
    python -m photoblog hash-password      # value for ADMIN_PASSWORD_HASH
    python -m photoblog secret             # value for JWT_SECRET_KEY
"""

import argparse
import getpass
import secrets
import sys
from typing import List, Optional


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run(
        "photoblog.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )
    return 0


def _hash_password(args: argparse.Namespace) -> int:
    from photoblog.core.security import hash_password

    password = args.password
    if password is None:
        password = getpass.getpass("Admin password: ")
        if password != getpass.getpass("Repeat password: "):
            print("Passwords do not match", file=sys.stderr)
            return 1
    if not password:
        print("Password cannot be empty", file=sys.stderr)
        return 1

    print(hash_password(password))
    return 0


def _secret(args: argparse.Namespace) -> int:
    print(secrets.token_hex(32))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="photoblog", description="Photo blog API")
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(handler=_serve)

    hash_cmd = commands.add_parser("hash-password", help="Hash an admin password")
    hash_cmd.add_argument("--password", help="Read from a prompt when omitted")
    hash_cmd.set_defaults(handler=_hash_password)

    secret = commands.add_parser("secret", help="Generate a JWT signing key")
    secret.set_defaults(handler=_secret)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
