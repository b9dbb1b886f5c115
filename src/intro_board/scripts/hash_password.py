# src/intro_board/scripts/hash_password.py
"""
Print a password hash for the ADMIN_CREDENTIALS setting.

Usage:
    intro-board-hash-password admin@example.com
    # prompts for the password, then prints a JSON snippet such as
    # {"admin@example.com": "$pbkdf2-sha256$29000$..."}
"""

import argparse
import getpass
import json
import sys

from intro_board.core.security import hash_password
from intro_board.services.access import normalize_email


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("email", help="Moderator email address")
    parser.add_argument(
        "--password-stdin",
        action="store_true",
        help="Read the password from stdin instead of prompting",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.password_stdin:
        password = sys.stdin.readline().rstrip("\n")
    else:
        password = getpass.getpass("Password: ")
        if password != getpass.getpass("Repeat password: "):
            print("Passwords do not match", file=sys.stderr)
            return 1
    if not password:
        print("Password must not be empty", file=sys.stderr)
        return 1

    email = normalize_email(args.email)
    print(json.dumps({email: hash_password(password)}))
    print(f"Remember to add {email} to ADMIN_EMAILS as well.", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
