"""Mint a long‑lived bearer token for an existing login.

Usage:
    python create_token.py admin [--days 365]
"""
import argparse
import sys

from user_directory_api.app.core.db import get_connection
from user_directory_api.app.core.security import create_access_token


def main() -> None:
    ap = argparse.ArgumentParser(description="Create a bearer token for a user login.")
    ap.add_argument("login", help="Login of the user the token identifies")
    ap.add_argument("--days", type=int, default=365, help="Token lifetime in days")
    args = ap.parse_args()

    login = args.login.strip().lower()
    conn = get_connection()
    try:
        row = conn.execute("SELECT id FROM users WHERE login = ?", (login,)).fetchone()
    finally:
        conn.close()
    if not row:
        print(f"[!] No user found with login: {login}", file=sys.stderr)
        sys.exit(2)
    # Tokens carry the user id so they survive a login change.
    print(create_access_token({"sub": str(row["id"])}, expires_delta=args.days * 24 * 60 * 60))


if __name__ == "__main__":
    main()
