#!/usr/bin/env python3
"""
Reset a user's password in the User Directory SQLite database.

This script never reads or reveals the existing password.  It stores a
new PBKDF2 hash for the given login and refreshes ``updated_at``.

Usage:
    python reset_password.py --login stylesam --password "NewStrongPass!234"

The database path defaults to the configured ``DATABASE_URL``.  If
--password is omitted, you will be prompted to enter it securely.
"""

import argparse
import getpass
import os
import sys

from user_directory_api.app.core.db import get_connection, get_database_path, utcnow_iso
from user_directory_api.app.core.security import hash_password
from user_directory_api.app.services.validation import MIN_PASSWORD_LENGTH


def main() -> None:
    ap = argparse.ArgumentParser(description="Reset a user's password (SQLite).")
    ap.add_argument("--login", required=True, help="Login of the user to update")
    ap.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")
    args = ap.parse_args()

    if not os.path.exists(get_database_path()):
        print(f"[!] DB not found: {get_database_path()}", file=sys.stderr)
        sys.exit(1)

    new_password = args.password or getpass.getpass("Enter NEW password: ")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        print(f"[!] Password must be at least {MIN_PASSWORD_LENGTH} characters.", file=sys.stderr)
        sys.exit(1)

    login = args.login.strip().lower()
    conn = get_connection()
    try:
        cur = conn.cursor()
        cur.execute(
            "UPDATE users SET password = ?, updated_at = ? WHERE login = ?",
            (hash_password(new_password), utcnow_iso(), login),
        )
        if cur.rowcount == 0:
            print(f"[!] No user found with login: {login}", file=sys.stderr)
            sys.exit(2)
        conn.commit()
        print(f"[+] Password updated for user: {login}")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
