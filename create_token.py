#!/usr/bin/env python3
"""
Issue a bearer token for a caller identity.

The token is signed with ``SECRET_KEY`` (read from the environment like
the server does), so run this with the same environment as the server.

Usage:
    python create_token.py --identity 2vxsx-fae --days 365
"""

import argparse

from contacts_api.app.core.security import create_access_token


def main() -> None:
    ap = argparse.ArgumentParser(description="Issue a Contacts API bearer token.")
    ap.add_argument("--identity", required=True, help="Caller identity to embed as the token subject")
    ap.add_argument("--days", type=int, default=1, help="Token lifetime in days (default: 1)")
    args = ap.parse_args()

    print(create_access_token(args.identity, expires_delta=args.days * 24 * 60 * 60))


if __name__ == "__main__":
    main()
