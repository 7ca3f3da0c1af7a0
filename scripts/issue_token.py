#!/usr/bin/env python3
"""
Mint an access token for local development.

Usage:
  python scripts/issue_token.py --builtin                 # Reserved administrator
  python scripts/issue_token.py --user-id <id> --email a@b.c --role admin
  python scripts/issue_token.py --builtin --hours 1
"""

from __future__ import annotations

import argparse
import os
import sys
from datetime import timedelta

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "src"))

from rbac.jwt import create_access_token, create_builtin_admin_token  # noqa: E402
from rbac.roles import Role  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description="Issue a signed access token")
    who = parser.add_mutually_exclusive_group(required=True)
    who.add_argument("--builtin", action="store_true", help="Token for the reserved administrator")
    who.add_argument("--user-id", help="User id (sub claim)")
    parser.add_argument("--email", default="", help="Email claim")
    parser.add_argument("--role", choices=[r.value for r in Role], default=Role.ADMIN.value)
    parser.add_argument("--hours", type=int, default=None, help="Lifetime in hours")
    args = parser.parse_args()

    expires = timedelta(hours=args.hours) if args.hours else None
    if args.builtin:
        token = create_builtin_admin_token(expires_delta=expires)
    else:
        token = create_access_token(args.user_id, args.email, Role(args.role), expires_delta=expires)

    print(token)
    return 0


if __name__ == "__main__":
    sys.exit(main())
