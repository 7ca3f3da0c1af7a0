#!/usr/bin/env python3
"""
Audit permission requirements of the mounted routes.

Lists every admin route with the requirement that guards it and reports
routes that fall through to the undeclared-operation policy.

Usage:
  python scripts/audit_requirements.py
  python scripts/audit_requirements.py --strict   # exit 1 on undeclared routes
"""

from __future__ import annotations

import argparse
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "src"))

from fastapi.routing import APIRoute  # noqa: E402

from rbac.dependencies import enforce_permissions  # noqa: E402
from web.app import create_app  # noqa: E402


def _is_guarded(route: APIRoute) -> bool:
    return any(dep.call is enforce_permissions for dep in route.dependant.dependencies)


def main() -> int:
    parser = argparse.ArgumentParser(description="Audit route permission requirements")
    parser.add_argument("--strict", action="store_true", help="Fail when a guarded route is undeclared")
    args = parser.parse_args()

    app = create_app()
    table = app.state.requirements
    undeclared = []

    for route in app.routes:
        if not isinstance(route, APIRoute) or not _is_guarded(route):
            continue
        requirement = table.resolve(route.name)
        methods = ",".join(sorted(route.methods))
        if requirement is None:
            undeclared.append(route.name)
            print(f"  {methods:6s} {route.path:45s} UNDECLARED")
            continue
        perms = f" {requirement.combinator.value} ".join(p.value for p in requirement.permissions)
        print(f"  {methods:6s} {route.path:45s} {perms}")

    if undeclared:
        print(f"\n{len(undeclared)} guarded route(s) without a requirement")
        return 1 if args.strict else 0
    return 0


if __name__ == "__main__":
    sys.exit(main())
