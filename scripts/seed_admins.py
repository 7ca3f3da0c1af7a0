#!/usr/bin/env python3
"""
Create the super admin and default moderator accounts.

Credentials come from AUTH_SEED_* environment variables (see
config/settings.py). Existing accounts are left untouched.

Usage:
  python scripts/seed_admins.py
"""

from __future__ import annotations

import asyncio
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "src"))

from database.async_engine import close_database, get_async_session, init_database  # noqa: E402
from services import get_admin_seed_service  # noqa: E402
from services.logging_config import configure_logging  # noqa: E402


async def run() -> None:
    await init_database()
    try:
        async with get_async_session() as session:
            await get_admin_seed_service(session).seed_all()
    finally:
        await close_database()


def main() -> int:
    configure_logging()
    asyncio.run(run())
    return 0


if __name__ == "__main__":
    sys.exit(main())
