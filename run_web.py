#!/usr/bin/env python3
"""
Run the Marketplace Admin API.
"""

import os
import sys


def main() -> None:
    # Make src importable
    repo_root = os.path.dirname(os.path.abspath(__file__))
    sys.path.insert(0, os.path.join(repo_root, "src"))

    from config.settings import get_validated_settings
    from services.logging_config import configure_logging

    # Fail fast on production misconfiguration
    settings = get_validated_settings(exit_on_failure=True)
    configure_logging(level=settings.log_level, json_output=settings.log_json)

    import uvicorn

    uvicorn.run(
        "web.app:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
