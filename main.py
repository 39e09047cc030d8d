#!/usr/bin/env python3
"""
Warden - Service Entry Point
============================

Runs the trust-and-safety HTTP service.

Features:
- Abuse report ingestion with automatic suspension and content removal
- Windowed report scores per account, virtual identity and message
- Spam screening for accounts on probation
- Federation bridge bans for virtual identities
"""

import asyncio
import sys

from dotenv import load_dotenv

load_dotenv()

from warden.api import APIService  # noqa: E402
from warden.core.config import ConfigValidationError, validate_and_log_config  # noqa: E402
from warden.core.database import get_db  # noqa: E402
from warden.core.logger import logger  # noqa: E402
from warden.engine import ModerationEngine  # noqa: E402


async def main() -> None:
    """
    Main entry point for the Warden service.

    Handles the complete service lifecycle:
    1. Validates environment configuration
    2. Opens the database and wires the moderation engine
    3. Serves the HTTP API until interrupted
    4. Shuts down the server, engine and database in order

    Raises:
        SystemExit: If configuration is invalid.
    """
    logger.tree("WARDEN STARTING", [
        ("Run ID", logger.run_id),
    ], emoji="🛡️")

    try:
        config = validate_and_log_config()
    except ConfigValidationError as e:
        logger.error("Invalid Configuration", [("Error", str(e))])
        sys.exit(1)

    logger.set_webhook(config.error_webhook_url)

    db = get_db()
    engine = ModerationEngine(config=config, db=db)
    api = APIService(engine, config)

    try:
        await api.start()
        await api.wait()
    finally:
        await api.stop()
        await engine.close()
        db.close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("🛑 Warden stopped by user (Ctrl+C)")
