"""Prune expired global chat messages once.

Usage:
    python -m scripts.prune_messages --retention-minutes 10
"""

import argparse
import asyncio
from datetime import timedelta

from watchparty.core.config import settings
from watchparty.core.database import engine
from watchparty.services.chat_prune_task import prune_expired_messages


async def prune(retention_minutes: int) -> None:
    """Delete messages older than the given retention window."""
    deleted = await prune_expired_messages(timedelta(minutes=retention_minutes))
    print(f"Deleted {deleted} message(s) older than {retention_minutes} minute(s).")
    await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Prune expired chat messages")
    parser.add_argument(
        "--retention-minutes",
        type=int,
        default=settings.chat.retention_minutes,
        help="Keep messages newer than this many minutes",
    )
    args = parser.parse_args()

    asyncio.run(prune(args.retention_minutes))


if __name__ == "__main__":
    main()
