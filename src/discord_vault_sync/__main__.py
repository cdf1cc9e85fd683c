"""Command-line entry point: run one sync of the configured channel."""

import asyncio
import sys

from discord_vault_sync.app import DiscordSyncApp
from discord_vault_sync.config import get_settings
from discord_vault_sync.logging import get_logger, setup_logging
from discord_vault_sync.sync import SyncResult, SyncStatus


async def main() -> SyncResult:
    """Sync the configured channel into the vault once."""
    setup_logging()
    log = get_logger("discord_vault_sync.main")

    settings = get_settings()
    log.info(
        "starting_discord_vault_sync",
        environment=settings.environment,
        vault_path=str(settings.vault_path),
    )

    app = DiscordSyncApp(settings)
    result = await app.sync_now()
    log.info("discord_vault_sync_finished", status=str(result.status))
    return result


def run() -> None:
    """Run the application."""
    result = asyncio.run(main())
    failed = result.status in (SyncStatus.FAILED, SyncStatus.NOT_CONFIGURED)
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    run()
