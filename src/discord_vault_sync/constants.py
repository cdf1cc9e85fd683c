"""Centralized constants for Discord Vault Sync."""

# Discord REST API
DISCORD_API_BASE = "https://discord.com/api/v10"
DISCORD_USER_AGENT = "DiscordBot (https://github.com/discord-vault-sync, 0.1.0)"
MESSAGES_PER_REQUEST = 100
RATE_LIMIT_STATUS_CODE = 429

# Client errors that will not succeed on retry
NON_RETRYABLE_STATUS_CODES = frozenset({400, 401, 403, 404})

# Retry policy
MAX_RETRIES = 3
RETRY_BASE_DELAY = 1.0  # seconds

# Throttling between requests (seconds)
MESSAGE_PROCESSING_DELAY = 0.05
REQUEST_INTERVAL_DELAY = 1.0

# HTTP
REQUEST_TIMEOUT = 30.0
URL_FETCH_USER_AGENT = "Discord Vault Sync (clipping fetcher)"

# Vault defaults
DEFAULT_MESSAGE_DIRECTORY = "DiscordLogs"
DEFAULT_CLIPPING_DIRECTORY = "DiscordClippings"
DEFAULT_MESSAGE_PREFIX = "!"
DEFAULT_SETTINGS_FILE = ".discord-sync/data.json"
NOTE_EXTENSION = ".md"

# Summary notifications
SUMMARY_NO_MESSAGES = "⚠️ No new messages to save."
SUMMARY_SAVED_TEMPLATE = "✅ {count} new messages saved."
