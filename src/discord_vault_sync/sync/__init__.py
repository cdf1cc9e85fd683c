"""Sync engine: run lifecycle and the poll loop."""

from discord_vault_sync.sync.orchestrator import (
    ChannelApi,
    FailurePolicy,
    MessageOutcome,
    SyncOrchestrator,
    SyncResult,
    SyncStatus,
)
from discord_vault_sync.sync.state import RunState, RunStateMachine

__all__ = [
    "ChannelApi",
    "FailurePolicy",
    "MessageOutcome",
    "RunState",
    "RunStateMachine",
    "SyncOrchestrator",
    "SyncResult",
    "SyncStatus",
]
