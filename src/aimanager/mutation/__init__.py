"""Mutation engine: backups, atomic writes, rollback."""

from .atomic import AtomicWriter, temp_path_for
from .backup import BackupArtifact, BackupManager, backup_path_for
from .safe import (
    MutationFailure,
    MutationHooks,
    MutationOutcome,
    MutationResult,
    MutationStage,
    MutationState,
    SafeFileMutator,
    replace_or_raise,
)

__all__ = [
    "AtomicWriter",
    "BackupArtifact",
    "BackupManager",
    "MutationFailure",
    "MutationHooks",
    "MutationOutcome",
    "MutationResult",
    "MutationStage",
    "MutationState",
    "SafeFileMutator",
    "backup_path_for",
    "replace_or_raise",
    "temp_path_for",
]
