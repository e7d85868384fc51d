"""SafeFileMutator: Backup -> Write -> (post-write check) with rollback.

States::

    START --backup--> BACKED_UP --atomic write--> WRITTEN --check--> DONE

A failure while taking the backup is terminal and needs no rollback, since
nothing has been touched yet. Any later failure restores the backup (or
deletes a file that did not exist before) and reports whether that restore
itself worked.

There is no locking: two callers mutating the same path at the same time can
interleave their backup and write steps.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from aimanager.core.errors import InternalError

from .atomic import AtomicWriter
from .backup import BackupArtifact, BackupManager

logger = logging.getLogger(__name__)


class MutationStage(str, Enum):
    BACKUP = "Backup"
    WRITE = "Write"
    POST_WRITE_VALIDATION = "PostWriteValidation"


class MutationState(str, Enum):
    START = "start"
    BACKED_UP = "backed_up"
    WRITTEN = "written"
    DONE = "done"


class MutationFailure(Exception):
    def __init__(self, stage: MutationStage, message: str, rollback_succeeded: bool) -> None:
        self.stage = stage
        self.message = message
        self.rollback_succeeded = rollback_succeeded
        super().__init__(str(self))

    def __str__(self) -> str:
        rollback = "true" if self.rollback_succeeded else "false"
        return f"[stage={self.stage.value}] {self.message} (rollback_succeeded={rollback})"


@dataclass(frozen=True)
class MutationOutcome:
    backup_path: Path | None = None


@dataclass(frozen=True)
class MutationHooks:
    """Failure injection points, for exercising rollback in tests."""

    fail_after_backup: bool = False
    fail_after_write: bool = False
    # called with the target path after the rename; raising triggers rollback
    post_write_check: Callable[[Path], None] | None = None


class SafeFileMutator:
    def __init__(
        self,
        backup_manager: BackupManager | None = None,
        atomic_writer: AtomicWriter | None = None,
    ) -> None:
        self.backup_manager = backup_manager or BackupManager()
        self.atomic_writer = atomic_writer or AtomicWriter()

    def replace_file(
        self,
        target: Path,
        data: bytes,
        hooks: MutationHooks | None = None,
    ) -> MutationOutcome:
        target = Path(target)
        hooks = hooks or MutationHooks()
        state = MutationState.START

        try:
            backup = self.backup_manager.create_backup(target)
        except OSError as e:
            raise MutationFailure(MutationStage.BACKUP, str(e), rollback_succeeded=False) from e
        state = self._advance(target, state, MutationState.BACKED_UP)

        if hooks.fail_after_backup:
            raise self._rollback(
                target, backup, MutationStage.BACKUP, "Injected failure after backup."
            )

        try:
            self.atomic_writer.replace_file(target, data)
        except OSError as e:
            raise self._rollback(target, backup, MutationStage.WRITE, str(e)) from e
        state = self._advance(target, state, MutationState.WRITTEN)

        if hooks.fail_after_write:
            raise self._rollback(
                target,
                backup,
                MutationStage.POST_WRITE_VALIDATION,
                "Injected failure after atomic write.",
            )
        if hooks.post_write_check is not None:
            try:
                hooks.post_write_check(target)
            except Exception as e:
                raise self._rollback(
                    target, backup, MutationStage.POST_WRITE_VALIDATION, str(e)
                ) from e

        self._advance(target, state, MutationState.DONE)
        return MutationOutcome(backup_path=backup.backup_path)

    def _advance(self, target: Path, current: MutationState, nxt: MutationState) -> MutationState:
        logger.debug("%s: %s -> %s", target, current.value, nxt.value)
        return nxt

    def _rollback(
        self,
        target: Path,
        backup: BackupArtifact,
        stage: MutationStage,
        message: str,
    ) -> MutationFailure:
        try:
            self.backup_manager.restore_backup(target, backup)
        except OSError as e:
            logger.error("rollback of %s failed after %s failure: %s", target, stage.value, e)
            return MutationFailure(stage, f"{message} Rollback failed: {e}", rollback_succeeded=False)
        logger.warning("rolled back %s after %s failure: %s", target, stage.value, message)
        return MutationFailure(stage, message, rollback_succeeded=True)


@dataclass(frozen=True)
class MutationResult:
    """What a resource service reports back after a successful mutation."""

    source_path: Path
    message: str
    backup_path: Path | None = None


def replace_or_raise(
    mutator: SafeFileMutator,
    target: Path,
    data: bytes,
    hooks: MutationHooks | None = None,
) -> MutationOutcome:
    """Run a mutation, turning a :class:`MutationFailure` into an ``InternalError``."""
    try:
        return mutator.replace_file(target, data, hooks)
    except MutationFailure as failure:
        raise InternalError(f"{failure} Target: '{target}'.", failure=failure) from failure
