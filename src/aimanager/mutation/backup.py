"""BackupManager: per-call snapshot of a target file, used only for rollback."""

from __future__ import annotations

import logging
import shutil
import time
from dataclasses import dataclass
from pathlib import Path

from aimanager.core.config import BACKUP_DIR_NAME

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BackupArtifact:
    backup_path: Path | None
    target_existed: bool


def backup_path_for(target: Path) -> Path:
    """``<parent>/.ai-manager-backups/<name>.<epoch-millis>.bak``"""
    name = target.name or "target"
    millis = time.time_ns() // 1_000_000
    return target.parent / BACKUP_DIR_NAME / f"{name}.{millis}.bak"


class BackupManager:
    def create_backup(self, target: Path) -> BackupArtifact:
        target = Path(target)
        if not target.exists():
            return BackupArtifact(backup_path=None, target_existed=False)
        if not target.is_file():
            raise OSError(f"target path '{target}' is not a file")

        backup_path = backup_path_for(target)
        backup_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(target, backup_path)
        logger.debug("backed up %s to %s", target, backup_path)
        return BackupArtifact(backup_path=backup_path, target_existed=True)

    def restore_backup(self, target: Path, artifact: BackupArtifact) -> None:
        """Put *target* back the way :meth:`create_backup` found it. Safe to repeat."""
        target = Path(target)
        if artifact.target_existed:
            if artifact.backup_path is None:
                raise OSError(f"missing backup path for existing target '{target}'")
            shutil.copyfile(artifact.backup_path, target)
            logger.debug("restored %s from %s", target, artifact.backup_path)
        else:
            try:
                target.unlink()
                logger.debug("removed newly created %s", target)
            except FileNotFoundError:
                pass
