"""AtomicWriter: sibling temp file + single rename onto the target."""

from __future__ import annotations

import logging
import os
import shutil
import time
from pathlib import Path

logger = logging.getLogger(__name__)


def temp_path_for(target: Path) -> Path:
    """``<parent>/.<name>.<pid>.<epoch-nanos>.tmp``"""
    name = target.name or "target"
    return target.parent / f".{name}.{os.getpid()}.{time.time_ns()}.tmp"


class AtomicWriter:
    def replace_file(self, target: Path, data: bytes) -> None:
        """Replace *target* with *data*; the target holds old or new bytes, never a mix.

        On failure the temp file is removed and the target is left untouched.
        """
        target = Path(target)
        target.parent.mkdir(parents=True, exist_ok=True)
        temp_path = temp_path_for(target)

        fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            if target.is_file():
                shutil.copymode(target, temp_path)
            os.replace(temp_path, target)
        except BaseException:
            try:
                temp_path.unlink()
            except FileNotFoundError:
                pass
            raise

        logger.debug("replaced %s (%d bytes) via %s", target, len(data), temp_path.name)
