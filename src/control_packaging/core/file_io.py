"""Safe file I/O utilities.

Provides an atomic whole-file replace for snapshot files: write to a
temporary sibling, ``fsync``, then ``os.replace`` over the target so a
reader only ever sees the old or the new content.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def atomic_write_text(path: Path, text: str, encoding: str = "utf-8") -> None:
    """Replace *path* with *text* atomically.

    * The temporary file lives in the target directory so ``os.replace``
      never crosses a filesystem boundary.
    * ``os.fsync`` runs on the file before the rename and on the
      directory after it, so the new snapshot survives a crash once this
      returns.
    * Parent directories are created when missing.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=path.parent,
    )
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    _fsync_dir(path.parent)


def _fsync_dir(directory: Path) -> None:
    try:
        dir_fd = os.open(directory, os.O_RDONLY)
    except OSError:
        logger.debug("Cannot open %s for fsync", directory)
        return
    try:
        os.fsync(dir_fd)
    except OSError:
        logger.debug("Directory fsync unsupported for %s", directory)
    finally:
        os.close(dir_fd)
