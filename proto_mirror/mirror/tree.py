"""
Tree — Filesystem steps of a refresh.

All functions take explicit paths; nothing here changes the process
working directory. OSErrors are re-raised as FilesystemError so callers
see a single failure taxonomy.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import List, Tuple

from ..errors import FilesystemError, LayoutError

logger = logging.getLogger(__name__)


def reset_dir(path: Path) -> None:
    """Recursively delete ``path`` if present, then create it empty."""
    try:
        if path.is_symlink() or path.is_file():
            path.unlink()
        elif path.exists():
            shutil.rmtree(path)
        path.mkdir(parents=True)
    except OSError as e:
        raise FilesystemError(f"Cannot reset directory ({e.strerror or e})", path=path) from e
    logger.debug(f"[proto-mirror] Reset {path}", extra={"step": "reset"})


def remove_dir(path: Path) -> None:
    """Recursively delete ``path``; a missing path is not an error."""
    try:
        if path.exists():
            shutil.rmtree(path)
    except OSError as e:
        raise FilesystemError(f"Cannot remove directory ({e.strerror or e})", path=path) from e
    logger.debug(f"[proto-mirror] Removed {path}", extra={"step": "cleanup"})


def select_subtree(
    archive_root: Path,
    subdir: str,
    output_dir: Path,
    *,
    keep_subdir_name: bool = False,
) -> Path:
    """
    Move ``archive_root/subdir`` into place under ``output_dir``.

    By default the subtree replaces ``output_dir`` so its contents sit
    directly under it. With ``keep_subdir_name`` it is moved inside
    ``output_dir`` as ``output_dir/subdir``. Returns the final location.
    """
    source = archive_root / subdir
    if not source.is_dir():
        raise LayoutError(
            f"Archive has no '{subdir}' directory",
            path=archive_root,
            details={"subdir": subdir},
        )

    target = output_dir / subdir if keep_subdir_name else output_dir
    try:
        if not keep_subdir_name:
            # Only the empty directory from the reset step may be replaced
            output_dir.rmdir()
        shutil.move(str(source), str(target))
    except OSError as e:
        raise FilesystemError(f"Cannot move '{subdir}' into place ({e.strerror or e})", path=target) from e

    logger.info(f"[proto-mirror] Moved {source.relative_to(archive_root.parent)} -> {target}", extra={"step": "select"})
    return target


def _reraise(err: OSError) -> None:
    raise err


def filter_tree(root: Path, extension: str) -> Tuple[List[str], int]:
    """
    Delete every file under ``root`` whose name does not end in ``extension``.

    Directories are left in place, even when emptied. Returns the sorted
    relative POSIX paths of the files kept and the number removed.
    """
    kept: List[str] = []
    removed = 0

    try:
        for dirpath, _dirnames, filenames in os.walk(root, onerror=_reraise):
            for name in filenames:
                path = Path(dirpath) / name
                if name.endswith(extension):
                    kept.append(path.relative_to(root).as_posix())
                else:
                    path.unlink()
                    removed += 1
    except OSError as e:
        raise FilesystemError(f"Cannot filter files ({e.strerror or e})", path=root) from e

    kept.sort()
    logger.info(f"[proto-mirror] Kept {len(kept)} '*{extension}' file(s), removed {removed}", extra={"step": "filter"})
    return kept, removed
