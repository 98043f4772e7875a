"""
Extract — Unpack the snapshot archive into the work directory.

GitHub snapshot archives hold a single top-level directory named
``<repo>-<branch>`` (e.g. ``googleapis-master``); ``find_archive_root``
locates it after extraction.
"""

from __future__ import annotations

import logging
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import List

from ..errors import ExtractionError, FilesystemError, LayoutError

logger = logging.getLogger(__name__)


def _unsafe_members(names: List[str]) -> List[str]:
    blocked = []
    for name in names:
        path = PurePosixPath(name.replace("\\", "/"))
        if path.is_absolute() or ".." in path.parts:
            blocked.append(name)
    return blocked


def extract_archive(archive_path: Path, dest: Path) -> int:
    """
    Extract every member of ``archive_path`` into ``dest``, quietly.

    Returns the number of members extracted. Nothing is written if any
    member would land outside ``dest``.
    """
    try:
        with zipfile.ZipFile(archive_path) as zf:
            names = zf.namelist()

            # Security: prevent path traversal
            blocked = _unsafe_members(names)
            if blocked:
                raise ExtractionError(
                    f"Archive contains {len(blocked)} unsafe member(s)",
                    path=archive_path,
                    details={"blocked": blocked[:10]},
                )

            zf.extractall(dest)
    except zipfile.BadZipFile as e:
        raise ExtractionError(f"Not a valid ZIP archive ({e})", path=archive_path) from e
    except (zlib.error, NotImplementedError, RuntimeError, EOFError) as e:
        # Corrupt member data, unsupported compression or encrypted entries
        raise ExtractionError(f"Cannot unpack archive ({e})", path=archive_path) from e
    except OSError as e:
        raise FilesystemError(f"Extraction failed ({e.strerror or e})", path=dest) from e

    logger.info(f"[proto-mirror] Extracted {len(names)} entries into {dest}", extra={"step": "extract"})
    return len(names)


def find_archive_root(work_dir: Path, archive_path: Path) -> Path:
    """
    Return the single top-level directory produced by extraction.

    The downloaded archive itself lives in ``work_dir`` and is ignored.
    """
    candidates = sorted(
        p for p in work_dir.iterdir()
        if p.is_dir() and p != archive_path
    )
    if len(candidates) != 1:
        raise LayoutError(
            f"Expected one top-level directory in the archive, found {len(candidates)}",
            path=work_dir,
            details={"entries": [p.name for p in candidates]},
        )
    return candidates[0]
