"""
Mirror Refresher — Replace proto/ with a fresh filtered copy of upstream.

This is the main entry point for refreshing the mirror. It runs the
whole pipeline synchronously against an explicit repository root:

    1. reset proto/           (delete, recreate empty)
    2. reset _work/           (delete, recreate empty)
    3. download the archive   -> _work/master.zip
    4. extract it             -> _work/<repo>-<branch>/
    5. move <subdir>/         -> proto/
    6. drop non-matching files under proto/
    7. delete _work/

## Usage:

    from proto_mirror.mirror.refresher import MirrorRefresher

    result = MirrorRefresher(repo_root).refresh()
    print(len(result.kept), "definitions mirrored")

Any failure raises a MirrorError subclass and stops the pipeline where it
is. There is no rollback: the old proto/ is already gone by the time the
download starts, and _work/ is left behind for inspection. Two refreshes
must not run against the same root at the same time.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import httpx

from ..errors import MirrorError
from .config import MirrorSettings
from .extract import extract_archive, find_archive_root
from .fetch import download_archive
from .tree import filter_tree, remove_dir, reset_dir, select_subtree

logger = logging.getLogger(__name__)


@contextmanager
def _step(name: str) -> Iterator[None]:
    """Log which step a MirrorError came from, then let it propagate."""
    try:
        yield
    except MirrorError as e:
        logger.error(f"[proto-mirror] Step '{name}' failed ({e.kind}): {e}", extra={"step": name})
        raise


@dataclass
class RefreshResult:
    """Outcome of a successful refresh."""

    output_dir: Path
    kept: List[str] = field(default_factory=list)
    removed: int = 0
    archive_bytes: int = 0
    duration_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["output_dir"] = str(self.output_dir)
        data["file_count"] = len(self.kept)
        return data


class MirrorRefresher:
    """
    Runs the refresh pipeline for one repository root.

    ``client`` lets callers supply a preconfigured httpx.Client (tests pass
    one backed by httpx.MockTransport); otherwise a client is created for
    the single download and closed afterwards.
    """

    def __init__(
        self,
        root: Path,
        settings: Optional[MirrorSettings] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.root = Path(root)
        self.settings = settings or MirrorSettings()
        self.client = client

    @property
    def output_dir(self) -> Path:
        return self.settings.output_path(self.root)

    @property
    def work_dir(self) -> Path:
        return self.settings.work_path(self.root)

    def refresh(self) -> RefreshResult:
        """Run every step in order; the first failure propagates."""
        settings = self.settings
        started = time.monotonic()
        logger.info(
            f"[proto-mirror] Refreshing {self.output_dir} from {settings.archive_url}",
            extra={"step": "start"},
        )

        with _step("reset"):
            reset_dir(self.output_dir)
            reset_dir(self.work_dir)

        archive_path = settings.archive_path(self.root)
        with _step("fetch"):
            archive_bytes = download_archive(
                settings.archive_url,
                archive_path,
                timeout=settings.timeout,
                client=self.client,
            )

        with _step("extract"):
            extract_archive(archive_path, self.work_dir)
            archive_root = find_archive_root(self.work_dir, archive_path)

        with _step("select"):
            select_subtree(
                archive_root,
                settings.subdir,
                self.output_dir,
                keep_subdir_name=settings.keep_subdir_name,
            )

        with _step("filter"):
            kept, removed = filter_tree(self.output_dir, settings.extension)

        with _step("cleanup"):
            remove_dir(self.work_dir)

        result = RefreshResult(
            output_dir=self.output_dir,
            kept=kept,
            removed=removed,
            archive_bytes=archive_bytes,
            duration_seconds=round(time.monotonic() - started, 3),
        )
        logger.info(
            f"[proto-mirror] Refresh complete: {len(kept)} file(s) in "
            f"{result.duration_seconds}s",
            extra={"step": "done"},
        )
        return result


def refresh(root: Path, settings: Optional[MirrorSettings] = None) -> RefreshResult:
    """Refresh the mirror under ``root`` with ``settings`` (defaults if omitted)."""
    return MirrorRefresher(root, settings).refresh()
