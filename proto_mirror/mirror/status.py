"""
Mirror Status — Inspect the local mirror without touching the network.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from .config import MirrorSettings


@dataclass
class MirrorStatus:
    """Snapshot of the output directory on disk."""

    output_dir: str
    exists: bool = False
    file_count: int = 0
    packages: List[str] = field(default_factory=list)
    stray_files: List[str] = field(default_factory=list)

    # A leftover work dir means the last refresh did not finish
    work_dir_present: bool = False

    @property
    def healthy(self) -> bool:
        return (
            self.exists
            and self.file_count > 0
            and not self.stray_files
            and not self.work_dir_present
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["healthy"] = self.healthy
        return data


def inspect_mirror(root: Path, settings: MirrorSettings) -> MirrorStatus:
    """Count mirrored files and flag anything a refresh would have removed."""
    output_dir = settings.output_path(root)
    status = MirrorStatus(
        output_dir=str(output_dir),
        work_dir_present=settings.work_path(root).exists(),
    )

    if not output_dir.is_dir():
        return status

    status.exists = True
    status.packages = sorted(p.name for p in output_dir.iterdir() if p.is_dir())

    for dirpath, _dirnames, filenames in os.walk(output_dir):
        for name in filenames:
            if name.endswith(settings.extension):
                status.file_count += 1
            else:
                rel = (Path(dirpath) / name).relative_to(output_dir).as_posix()
                status.stray_files.append(rel)

    status.stray_files.sort()
    return status
