"""
Mirror Configuration — Parse PROTO_MIRROR_* environment variables.

Every setting has a default equal to the value the refresh has always
used, so an empty environment mirrors googleapis' google/ tree into
proto/ keeping only *.proto files.

Optional overrides:
    PROTO_MIRROR_URL=https://github.com/<owner>/<repo>/archive/<branch>.zip
    PROTO_MIRROR_SUBDIR=google
    PROTO_MIRROR_EXTENSION=.proto
    PROTO_MIRROR_OUTPUT_DIR=proto
    PROTO_MIRROR_WORK_DIR=_work
    PROTO_MIRROR_TIMEOUT=60
    PROTO_MIRROR_KEEP_SUBDIR=false
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path, PurePosixPath

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE_URL = "https://github.com/googleapis/googleapis/archive/master.zip"
DEFAULT_SUBDIR = "google"
DEFAULT_EXTENSION = ".proto"
DEFAULT_OUTPUT_DIR = "proto"
DEFAULT_WORK_DIR = "_work"
DEFAULT_ARCHIVE_NAME = "master.zip"
DEFAULT_TIMEOUT = 60.0

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off", "")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        value = float(raw.strip())
    except ValueError:
        logger.warning(f"{name}={raw!r} is not a number, using {default}")
        return default
    if value <= 0:
        logger.warning(f"{name}={raw!r} must be positive, using {default}")
        return default
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    logger.warning(f"{name}={raw!r} is not a boolean, using {default}")
    return default


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


@dataclass(frozen=True)
class MirrorSettings:
    """What to download, which subtree to keep and where to put it."""

    archive_url: str = DEFAULT_ARCHIVE_URL
    subdir: str = DEFAULT_SUBDIR
    extension: str = DEFAULT_EXTENSION
    output_dir: str = DEFAULT_OUTPUT_DIR
    work_dir: str = DEFAULT_WORK_DIR
    archive_name: str = DEFAULT_ARCHIVE_NAME
    timeout: float = DEFAULT_TIMEOUT

    # Place the subtree at proto/google/ instead of unpacking it into proto/
    keep_subdir_name: bool = False

    @classmethod
    def from_env(cls) -> "MirrorSettings":
        """Build settings from the environment, falling back to defaults."""
        settings = cls(
            archive_url=_env_str("PROTO_MIRROR_URL", DEFAULT_ARCHIVE_URL),
            subdir=_env_str("PROTO_MIRROR_SUBDIR", DEFAULT_SUBDIR),
            extension=_env_str("PROTO_MIRROR_EXTENSION", DEFAULT_EXTENSION),
            output_dir=_env_str("PROTO_MIRROR_OUTPUT_DIR", DEFAULT_OUTPUT_DIR),
            work_dir=_env_str("PROTO_MIRROR_WORK_DIR", DEFAULT_WORK_DIR),
            timeout=_env_float("PROTO_MIRROR_TIMEOUT", DEFAULT_TIMEOUT),
            keep_subdir_name=_env_bool("PROTO_MIRROR_KEEP_SUBDIR", False),
        )
        settings.validate()
        return settings

    def with_overrides(self, **changes) -> "MirrorSettings":
        """Return a copy with the non-None values in ``changes`` applied."""
        updated = replace(self, **{k: v for k, v in changes.items() if v is not None})
        updated.validate()
        return updated

    def validate(self) -> None:
        """Raise ConfigurationError if the settings cannot be used safely."""
        if not self.archive_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"Invalid archive URL scheme: {self.archive_url}")
        if not self.extension:
            raise ConfigurationError("File extension filter must not be empty")
        if not self.subdir or "/" in self.subdir.strip("/") or self.subdir in (".", ".."):
            raise ConfigurationError(f"Subdirectory must be a single path component: {self.subdir!r}")

        for label, value in (("output_dir", self.output_dir), ("work_dir", self.work_dir)):
            path = PurePosixPath(value)
            if path.is_absolute() or ".." in path.parts or not path.parts:
                raise ConfigurationError(f"{label} must be a relative path inside the root: {value!r}")

        output_parts = PurePosixPath(self.output_dir).parts
        work_parts = PurePosixPath(self.work_dir).parts
        if output_parts == work_parts:
            raise ConfigurationError("output_dir and work_dir must differ")

        # Resetting either directory must never touch the other
        shorter = min(len(output_parts), len(work_parts))
        if output_parts[:shorter] == work_parts[:shorter]:
            raise ConfigurationError(
                f"output_dir and work_dir must not be nested: {self.output_dir!r}, {self.work_dir!r}"
            )

    def output_path(self, root: Path) -> Path:
        return root / self.output_dir

    def work_path(self, root: Path) -> Path:
        return root / self.work_dir

    def archive_path(self, root: Path) -> Path:
        return self.work_path(root) / self.archive_name
