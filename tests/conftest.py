"""
Shared fixtures for mirror tests.

Archives are built in memory with zipfile and served through
httpx.MockTransport, so no test touches the network.
"""

from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import Callable, Dict, Optional

import httpx
import pytest

from proto_mirror.mirror.config import MirrorSettings

ARCHIVE_URL = "https://github.com/googleapis/googleapis/archive/master.zip"
CODELOAD_URL = "https://codeload.github.com/googleapis/googleapis/zip/refs/heads/master"

SCENARIO_FILES = {
    "google/a.proto": "syntax = \"proto3\";\npackage a;\n",
    "google/b.txt": "not a definition\n",
    "google/sub/c.proto": "syntax = \"proto3\";\npackage sub;\n",
}


def make_archive(files: Dict[str, str], top: str = "googleapis-master") -> bytes:
    """Build a GitHub-style snapshot ZIP with every path under ``top/``."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr(f"{top}/", "")
        for name, content in files.items():
            zf.writestr(f"{top}/{name}", content)
    return buf.getvalue()


def make_client(
    body: Optional[bytes] = None,
    handler: Optional[Callable[[httpx.Request], httpx.Response]] = None,
) -> httpx.Client:
    """httpx.Client that answers every request with ``body`` (or ``handler``)."""
    if handler is None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=body or b"")
    return httpx.Client(transport=httpx.MockTransport(handler))


def redirecting_handler(body: bytes) -> Callable[[httpx.Request], httpx.Response]:
    """Answer the archive URL with a 302 to codeload, like GitHub does."""
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == ARCHIVE_URL:
            return httpx.Response(302, headers={"Location": CODELOAD_URL})
        if str(request.url) == CODELOAD_URL:
            return httpx.Response(200, content=body)
        return httpx.Response(404)
    return handler


def tree_snapshot(root: Path) -> Dict[str, bytes]:
    """Relative path -> contents for every file under ``root``."""
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture
def repo_root(tmp_path: Path) -> Path:
    """An empty repository root."""
    root = tmp_path / "repo"
    root.mkdir()
    return root


@pytest.fixture
def settings() -> MirrorSettings:
    """Default settings (googleapis master, google/, .proto)."""
    return MirrorSettings()


@pytest.fixture
def scenario_archive() -> bytes:
    return make_archive(SCENARIO_FILES)


@pytest.fixture(autouse=True)
def _clean_mirror_env(monkeypatch):
    """Keep PROTO_MIRROR_* from the developer's shell out of the tests."""
    for name in (
        "PROTO_MIRROR_URL",
        "PROTO_MIRROR_SUBDIR",
        "PROTO_MIRROR_EXTENSION",
        "PROTO_MIRROR_OUTPUT_DIR",
        "PROTO_MIRROR_WORK_DIR",
        "PROTO_MIRROR_TIMEOUT",
        "PROTO_MIRROR_KEEP_SUBDIR",
    ):
        monkeypatch.delenv(name, raising=False)
