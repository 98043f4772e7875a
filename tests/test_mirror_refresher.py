"""
Tests for MirrorRefresher — the full reset → fetch → extract → select →
filter → cleanup pipeline against a temporary repository root.

The upstream archive is served by httpx.MockTransport.
"""

from __future__ import annotations

from pathlib import Path
from unittest import mock

import httpx
import pytest

from conftest import (
    SCENARIO_FILES,
    make_archive,
    make_client,
    redirecting_handler,
    tree_snapshot,
)
from proto_mirror.errors import (
    ExtractionError,
    FetchError,
    FilesystemError,
    LayoutError,
    MirrorError,
)
from proto_mirror.mirror.config import MirrorSettings
from proto_mirror.mirror.refresher import MirrorRefresher, RefreshResult


def _refresher(root: Path, body: bytes, settings: MirrorSettings | None = None) -> MirrorRefresher:
    client = make_client(handler=redirecting_handler(body))
    return MirrorRefresher(root, settings, client=client)


# ---------------------------------------------------------------------------
# Successful refresh
# ---------------------------------------------------------------------------

class TestScenario:
    """google/a.proto, google/b.txt, google/sub/c.proto."""

    def test_output_contents(self, repo_root: Path, scenario_archive: bytes):
        result = _refresher(repo_root, scenario_archive).refresh()

        proto = repo_root / "proto"
        assert (proto / "a.proto").is_file()
        assert (proto / "sub" / "c.proto").is_file()
        assert not (proto / "b.txt").exists()
        assert result.kept == ["a.proto", "sub/c.proto"]
        assert result.removed == 1

    def test_work_dir_removed(self, repo_root: Path, scenario_archive: bytes):
        _refresher(repo_root, scenario_archive).refresh()
        assert not (repo_root / "_work").exists()

    def test_result_fields(self, repo_root: Path, scenario_archive: bytes):
        result = _refresher(repo_root, scenario_archive).refresh()

        assert isinstance(result, RefreshResult)
        assert result.output_dir == repo_root / "proto"
        assert result.archive_bytes == len(scenario_archive)
        assert result.duration_seconds >= 0

        data = result.to_dict()
        assert data["file_count"] == 2
        assert data["output_dir"] == str(repo_root / "proto")

    def test_file_contents_preserved(self, repo_root: Path, scenario_archive: bytes):
        _refresher(repo_root, scenario_archive).refresh()
        text = (repo_root / "proto" / "sub" / "c.proto").read_text()
        assert text == SCENARIO_FILES["google/sub/c.proto"]

    def test_other_top_level_dirs_ignored(self, repo_root: Path):
        body = make_archive({
            "google/api/http.proto": "a",
            "grafeas/v1/grafeas.proto": "b",
            "README.md": "c",
        })
        result = _refresher(repo_root, body).refresh()
        assert result.kept == ["api/http.proto"]

    def test_keep_subdir_name(self, repo_root: Path, scenario_archive: bytes):
        settings = MirrorSettings(keep_subdir_name=True)
        result = _refresher(repo_root, scenario_archive, settings).refresh()

        assert (repo_root / "proto" / "google" / "a.proto").is_file()
        assert result.kept == ["google/a.proto", "google/sub/c.proto"]

    def test_custom_settings(self, repo_root: Path):
        body = make_archive({"schemas/a.fbs": "", "schemas/b.proto": ""}, top="flat-main")
        settings = MirrorSettings(
            subdir="schemas",
            extension=".fbs",
            output_dir="third_party/fbs",
            work_dir=".cache/work",
        )
        result = _refresher(repo_root, body, settings).refresh()

        assert result.kept == ["a.fbs"]
        assert (repo_root / "third_party" / "fbs" / "a.fbs").is_file()
        assert not (repo_root / ".cache" / "work").exists()

    def test_does_not_change_cwd(self, repo_root: Path, scenario_archive: bytes):
        import os

        before = os.getcwd()
        _refresher(repo_root, scenario_archive).refresh()
        assert os.getcwd() == before


class TestInvariants:

    def test_idempotent(self, repo_root: Path, scenario_archive: bytes):
        _refresher(repo_root, scenario_archive).refresh()
        first = tree_snapshot(repo_root / "proto")

        _refresher(repo_root, scenario_archive).refresh()
        second = tree_snapshot(repo_root / "proto")

        assert first == second

    def test_full_replacement(self, repo_root: Path, scenario_archive: bytes):
        stale = repo_root / "proto" / "foo" / "old.proto"
        stale.parent.mkdir(parents=True)
        stale.write_text("stale")

        _refresher(repo_root, scenario_archive).refresh()

        assert not stale.exists()
        assert not (repo_root / "proto" / "foo").exists()

    def test_only_extension_survives(self, repo_root: Path):
        body = make_archive({
            "google/a.proto": "",
            "google/BUILD.bazel": "",
            "google/api/api.yaml": "",
            "google/api/http.proto": "",
            "google/api/README.md": "",
        })
        _refresher(repo_root, body).refresh()

        remaining = [p for p in (repo_root / "proto").rglob("*") if p.is_file()]
        assert remaining
        assert all(p.name.endswith(".proto") for p in remaining)

    def test_stale_work_dir_replaced(self, repo_root: Path, scenario_archive: bytes):
        leftover = repo_root / "_work" / "googleapis-master" / "google" / "zombie.proto"
        leftover.parent.mkdir(parents=True)
        leftover.write_text("")

        result = _refresher(repo_root, scenario_archive).refresh()

        assert "zombie.proto" not in result.kept
        assert not (repo_root / "_work").exists()


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------

class TestFailures:
    """Every failure stops the pipeline; nothing is rolled back."""

    def test_fetch_failure_leaves_empty_output(self, repo_root: Path):
        old = repo_root / "proto" / "old.proto"
        old.parent.mkdir()
        old.write_text("")

        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        refresher = MirrorRefresher(repo_root, client=make_client(handler=handler))
        with pytest.raises(FetchError):
            refresher.refresh()

        assert (repo_root / "proto").is_dir()
        assert list((repo_root / "proto").iterdir()) == []
        # Scratch space is not cleaned up on error
        assert (repo_root / "_work").is_dir()

    def test_http_error_status(self, repo_root: Path):
        client = make_client(handler=lambda request: httpx.Response(404))
        with pytest.raises(FetchError):
            MirrorRefresher(repo_root, client=client).refresh()
        assert not (repo_root / "_work" / "googleapis-master").exists()

    def test_invalid_archive(self, repo_root: Path):
        with pytest.raises(ExtractionError):
            _refresher(repo_root, b"this is not a zip").refresh()
        assert (repo_root / "_work" / "master.zip").exists()

    def test_missing_subdir(self, repo_root: Path):
        body = make_archive({"other/a.proto": ""})
        with pytest.raises(LayoutError):
            _refresher(repo_root, body).refresh()
        assert list((repo_root / "proto").iterdir()) == []

    def test_filesystem_failure(self, repo_root: Path, scenario_archive: bytes):
        with mock.patch(
            "proto_mirror.mirror.refresher.filter_tree",
            side_effect=FilesystemError("Cannot filter files (No space left on device)"),
        ):
            with pytest.raises(FilesystemError):
                _refresher(repo_root, scenario_archive).refresh()
        assert (repo_root / "_work").exists()

    def test_all_failures_share_base(self):
        for cls in (FetchError, ExtractionError, LayoutError, FilesystemError):
            assert issubclass(cls, MirrorError)
        kinds = {cls.kind for cls in (FetchError, ExtractionError, LayoutError, FilesystemError)}
        assert kinds == {"network", "format", "layout", "filesystem"}


def test_module_level_refresh(repo_root: Path, scenario_archive: bytes):
    """refresh(root) runs with default settings and its own HTTP client."""
    from proto_mirror.mirror import refresh

    transport = httpx.MockTransport(redirecting_handler(scenario_archive))
    real_client = httpx.Client

    with mock.patch(
        "proto_mirror.mirror.fetch.httpx.Client",
        side_effect=lambda **kwargs: real_client(transport=transport, **kwargs),
    ):
        result = refresh(repo_root)

    assert result.kept == ["a.proto", "sub/c.proto"]
    assert not (repo_root / "_work").exists()
