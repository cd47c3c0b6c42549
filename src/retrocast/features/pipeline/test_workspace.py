"""Unit tests for scratch workspaces."""

import pytest

from retrocast.features.pipeline.workspace import scratch_workspace


def test_creates_per_job_directory_and_removes_it(tmp_path):
    with scratch_workspace(tmp_path, "u1", "job-1") as workdir:
        assert workdir.is_dir()
        assert workdir.parent == tmp_path / "u1"
        assert workdir.name.startswith("job-1-")
        (workdir / "partial.mp4").write_bytes(b"data")

    assert not workdir.exists()


def test_removes_directory_when_body_raises(tmp_path):
    with pytest.raises(RuntimeError):
        with scratch_workspace(tmp_path, "u1", "job-1") as workdir:
            (workdir / "partial.mp4").write_bytes(b"data")
            raise RuntimeError("boom")

    assert not workdir.exists()


def test_redelivery_gets_a_fresh_directory(tmp_path):
    with scratch_workspace(tmp_path, "u1", "job-1") as first:
        with scratch_workspace(tmp_path, "u1", "job-1") as second:
            assert first != second
