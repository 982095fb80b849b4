import os
import stat
import tarfile

import pytest

from ocmcontroller.archive import build_tar, generate_snapshot_name
from ocmcontroller.untar import untar


@pytest.fixture
def source(tmp_path):
    root = tmp_path / "src"
    (root / "sub").mkdir(parents=True)
    (root / "a.txt").write_bytes(b"alpha")
    (root / "sub" / "b.txt").write_bytes(b"beta")
    return root


def _members(path):
    with tarfile.open(path) as archive:
        return archive.getmembers()


def test_absolute_source_uses_relative_names(tmp_path, source):
    artifact = tmp_path / "out.tar"
    build_tar(artifact, source)
    names = [m.name for m in _members(artifact)]
    assert names == [".", "a.txt", "sub", os.path.join("sub", "b.txt")]


def test_relative_source_keeps_given_paths(tmp_path, source, monkeypatch):
    monkeypatch.chdir(tmp_path)
    relative_source = os.path.relpath(source, tmp_path)
    artifact = tmp_path / "out.tar"
    build_tar(artifact, relative_source)
    names = [m.name for m in _members(artifact)]
    assert names == [
        "src",
        os.path.join("src", "a.txt"),
        os.path.join("src", "sub"),
        os.path.join("src", "sub", "b.txt"),
    ]


def test_environment_data_is_removed(tmp_path, source):
    artifact = tmp_path / "out.tar"
    build_tar(artifact, source)
    members = _members(artifact)
    assert all(m.uid == 0 and m.gid == 0 for m in members)
    assert all(m.uname == "" and m.gname == "" for m in members)
    assert all(m.mtime == 0 for m in members)


def test_entry_types(tmp_path, source):
    artifact = tmp_path / "out.tar"
    build_tar(artifact, source)
    kinds = {m.name: m.isdir() for m in _members(artifact)}
    assert kinds["sub"] is True
    assert kinds["a.txt"] is False


def test_symlinks_are_skipped(tmp_path, source):
    os.symlink(source / "a.txt", source / "link.txt")
    artifact = tmp_path / "out.tar"
    build_tar(artifact, source)
    assert "link.txt" not in [m.name for m in _members(artifact)]


def test_artifact_permissions(tmp_path, source):
    artifact = tmp_path / "out.tar"
    build_tar(artifact, source)
    assert stat.S_IMODE(artifact.stat().st_mode) == 0o640


def test_round_trip_through_untar(tmp_path, source):
    artifact = tmp_path / "out.tar"
    build_tar(artifact, source)
    target = tmp_path / "extracted"
    with open(artifact, "rb") as stream:
        untar(stream, target)
    assert (target / "a.txt").read_bytes() == b"alpha"
    assert (target / "sub" / "b.txt").read_bytes() == b"beta"


def test_missing_source_dir(tmp_path):
    missing = tmp_path / "missing"
    with pytest.raises(ValueError, match="invalid source dir path"):
        build_tar(tmp_path / "out.tar", missing)
    assert not (tmp_path / "out.tar").exists()


def test_snapshot_name_format():
    name = generate_snapshot_name("component")
    prefix, suffix = name.rsplit("-", 1)
    assert prefix == "component"
    assert len(suffix) == 7
    assert set(suffix) <= set("abcdefghijklmnopqrstuvwxyz234567")


def test_snapshot_names_are_random():
    names = {generate_snapshot_name("x") for _ in range(20)}
    assert len(names) > 1