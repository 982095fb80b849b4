"""Building reproducible tar archives and naming snapshots."""

from __future__ import annotations

import base64
import contextlib
import os
import secrets
import shutil
import stat
import tarfile
import tempfile
from typing import Iterator

_ARTIFACT_MODE = 0o640
_NAME_RANDOM_BYTES = 5
_NAME_SUFFIX_LENGTH = 7


def _walk(root: str) -> Iterator[tuple[str, os.stat_result]]:
    """Yield paths below root in lexical depth-first order, root first."""
    info = os.lstat(root)
    yield root, info
    if stat.S_ISDIR(info.st_mode):
        for name in sorted(os.listdir(root)):
            yield from _walk(os.path.normpath(os.path.join(root, name)))


def _add_entry(
    archive: tarfile.TarFile, path: str, info: os.stat_result, source_dir: str
) -> None:
    is_regular = stat.S_ISREG(info.st_mode)
    if not (is_regular or stat.S_ISDIR(info.st_mode)):
        return

    name = os.path.relpath(path, source_dir) if os.path.isabs(source_dir) else path
    entry = tarfile.TarInfo(name)
    entry.type = tarfile.REGTYPE if is_regular else tarfile.DIRTYPE
    entry.mode = stat.S_IMODE(info.st_mode)
    entry.size = info.st_size if is_regular else 0
    # Strip environment-specific data so archives are reproducible.
    entry.uid = entry.gid = 0
    entry.uname = entry.gname = ""
    entry.mtime = 0

    if is_regular:
        with open(path, "rb") as content:
            archive.addfile(entry, content)
    else:
        archive.addfile(entry)


def build_tar(artifact_path: str | os.PathLike, source_dir: str | os.PathLike) -> None:
    """Write an uncompressed tar of source_dir to artifact_path.

    Only regular files and directories are included; ownership and times
    are cleared.
    """
    source = os.fspath(source_dir)
    if not os.path.exists(source):
        raise ValueError(f"invalid source dir path: {source}")

    fd, tmp_name = tempfile.mkstemp()
    try:
        with os.fdopen(fd, "wb") as handle:
            with tarfile.open(fileobj=handle, mode="w") as archive:
                for path, info in _walk(source):
                    _add_entry(archive, path, info, source)
        os.chmod(tmp_name, _ARTIFACT_MODE)
        shutil.move(tmp_name, os.fspath(artifact_path))
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.remove(tmp_name)
        raise


def generate_snapshot_name(name: str) -> str:
    """Return name followed by a short random lower-case suffix."""
    encoded = base64.b32encode(secrets.token_bytes(_NAME_RANDOM_BYTES)).decode("ascii")
    return f"{name}-{encoded[:_NAME_SUFFIX_LENGTH].lower()}"