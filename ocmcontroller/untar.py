"""Extraction of uncompressed tar archives into a directory."""

from __future__ import annotations

import os
import stat
import sys
import tarfile
import time
from typing import BinaryIO, Iterator

DEFAULT_MAX_UNTAR_SIZE = 100 << (10 * 2)
"""Default (100MB) maximum amount of bytes that untar will process."""

UNLIMITED_UNTAR_SIZE = -1
"""Value that disables the size check."""

BUFFER_SIZE = 32 * 1024
_BLOCK_SIZE = 512


class UntarError(Exception):
    """Raised when an archive cannot be extracted."""


class _PrefixedReader:
    """A reader that first yields an already consumed prefix, then the stream."""

    def __init__(self, prefix: bytes, stream: BinaryIO) -> None:
        self._prefix = prefix
        self._stream = stream

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            data, self._prefix = self._prefix, b""
            return data + self._stream.read()
        if self._prefix:
            data, self._prefix = self._prefix[:size], self._prefix[size:]
            if len(data) < size:
                data += self._stream.read(size - len(data))
            return data
        return self._stream.read(size)


def _read_up_to(stream: BinaryIO, size: int) -> bytes:
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def _secure_join(root: str, unsafe: str) -> str:
    """Join unsafe onto root so that the result never leaves root."""
    parts: list[str] = []
    for part in unsafe.replace("\\", "/").split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if parts:
                parts.pop()
            continue
        parts.append(part)
    return os.path.join(root, *parts)


def valid_rel_path(path: str) -> bool:
    """Report whether an archive entry name is a safe relative path."""
    return not (
        path == ""
        or "\\" in path
        or path.startswith("/")
        or "../" in path
    )


def _members(archive: tarfile.TarFile) -> Iterator[tarfile.TarInfo]:
    iterator = iter(archive)
    while True:
        try:
            member = next(iterator)
        except StopIteration:
            return
        except tarfile.TarError as exc:
            raise UntarError(f"tar error: {exc}") from exc
        yield member


def _write_file(
    archive: tarfile.TarFile, member: tarfile.TarInfo, target: str
) -> int:
    if sys.platform == "darwin" and member.mode & 0o111:
        # Removing the original first clears the kernel's cached signature.
        try:
            os.remove(target)
        except FileNotFoundError:
            pass

    fd = os.open(target, os.O_RDWR | os.O_CREAT | os.O_TRUNC, member.mode & 0o777)
    written = 0
    try:
        with os.fdopen(fd, "wb") as out:
            if member.isreg():
                source = archive.extractfile(member)
                while True:
                    try:
                        chunk = source.read(BUFFER_SIZE)
                    except tarfile.TarError as exc:
                        raise UntarError(f"error copying buffer: {exc}") from exc
                    if not chunk:
                        break
                    out.write(chunk)
                    written += len(chunk)
    except OSError as exc:
        raise UntarError(f"error writing to {target}: {exc}") from exc
    return written


def untar(
    stream: BinaryIO,
    directory: str | os.PathLike,
    max_size: int = DEFAULT_MAX_UNTAR_SIZE,
    skip_symlinks: bool = False,
) -> None:
    """Extract the uncompressed tar archive read from stream into directory.

    A relative directory cannot ascend from the current working directory.
    If the directory exists, it must be a directory.
    """
    target_root = os.path.normpath(os.fspath(directory))
    if not os.path.isabs(target_root):
        target_root = _secure_join(os.getcwd(), target_root)

    try:
        info = os.lstat(target_root)
    except FileNotFoundError:
        pass
    except OSError as exc:
        raise UntarError(f"cannot lstat '{target_root}': {exc}") from exc
    else:
        if not stat.S_ISDIR(info.st_mode):
            raise UntarError(f"dir '{target_root}' must be a directory")

    head = _read_up_to(stream, _BLOCK_SIZE)
    if not head.strip(b"\0"):
        return

    try:
        archive = tarfile.open(fileobj=_PrefixedReader(head, stream), mode="r|")
    except tarfile.TarError as exc:
        raise UntarError(f"tar error: {exc}") from exc

    made_dirs: set[str] = set()
    processed = 0
    started = time.time()

    with archive:
        for member in _members(archive):
            processed += member.size
            if max_size > UNLIMITED_UNTAR_SIZE and processed > max_size:
                raise UntarError(
                    f'tar "{member.name}" is bigger than max archive size '
                    f"of {max_size} bytes"
                )
            if not valid_rel_path(member.name):
                raise UntarError(f'tar contained invalid name error "{member.name}"')

            target = os.path.normpath(
                os.path.join(target_root, member.name.replace("/", os.sep))
            )

            if member.isreg() or member.islnk():
                parent = os.path.dirname(target)
                if parent not in made_dirs:
                    os.makedirs(parent, 0o750, exist_ok=True)
                    made_dirs.add(parent)

                written = _write_file(archive, member, target)
                if written != member.size:
                    raise UntarError(
                        f"only wrote {written} bytes to {target}; "
                        f"expected {member.size}"
                    )

                # Extracted files are never newer than the current time.
                mtime = min(member.mtime, started)
                try:
                    os.utime(target, (mtime, mtime))
                except OSError as exc:
                    raise UntarError(
                        f"error changing file time {target}: {exc}"
                    ) from exc
            elif member.isdir():
                os.makedirs(target, 0o750, exist_ok=True)
                made_dirs.add(target)
            elif member.issym():
                if not skip_symlinks:
                    raise UntarError(
                        f"tar file entry {member.name} is a symlink, "
                        "which is not allowed in this context"
                    )
            else:
                raise UntarError(
                    f"tar file entry {member.name} contained unsupported "
                    f"file type {member.type!r}"
                )