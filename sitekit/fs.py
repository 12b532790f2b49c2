"""Asynchronous file-system operations with descriptive errors."""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from collections import deque
from pathlib import Path
from typing import Callable, TypeVar

from .logger import TRACE
from .paths import PathError, rebase

log = logging.getLogger(__name__)

T = TypeVar("T")


class FsError(OSError):
    """A file-system operation failed."""


async def _run(message: str, func: Callable[..., T], *args) -> T:
    try:
        return await asyncio.to_thread(func, *args)
    except (OSError, ValueError) as exc:
        raise FsError(message) from exc


def _rm_dir_content(directory: Path) -> None:
    if not directory.exists():
        log.debug("Leptos not cleaning %s because it does not exist", directory)
        return
    for entry in list(os.scandir(directory)):
        if entry.is_dir(follow_symlinks=False):
            shutil.rmtree(entry.path)
        else:
            os.remove(entry.path)


async def rm_dir_content(directory) -> None:
    """Remove everything inside ``directory`` but keep the directory."""
    await _run(f"Could not remove contents of {directory}", _rm_dir_content, Path(directory))


def _write(path: Path, contents) -> None:
    data = contents.encode("utf-8") if isinstance(contents, str) else bytes(contents)
    path.write_bytes(data)


async def write(path, contents) -> None:
    await _run(f"Could not write to {path}", _write, Path(path), contents)


async def read(path) -> bytes:
    return await _run(f"Could not read {path}", Path(path).read_bytes)


async def read_to_string(path) -> str:
    return await _run(
        f"Could not read to string {path}", Path(path).read_text, "utf-8"
    )


async def create_dir(path) -> None:
    log.log(TRACE, "FS create_dir %s", path)
    await _run(f"Could not create dir {path}", Path(path).mkdir)


def _mkdir_all(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


async def create_dir_all(path) -> None:
    log.log(TRACE, "FS create_dir_all %s", path)
    await _run(f"Could not create {path}", _mkdir_all, Path(path))


def _copy(src: str, dst: str) -> int:
    shutil.copyfile(src, dst)
    shutil.copymode(src, dst)
    return os.path.getsize(dst)


async def copy(src, dst) -> int:
    """Copy a file with its permissions; return the number of bytes copied."""
    return await _run(f"copy {src} to {dst}", _copy, os.fspath(src), os.fspath(dst))


async def rename(src, dst) -> None:
    await _run(
        f"Could not rename from {src} to {dst}", os.replace, os.fspath(src), os.fspath(dst)
    )


async def remove_file(path) -> None:
    await _run(f"Could not remove file {path}", os.remove, os.fspath(path))


async def remove_dir(path) -> None:
    await _run(f"Could not remove dir {path}", os.rmdir, os.fspath(path))


async def remove_dir_all(path) -> None:
    await _run(f"Could not remove dir {path}", shutil.rmtree, os.fspath(path))


def _list_dir(directory: Path) -> list[tuple[Path, bool]]:
    with os.scandir(directory) as entries:
        return sorted(
            (Path(entry.path), entry.is_dir(follow_symlinks=False)) for entry in entries
        )


async def copy_dir_all(src, dst) -> None:
    """Copy the tree under ``src`` into ``dst``."""
    src, dst = Path(src), Path(dst)
    try:
        await create_dir_all(dst)
        pending = deque([src])
        while pending:
            directory = pending.popleft()
            for source, is_dir in await asyncio.to_thread(_list_dir, directory):
                target = rebase(source, src, dst)
                if is_dir:
                    await create_dir(target)
                    pending.append(source)
                else:
                    await copy(source, target)
    except (OSError, PathError) as exc:
        raise FsError(f"Copy dir recursively from {src} to {dst}") from exc