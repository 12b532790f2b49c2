"""Gzip and brotli pre-compression of static site files."""

from __future__ import annotations

import asyncio
import gzip
import logging
import time
from pathlib import Path

import brotli

from .fs import FsError
from .logger import TRACE

log = logging.getLogger(__name__)

_COMPRESSED_SUFFIXES = (".gz", ".br")


def compress_dir_all(path) -> None:
    """Write ``.gz`` and ``.br`` siblings for every file under ``path``."""
    path = Path(path)
    log.log(TRACE, "FS compress_dir_all %s", path)
    try:
        entries = sorted(path.iterdir())
    except OSError as exc:
        raise FsError(f"Could not read {path}") from exc

    for entry in entries:
        if entry.is_dir():
            compress_dir_all(entry)
            continue
        if entry.name.endswith(_COMPRESSED_SUFFIXES):
            continue
        data = entry.read_bytes()
        Path(f"{entry}.gz").write_bytes(gzip.compress(data))
        Path(f"{entry}.br").write_bytes(brotli.compress(data))


async def compress_static_files(path) -> None:
    """Compress the static files under ``path`` off the event loop."""
    start = time.monotonic()
    await asyncio.to_thread(compress_dir_all, path)
    elapsed_ms = int((time.monotonic() - start) * 1000)
    log.info("Precompression of static files finished after %d ms", elapsed_ms)