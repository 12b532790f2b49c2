"""The output site and change tracking of the files written into it."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path

from . import fs
from .logger import TRACE
from .paths import test_string, without_last

log = logging.getLogger(__name__)


def _hash(data: bytes) -> int:
    return int.from_bytes(hashlib.blake2b(data, digest_size=8).digest(), "little")


async def file_hash(path) -> int:
    """A 64-bit content hash of the file at ``path``."""
    return _hash(await fs.read(path))


@dataclass(frozen=True)
class SiteFile:
    """A file in the site: ``dest`` from the root, ``site`` from the site dir."""

    dest: Path
    site: Path

    def __str__(self) -> str:
        return f"@{self.site}"

    def __repr__(self) -> str:
        return f"SiteFile(dest={test_string(self.dest)!r}, site={test_string(self.site)!r})"


@dataclass(frozen=True)
class SourcedSiteFile:
    """A site file that is copied from ``source``."""

    source: Path
    dest: Path
    site: Path

    def as_site_file(self) -> SiteFile:
        return SiteFile(dest=self.dest, site=self.site)

    def __str__(self) -> str:
        return f"{self.source} -> @{self.site}"

    def __repr__(self) -> str:
        return (
            f"SourcedSiteFile(source={test_string(self.source)!r}, "
            f"dest={test_string(self.dest)!r}, site={test_string(self.site)!r})"
        )


class Site:
    """Site addresses and directories, with hashes of the files written."""

    def __init__(
        self, addr: tuple[str, int], reload_port: int, root_dir, pkg_dir
    ) -> None:
        self.addr = addr
        self.reload = (addr[0], reload_port)
        self.root_dir = Path(root_dir)
        self.pkg_dir = Path(pkg_dir)
        self._file_reg: dict[str, int] = {}
        self._ext_file_reg: dict[str, int] = {}

    def __repr__(self) -> str:
        return (
            f"Site(addr={self.addr!r}, reload={self.reload!r}, "
            f"root_dir={str(self.root_dir)!r}, pkg_dir={str(self.pkg_dir)!r}, "
            f"file_reg={self._file_reg!r}, ext_file_reg={self._ext_file_reg!r})"
        )

    def root_relative_pkg_dir(self) -> Path:
        return self.root_dir / self.pkg_dir

    async def did_external_file_change(self, to) -> bool:
        """Whether the file at ``to`` changed since the last call for it."""
        new_hash = await file_hash(to)
        key = str(to)
        if self._ext_file_reg.get(key) == new_hash:
            return False
        self._ext_file_reg[key] = new_hash
        log.log(TRACE, "Site update hash for %s to %s", key, new_hash)
        return True

    async def updated(self, file: SourcedSiteFile) -> bool:
        """Copy the source to the destination if it differs; True if copied."""
        await fs.create_dir_all(without_last(file.dest))
        new_hash = await file_hash(file.source)
        if await self._current_hash(file.site, file.dest) == new_hash:
            return False
        await fs.copy(file.source, file.dest)
        self._file_reg[str(file.site)] = new_hash
        return True

    async def did_file_change(self, file: SiteFile) -> bool:
        """Whether the written destination differs from what was recorded."""
        new_hash = await file_hash(file.dest)
        key = str(file.site)
        if self._file_reg.get(key) == new_hash:
            return False
        self._file_reg[key] = new_hash
        return True

    async def updated_with(self, file: SiteFile, data: bytes) -> bool:
        """Write ``data`` to the destination if it differs; True if written."""
        await fs.create_dir_all(without_last(file.dest))
        new_hash = _hash(bytes(data))
        if await self._current_hash(file.site, file.dest) == new_hash:
            return False
        await fs.write(file.dest, data)
        self._file_reg[str(file.site)] = new_hash
        return True

    async def _current_hash(self, site: Path, dest: Path) -> int | None:
        recorded = self._file_reg.get(str(site))
        if recorded is not None:
            return recorded
        if Path(dest).exists():
            return await file_hash(dest)
        return None