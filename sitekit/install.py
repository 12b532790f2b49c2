"""Locating external tools, downloading and caching them when they are missing."""

from __future__ import annotations

import asyncio
import enum
import io
import json
import logging
import os
import shutil
import sys
import tarfile
import threading
import time
import urllib.error
import urllib.request
import zipfile
from dataclasses import dataclass
from pathlib import Path

from .logger import GRAY, TRACE, paint
from .tools import CargoGenerate, Sass, Tailwind, Tool, WasmOpt, normalize_version
from .util import os_arch

log = logging.getLogger(__name__)

APP_NAME = "sitekit"
USER_AGENT = "sitekit"
ONE_DAY_MS = 24 * 60 * 60 * 1000

_cache_dir_logged = False
_cache_dir_lock = threading.Lock()


class InstallError(RuntimeError):
    """A tool could not be found, downloaded or extracted."""


def _system_cache_dir() -> Path | None:
    if sys.platform == "win32":
        local = os.environ.get("LOCALAPPDATA")
        return Path(local) if local else None
    try:
        home = Path.home()
    except RuntimeError:
        return None
    if sys.platform == "darwin":
        return home / "Library" / "Caches"
    xdg = os.environ.get("XDG_CACHE_HOME")
    if xdg and Path(xdg).is_absolute():
        return Path(xdg)
    return home / ".cache"


def get_cache_dir() -> Path:
    """The application cache directory, created if it does not exist yet."""
    global _cache_dir_logged
    base = _system_cache_dir()
    if base is None:
        raise InstallError("Cache directory does not exist")
    directory = base / APP_NAME
    if not directory.exists():
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise InstallError(f"Could not create dir {directory}") from exc
    with _cache_dir_lock:
        if not _cache_dir_logged:
            _cache_dir_logged = True
            log.debug("Command cache dir: %s", directory)
    return directory


def extract_tar(data: bytes, dest) -> None:
    """Unpack a gzipped tar archive into ``dest``."""
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as archive:
            if hasattr(tarfile, "data_filter"):
                archive.extractall(dest, filter="data")
            else:
                archive.extractall(dest)
    except (tarfile.TarError, OSError, EOFError) as exc:
        raise InstallError(f"Could not extract tar archive to {dest}") from exc


def extract_zip(data: bytes, dest) -> None:
    """Unpack a zip archive into ``dest``, keeping unix permissions."""
    dest = Path(dest)
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            archive.extractall(dest)
            if os.name == "posix":
                for info in archive.infolist():
                    mode = (info.external_attr >> 16) & 0o777
                    if mode and not info.is_dir():
                        os.chmod(dest / info.filename, mode)
    except (zipfile.BadZipFile, OSError) as exc:
        raise InstallError(f"Could not extract zip archive to {dest}") from exc


def _http_get(url: str) -> bytes:
    request = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    try:
        with urllib.request.urlopen(request) as response:
            return response.read()
    except urllib.error.URLError as exc:
        raise InstallError(f"Could not download from {url}") from exc


@dataclass(frozen=True)
class ExeMeta:
    """Where a tool comes from and where its executable lives once unpacked."""

    name: str
    version: str
    url: str
    exe: str
    manual: str

    @property
    def full_name(self) -> str:
        return f"{self.name}-{self.version}"

    def from_global_path(self) -> Path | None:
        found = shutil.which(self.name)
        return None if found is None else Path(found)

    async def cached(self) -> Path:
        return await self.with_cache_dir(get_cache_dir() / self.full_name)

    async def with_cache_dir(self, cache_dir) -> Path:
        cache = ExeCache(meta=self, exe_dir=Path(cache_dir) / self.full_name)
        return await cache.get()


@dataclass(frozen=True)
class ExeCache:
    """A tool's directory inside the cache."""

    meta: ExeMeta
    exe_dir: Path

    def exe_in_cache(self) -> Path:
        exe_path = self.exe_dir / self.meta.exe
        if not exe_path.exists():
            raise InstallError(f"The path {exe_path} doesn't exist")
        return exe_path

    async def fetch_archive(self) -> bytes:
        log.debug("Install downloading %s %s", self.meta.name, paint(GRAY, self.meta.url))
        return await asyncio.to_thread(_http_get, self.meta.url)

    def extract_downloaded(self, data: bytes) -> None:
        url = self.meta.url
        if url.endswith(".zip"):
            extract_zip(data, self.exe_dir)
        elif url.endswith(".tar.gz"):
            extract_tar(data, self.exe_dir)
        else:
            try:
                self.write_binary(data)
            except OSError as exc:
                raise InstallError(f"Could not write binary {self.meta.full_name}") from exc
        log.debug(
            "Install decompressing %s %s", self.meta.name, paint(GRAY, str(self.exe_dir))
        )

    def write_binary(self, data: bytes) -> None:
        path = self.exe_dir / self.meta.exe
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            path.write_bytes(data)
        except OSError as exc:
            raise OSError(f"Error writing binary file: {path}") from exc
        if os.name == "posix":
            os.chmod(path, 0o550)

    async def download(self) -> Path:
        full_name = self.meta.full_name
        log.info("Command installing %s ...", full_name)
        try:
            data = await self.fetch_archive()
        except (InstallError, OSError) as exc:
            raise InstallError(f"Could not download {full_name}") from exc
        try:
            self.extract_downloaded(data)
        except (InstallError, OSError) as exc:
            raise InstallError(f"Could not extract {full_name}") from exc
        try:
            binary_path = self.exe_in_cache()
        except InstallError as exc:
            raise InstallError(
                "Binary downloaded and extracted but could still not be found at "
                f"{self.exe_dir}"
            ) from exc
        log.info("Command %s installed.", full_name)
        return binary_path

    async def get(self) -> Path:
        try:
            return self.exe_in_cache()
        except InstallError:
            return await self.download()


def _write_marker(marker: Path, now_ms: int) -> bool:
    try:
        marker.write_text(str(now_ms))
    except OSError:
        return False
    return True


def should_check_for_new_version(tool: Tool, cache_dir=None) -> bool:
    """True at most once a day per tool; a marker file records the last check."""
    if cache_dir is None:
        try:
            cache_dir = get_cache_dir()
        except InstallError as exc:
            log.warning("Command %s failed to get cache dir: %s", tool.name, exc)
            return False
    marker = Path(cache_dir) / f".{tool.name}_last_checked"
    if marker.is_dir():
        log.warning(
            "Command [%s] encountered a conflicting dir in the cache, please delete %s",
            tool.name,
            marker,
        )
        return False
    now_ms = time.time_ns() // 1_000_000
    if marker.exists():
        try:
            contents = marker.read_text()
        except OSError:
            return False
        last_checked = int(contents) if contents.isascii() and contents.isdigit() else 0
        if now_ms - last_checked <= ONE_DAY_MS:
            return False
    return _write_marker(marker, now_ms)


async def check_for_latest_version(tool: Tool) -> str | None:
    """The tag of the tool's latest release, or None when it cannot be found."""
    log.debug("Command [%s] checking for the latest available version", tool.name)
    url = (
        f"https://api.github.com/repos/{tool.github_owner}/{tool.github_repo}"
        "/releases/latest"
    )

    def fetch() -> bytes:
        request = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
        with urllib.request.urlopen(request) as response:
            return response.read()

    try:
        body = await asyncio.to_thread(fetch)
    except urllib.error.HTTPError as exc:
        log.error("Command [%s] GitHub API request failed: %s", tool.name, exc.code)
        return None
    except OSError:
        log.debug("Command [%s] failed to check for the latest version", tool.name)
        return None
    try:
        tag = json.loads(body)["tag_name"]
        if not isinstance(tag, str):
            raise TypeError("tag_name is not a string")
    except (ValueError, KeyError, TypeError) as exc:
        log.debug(
            "Command [%s] failed to parse the response JSON from the GitHub API: %s",
            tool.name,
            exc,
        )
        return None
    return tag


async def resolve_version(tool: Tool) -> str:
    """The version to use: pinned by environment, else the default."""
    pinned = os.environ.get(tool.env_var_version_name)
    log.log(TRACE, "Command [%s] is_force_pin_version: %s", tool.name, pinned is not None)
    if pinned is None and not should_check_for_new_version(tool):
        log.log(TRACE, "Command [%s] NOT checking for the latest available version", tool.name)
        return tool.default_version

    version = pinned if pinned is not None else tool.default_version
    latest = await check_for_latest_version(tool)
    if latest is None:
        log.warning("Command [%s] failed to check for the latest version", tool.name)
        return version

    norm_latest = normalize_version(latest)
    norm_version = normalize_version(version)
    if norm_latest is not None and norm_version is not None:
        if norm_version >= norm_latest:
            log.debug(
                "Command [%s] requested version %s is already same or newer than "
                "available version %s",
                tool.name,
                version,
                latest,
            )
        else:
            log.info(
                "Command [%s] requested version %s, but a newer version %s is available, "
                "you can try it out by setting the %s=%s env var and re-running the command",
                tool.name,
                version,
                latest,
                tool.env_var_version_name,
                latest,
            )
    return version


async def exe_meta(tool: Tool, target_os: str, target_arch: str) -> ExeMeta:
    """Resolve the version and download details of ``tool`` for a target."""
    version = await resolve_version(tool)
    return ExeMeta(
        name=tool.name,
        version=version,
        url=tool.download_url(target_os, target_arch, version),
        exe=tool.executable_name(target_os, target_arch, version),
        manual=tool.manual_install_instructions(),
    )


class Exe(enum.Enum):
    """The external tools that can be installed on demand."""

    CARGO_GENERATE = "cargo-generate"
    SASS = "sass"
    WASM_OPT = "wasm-opt"
    TAILWIND = "tailwindcss"

    def tool(self) -> Tool:
        factories = {
            Exe.CARGO_GENERATE: CargoGenerate,
            Exe.SASS: Sass,
            Exe.WASM_OPT: WasmOpt,
            Exe.TAILWIND: Tailwind,
        }
        return factories[self]()

    async def meta(self) -> ExeMeta:
        target_os, target_arch = os_arch()
        return await exe_meta(self.tool(), target_os, target_arch)

    async def get(self) -> Path:
        """Path of the executable, from PATH or from the download cache."""
        meta = await self.meta()
        path = meta.from_global_path()
        if path is None:
            try:
                path = await meta.cached()
            except InstallError as exc:
                raise InstallError(meta.manual) from exc
        log.debug("Command using %s %s %s", meta.name, meta.version, paint(GRAY, str(path)))
        return path