"""Platform detection and small string helpers."""

from __future__ import annotations

import platform
from pathlib import Path

_OS_NAMES = {"Windows": "windows", "Darwin": "macos", "Linux": "linux"}
_ARCH_NAMES = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
}


def os_arch() -> tuple[str, str]:
    """Return the ``(os, arch)`` pair used to pick tool downloads."""
    target_os = _OS_NAMES.get(platform.system())
    if target_os is None:
        raise RuntimeError("unsupported OS")
    target_arch = _ARCH_NAMES.get(platform.machine().lower())
    if target_arch is None:
        raise RuntimeError("unsupported target architecture")
    return target_os, target_arch


def is_linux_musl_env() -> bool:
    """True when running on Linux with the musl C library."""
    if platform.system() != "Linux":
        return False
    libc, _version = platform.libc_ver()
    if libc:
        return libc == "musl"
    return any(Path("/lib").glob("ld-musl-*"))


def pad_left_to(text: str, length: int) -> str:
    """Pad ``text`` with spaces on the left up to ``length`` characters."""
    if len(text) < length:
        return " " * (length - len(text)) + text
    return text


def to_created_dir(text: str) -> Path:
    """Return ``text`` as a path, creating the directory if necessary."""
    path = Path(text)
    if not path.exists():
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OSError(f"Could not create dir {text!r}") from exc
    return path