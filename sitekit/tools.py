"""Descriptions of the external tools that can be downloaded on demand."""

from __future__ import annotations

import abc
import logging
from typing import ClassVar

import semver

from .util import is_linux_musl_env

log = logging.getLogger(__name__)

ENV_VAR_LEPTOS_CARGO_GENERATE_VERSION = "LEPTOS_CARGO_GENERATE_VERSION"
ENV_VAR_LEPTOS_TAILWIND_VERSION = "LEPTOS_TAILWIND_VERSION"
ENV_VAR_LEPTOS_SASS_VERSION = "LEPTOS_SASS_VERSION"
ENV_VAR_LEPTOS_WASM_OPT_VERSION = "LEPTOS_WASM_OPT_VERSION"


class ToolError(RuntimeError):
    """A tool has no download or executable for the requested target."""


def sanitize_version_prefix(ver_string: str) -> str:
    """Strip everything before the first ASCII digit."""
    for index, char in enumerate(ver_string):
        if char.isascii() and char.isdigit():
            return ver_string[index:]
    return ""


def normalize_version(ver_string: str) -> semver.Version | None:
    """Turn a loosely formatted version string into a semantic version."""
    text = sanitize_version_prefix(ver_string)
    try:
        return semver.Version.parse(text)
    except ValueError:
        pass
    if text.isascii() and text.isdigit():
        return semver.Version(int(text), 0, 0)
    try:
        return semver.Version.parse(f"{text}.0")
    except ValueError as exc:
        log.error("Command failed to normalize version %s: %s", text, exc)
        return None


class Tool(abc.ABC):
    """An external command with its release location and version pinning."""

    name: ClassVar[str]
    default_version: ClassVar[str]
    env_var_version_name: ClassVar[str]
    github_owner: ClassVar[str]
    github_repo: ClassVar[str]

    def __init__(self, *, musl: bool | None = None) -> None:
        self._musl = musl

    def __repr__(self) -> str:
        return f"{type(self).__name__}(musl={self._musl!r})"

    def _is_musl(self) -> bool:
        return is_linux_musl_env() if self._musl is None else self._musl

    def _release_url(self, version: str, asset: str, owner: str | None = None) -> str:
        owner = owner or self.github_owner
        return (
            f"https://github.com/{owner}/{self.github_repo}"
            f"/releases/download/{version}/{asset}"
        )

    @abc.abstractmethod
    def download_url(self, target_os: str, target_arch: str, version: str) -> str:
        """Download location of the release for the given target."""

    @abc.abstractmethod
    def executable_name(
        self, target_os: str, target_arch: str, version: str | None
    ) -> str:
        """Path of the executable inside the extracted download."""

    def manual_install_instructions(self) -> str:
        return "Try manually installing the command"


class Tailwind(Tool):
    name = "tailwindcss"
    default_version = "v3.4.0"
    env_var_version_name = ENV_VAR_LEPTOS_TAILWIND_VERSION
    github_owner = "tailwindlabs"
    github_repo = "tailwindcss"

    _ASSETS: ClassVar[dict[tuple[str, str], str]] = {
        ("windows", "x86_64"): "windows-x64.exe",
        ("macos", "x86_64"): "macos-x64",
        ("macos", "aarch64"): "macos-arm64",
        ("linux", "x86_64"): "linux-x64",
        ("linux", "aarch64"): "linux-arm64",
    }

    def download_url(self, target_os: str, target_arch: str, version: str) -> str:
        suffix = self._ASSETS.get((target_os, target_arch))
        if suffix is None:
            raise ToolError(
                f"Command [{self.name}] failed to find a match for "
                f"{target_os}-{target_arch} "
            )
        return self._release_url(version, f"{self.name}-{suffix}")

    def executable_name(
        self, target_os: str, target_arch: str, version: str | None
    ) -> str:
        if target_os == "windows":
            suffix = "windows-x64.exe"
        else:
            suffix = self._ASSETS.get((target_os, target_arch), "linux-arm64")
        return f"{self.name}-{suffix}"

    def manual_install_instructions(self) -> str:
        return (
            "Try manually installing tailwindcss: "
            "https://tailwindcss.com/docs/installation"
        )


class WasmOpt(Tool):
    name = "wasm-opt"
    default_version = "version_117"
    env_var_version_name = ENV_VAR_LEPTOS_WASM_OPT_VERSION
    github_owner = "WebAssembly"
    github_repo = "binaryen"

    def download_url(self, target_os: str, target_arch: str, version: str) -> str:
        if target_os == "windows":
            target = "x86_64-windows"
        else:
            target = {
                ("linux", "aarch64"): "aarch64-linux",
                ("linux", "x86_64"): "x86_64-linux",
                ("macos", "aarch64"): "arm64-macos",
                ("macos", "x86_64"): "x86_64-macos",
            }.get((target_os, target_arch))
        if target is None:
            raise ToolError(f"No wasm-opt tar binary found for {target_os} {target_arch}")
        return self._release_url(version, f"binaryen-{version}-{target}.tar.gz")

    def executable_name(
        self, target_os: str, target_arch: str, version: str | None
    ) -> str:
        if version is None:
            raise ToolError("Version is required for WASM Opt, none provided")
        exe = f"{self.name}.exe" if target_os == "windows" else self.name
        return f"binaryen-{version}/bin/{exe}"

    def manual_install_instructions(self) -> str:
        return (
            "Try manually installing binaryen: "
            "https://github.com/WebAssembly/binaryen"
        )


class Sass(Tool):
    name = "sass"
    default_version = "1.58.3"
    env_var_version_name = ENV_VAR_LEPTOS_SASS_VERSION
    github_owner = "dart-musl"
    github_repo = "dart-sass"

    _ARCHES: ClassVar[dict[str, str]] = {"x86_64": "x64", "aarch64": "arm64"}

    def download_url(self, target_os: str, target_arch: str, version: str) -> str:
        arch = self._ARCHES.get(target_arch)
        if self._is_musl():
            if arch is None:
                raise ToolError(f"No sass tar binary found for linux-musl {target_arch}")
            return self._release_url(
                version, f"dart-sass-{version}-linux-{arch}.tar.gz"
            )
        if (target_os, target_arch) == ("windows", "x86_64"):
            return self._release_url(
                version, f"dart-sass-{version}-windows-x64.zip", owner="sass"
            )
        if target_os in ("macos", "linux") and arch is not None:
            return self._release_url(
                version, f"dart-sass-{version}-{target_os}-{arch}.tar.gz", owner="sass"
            )
        raise ToolError(f"No sass tar binary found for {target_os} {target_arch}")

    def executable_name(
        self, target_os: str, target_arch: str, version: str | None
    ) -> str:
        return "dart-sass/sass.bat" if target_os == "windows" else "dart-sass/sass"

    def manual_install_instructions(self) -> str:
        return "Try manually installing sass: https://sass-lang.com/install"


class CargoGenerate(Tool):
    name = "cargo-generate"
    default_version = "v0.17.3"
    env_var_version_name = ENV_VAR_LEPTOS_CARGO_GENERATE_VERSION
    github_owner = "cargo-generate"
    github_repo = "cargo-generate"

    _MUSL_TARGETS: ClassVar[dict[tuple[str, str], str]] = {
        ("linux", "aarch64"): "aarch64-unknown-linux-musl",
        ("linux", "x86_64"): "x86_64-unknown-linux-musl",
    }
    _TARGETS: ClassVar[dict[tuple[str, str], str]] = {
        ("macos", "aarch64"): "aarch64-apple-darwin",
        ("linux", "aarch64"): "aarch64-unknown-linux-gnu",
        ("macos", "x86_64"): "x86_64-apple-darwin",
        ("windows", "x86_64"): "x86_64-pc-windows-msvc",
        ("linux", "x86_64"): "x86_64-unknown-linux-gnu",
    }

    def download_url(self, target_os: str, target_arch: str, version: str) -> str:
        if self._is_musl():
            target = self._MUSL_TARGETS.get((target_os, target_arch))
            if target is None:
                raise ToolError(
                    f"No cargo-generate tar binary found for linux-musl {target_arch}"
                )
        else:
            target = self._TARGETS.get((target_os, target_arch))
            if target is None:
                raise ToolError(
                    f"No cargo-generate tar binary found for {target_os} {target_arch}"
                )
        return self._release_url(version, f"cargo-generate-{version}-{target}.tar.gz")

    def executable_name(
        self, target_os: str, target_arch: str, version: str | None
    ) -> str:
        return "cargo-generate.exe" if target_os == "windows" else "cargo-generate"

    def manual_install_instructions(self) -> str:
        return (
            "Try manually installing cargo-generate: "
            "https://github.com/cargo-generate/cargo-generate#installation"
        )