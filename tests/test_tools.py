import pytest
import semver

from sitekit.tools import (
    CargoGenerate,
    Sass,
    Tailwind,
    ToolError,
    WasmOpt,
    normalize_version,
    sanitize_version_prefix,
)


def test_sanitize_version_prefix():
    version = sanitize_version_prefix("v1.2.3")
    assert version == "1.2.3"
    assert semver.Version.parse(version) == semver.Version(1, 2, 3)
    version = sanitize_version_prefix("version_1.2.3")
    assert version == "1.2.3"
    assert semver.Version.parse(version) == semver.Version(1, 2, 3)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("version_112", (112, 0, 0)),
        ("v3.3.3", (3, 3, 3)),
        ("10.0.0", (10, 0, 0)),
        ("5", (5, 0, 0)),
        ("0.2", (0, 2, 0)),
    ],
)
def test_normalize_version(text, expected):
    version = normalize_version(text)
    assert (version.major, version.minor, version.patch) == expected


def test_invalid_versions():
    assert normalize_version("1a-test") is None


def test_normalized_versions_compare():
    assert normalize_version("version_112") < normalize_version("version_117")
    assert normalize_version("v3.4.0") > normalize_version("v3.3.9")


def test_tailwind_urls():
    tool = Tailwind()
    assert tool.download_url("linux", "x86_64", "v3.4.0") == (
        "https://github.com/tailwindlabs/tailwindcss/releases/download/"
        "v3.4.0/tailwindcss-linux-x64"
    )
    assert tool.download_url("windows", "x86_64", "v3.4.0").endswith(
        "/tailwindcss-windows-x64.exe"
    )
    with pytest.raises(ToolError):
        tool.download_url("windows", "aarch64", "v3.4.0")


def test_tailwind_executable_name():
    tool = Tailwind()
    assert tool.executable_name("macos", "aarch64", None) == "tailwindcss-macos-arm64"
    assert tool.executable_name("windows", "aarch64", None) == "tailwindcss-windows-x64.exe"
    assert tool.executable_name("freebsd", "riscv", None) == "tailwindcss-linux-arm64"


def test_wasm_opt():
    tool = WasmOpt()
    assert tool.download_url("linux", "x86_64", "version_117") == (
        "https://github.com/WebAssembly/binaryen/releases/download/"
        "version_117/binaryen-version_117-x86_64-linux.tar.gz"
    )
    assert tool.download_url("windows", "aarch64", "v").endswith("-x86_64-windows.tar.gz")
    assert tool.executable_name("linux", "x86_64", "version_117") == (
        "binaryen-version_117/bin/wasm-opt"
    )
    assert tool.executable_name("windows", "x86_64", "v1").endswith("wasm-opt.exe")
    with pytest.raises(ToolError):
        tool.executable_name("linux", "x86_64", None)
    with pytest.raises(ToolError):
        tool.download_url("freebsd", "x86_64", "version_117")


def test_sass_glibc_and_musl():
    glibc = Sass(musl=False)
    assert glibc.download_url("linux", "aarch64", "1.58.3") == (
        "https://github.com/sass/dart-sass/releases/download/"
        "1.58.3/dart-sass-1.58.3-linux-arm64.tar.gz"
    )
    assert glibc.download_url("windows", "x86_64", "1.58.3").endswith(
        "dart-sass-1.58.3-windows-x64.zip"
    )
    musl = Sass(musl=True)
    assert musl.download_url("linux", "x86_64", "1.58.3") == (
        "https://github.com/dart-musl/dart-sass/releases/download/"
        "1.58.3/dart-sass-1.58.3-linux-x64.tar.gz"
    )
    with pytest.raises(ToolError):
        musl.download_url("linux", "riscv", "1.58.3")
    with pytest.raises(ToolError):
        glibc.download_url("windows", "aarch64", "1.58.3")
    assert glibc.executable_name("windows", "x86_64", None) == "dart-sass/sass.bat"
    assert glibc.executable_name("linux", "x86_64", None) == "dart-sass/sass"


def test_cargo_generate():
    glibc = CargoGenerate(musl=False)
    assert glibc.download_url("macos", "aarch64", "v0.17.3") == (
        "https://github.com/cargo-generate/cargo-generate/releases/download/"
        "v0.17.3/cargo-generate-v0.17.3-aarch64-apple-darwin.tar.gz"
    )
    musl = CargoGenerate(musl=True)
    assert musl.download_url("linux", "x86_64", "v0.17.3").endswith(
        "x86_64-unknown-linux-musl.tar.gz"
    )
    with pytest.raises(ToolError):
        musl.download_url("macos", "x86_64", "v0.17.3")
    assert glibc.executable_name("windows", "x86_64", None) == "cargo-generate.exe"
    assert glibc.executable_name("linux", "x86_64", None) == "cargo-generate"


def test_manual_install_instructions_name_tool():
    assert "tailwindcss" in Tailwind().manual_install_instructions()
    assert "binaryen" in WasmOpt().manual_install_instructions()
    assert "sass" in Sass().manual_install_instructions()
    assert "cargo-generate" in CargoGenerate().manual_install_instructions()