# sitekit

`sitekit` collects the pieces that a build tool for compiled web sites needs.
It is a library. It has no command line of its own.

- **Tool descriptions** (`sitekit.tools`): `Tailwind`, `Sass`, `WasmOpt` and
  `CargoGenerate` know their release download URL and the path of the
  executable inside the download for each supported OS and architecture.
  `sanitize_version_prefix` and `normalize_version` turn release tags into
  semantic versions.
- **Tool installation** (`sitekit.install`): `Exe.get()` looks a tool up on
  `PATH` first. If it is not there, the matching release is downloaded and
  unpacked into a per-user cache directory named `sitekit`. Versions can be
  pinned with the `LEPTOS_TAILWIND_VERSION`, `LEPTOS_SASS_VERSION`,
  `LEPTOS_WASM_OPT_VERSION` and `LEPTOS_CARGO_GENERATE_VERSION` environment
  variables. At most once a day, `resolve_version` asks the GitHub releases
  API whether a newer version exists and logs a hint when it does.
- **Static compression** (`sitekit.compress`): `compress_dir_all` and
  `compress_static_files` write `.gz` and `.br` siblings for every file in a
  directory tree. Files that already end in `.gz` or `.br` are skipped.
- **Site file tracking** (`sitekit.site`): `Site` copies or writes files into
  the site directory only when their content hash changed.
- **Signals** (`sitekit.signals`): an in-process `Broadcast` channel, with
  `ServerRestart` and `ReloadSignal` (full, style or view patches) built on
  it. `ProductSet` collects the products of successful build steps.
- **Helpers**:
  - `sitekit.paths` for component-wise path operations.
  - `sitekit.fs` for async file-system calls that raise `FsError` with a
    descriptive message.
  - `sitekit.sync` for waiting on subprocesses with an `asyncio.Event` as
    interrupt, and for waiting on a TCP port.
  - `sitekit.cargo` for parsing `cargo metadata` output.
  - `sitekit.logger` for coloured, filtered log output.
  - `sitekit.util` for OS and architecture detection.

## Install

```
pip install sitekit
```

## Examples

Fetch a tool, downloading it if it is not installed:

```python
import asyncio
from sitekit.install import Exe

path = asyncio.run(Exe.TAILWIND.get())
print(path)
```

Work with version strings the way release tags are written:

```python
from sitekit.tools import normalize_version, sanitize_version_prefix

sanitize_version_prefix("version_1.2.3")   # "1.2.3"
normalize_version("version_112")           # semver.Version 112.0.0
normalize_version("0.2")                   # semver.Version 0.2.0
normalize_version("1a-test")               # None
```

Build a download URL for a specific target:

```python
from sitekit.tools import WasmOpt

WasmOpt().download_url("linux", "x86_64", "version_117")
WasmOpt().executable_name("linux", "x86_64", "version_117")  # "binaryen-version_117/bin/wasm-opt"
```

Precompress a site directory:

```python
import asyncio
from sitekit.compress import compress_static_files

asyncio.run(compress_static_files("target/site"))
```

Copy a file into the site only when it changed:

```python
import asyncio
from pathlib import Path
from sitekit.site import Site, SourcedSiteFile

site = Site(("127.0.0.1", 3000), 3001, "target/site", "pkg")
file = SourcedSiteFile(source=Path("style/main.css"),
                       dest=Path("target/site/pkg/main.css"),
                       site=Path("pkg/main.css"))
changed = asyncio.run(site.updated(file))   # True on the first copy, False if unchanged
```

Use the path helpers:

```python
from pathlib import Path
from sitekit.paths import append_str_to_filename, remove_nested

append_str_to_filename(Path("foo.bar"), "_bazz")  # Path("foo_bazz.bar")
remove_nested([Path("a/b"), Path("a")])            # [Path("a")]
```

Set up logging. The verbosity is 0 for info, 1 for debug and 2 or more for trace.
`LogSelect` turns on records from server or wasm loggers:

```python
from sitekit.logger import LogSelect, setup

setup(1, [LogSelect.SERVER])
```

## What the package does not do

`sitekit` has no command to run and does not build projects. It provides no
development server, no file watcher and no live-reload websocket server.
`ReloadSignal` and `ServerRestart` only broadcast within the process. Whatever
listens to them has to be supplied by the program that uses the package.

## Tests

```
pip install -e ".[test]"
pytest
```