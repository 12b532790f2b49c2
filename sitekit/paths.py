"""Path helpers working on whole path components."""

from __future__ import annotations

import os
import sys
from collections.abc import Iterable
from pathlib import Path, PurePath


class PathError(ValueError):
    """A path could not be transformed as requested."""


def _starts_with(path: PurePath | str, prefix: PurePath | str) -> bool:
    parts = PurePath(path).parts
    prefix_parts = PurePath(prefix).parts
    return parts[: len(prefix_parts)] == prefix_parts


def relative_to(path, root) -> Path | None:
    """Make an absolute ``path`` relative to ``root`` if it lies below it."""
    path, root = Path(path), Path(root)
    if path.is_absolute() and _starts_with(path, root):
        return Path(*path.parts[len(root.parts):])
    return None


def unbase(path, base) -> Path:
    """Remove ``base`` from the start of ``path``."""
    path, base = Path(path), Path(base)
    if not _starts_with(path, base):
        raise PathError(f"Could not remove base {str(base)!r} from {str(path)!r}")
    return Path(*path.parts[len(base.parts):])


def rebase(path, src_root, dest_root) -> Path:
    """Replace ``src_root`` at the start of ``path`` with ``dest_root``."""
    try:
        unbased = unbase(path, src_root)
    except PathError as exc:
        raise PathError(f"Rebase {path} from {src_root} to {dest_root}") from exc
    return Path(dest_root) / unbased


def without_last(path) -> Path:
    """Drop the last path component."""
    return Path(path).parent


def test_string(path) -> str:
    """A platform independent rendering of ``path`` for comparisons."""
    text = str(path).replace("\\", "/")
    return text[:-4] if text.endswith(".exe") else text


def starts_with_any(path, prefixes: Iterable) -> bool:
    return any(_starts_with(path, prefix) for prefix in prefixes)


def is_ext_any(path, extensions: Iterable[str]) -> bool:
    suffix = PurePath(path).suffix
    if not suffix:
        return False
    return suffix[1:] in extensions


def resolve_home_dir(path) -> Path:
    """Expand a leading ``~`` component using ``$HOME``."""
    path = Path(path)
    if path.parts[:1] != ("~",):
        return path
    home = os.environ.get("HOME")
    if home is None:
        raise PathError("Could not resolve $HOME")
    return Path(home).joinpath(*path.parts[1:])


def clean_windows_path(path) -> Path:
    """Strip the verbatim ``\\\\?\\`` prefix from Windows paths."""
    if sys.platform != "win32":
        return Path(path)
    text = str(path)
    if text.startswith("\\\\?\\UNC\\"):
        return Path("\\\\" + text[8:])
    if text.startswith("\\\\?\\") and len(text) >= 6 and text[5] == ":":
        return Path(text[4:])
    return Path(path)


def ls_ascii(path, indent: int = 0) -> str:
    """Render a directory tree, files first, then sub-directories."""
    path = Path(path)
    entries = list(path.iterdir())
    dirs = sorted(entry for entry in entries if entry.is_dir())
    files = sorted(entry for entry in entries if not entry.is_dir())
    pad = "  " * (indent + 1)
    lines = [f"{'  ' * indent}{path.name}:"]
    lines.extend(f"{pad}{file.name}" for file in files)
    lines.extend(ls_ascii(directory, indent + 1) for directory in dirs)
    return "\n".join(lines)


def remove_nested(paths: Iterable) -> list[Path]:
    """Keep only the outermost of paths that are nested in one another."""
    kept: list[Path] = []
    for path in map(Path, paths):
        for index, added in enumerate(kept):
            if _starts_with(added, path):
                kept[index] = path
                break
            if _starts_with(path, added):
                break
        else:
            kept.append(path)
    return kept


def _has_file_name(path: Path) -> bool:
    return bool(path.name) and path.name != ".."


def append_str_to_filename(path, suffix: str) -> Path:
    """Insert ``suffix`` between the file stem and its extension."""
    path = Path(path)
    if not _has_file_name(path):
        raise PathError(f"no file present in provided path {str(path)!r}")
    return path.parent / f"{path.stem}{suffix}{path.suffix}"


def determine_pdb_filename(path) -> Path | None:
    """Path of the ``.pdb`` next to ``path``, if that file exists."""
    path = Path(path)
    if not _has_file_name(path):
        return None
    candidate = path.parent / f"{path.stem}.pdb"
    return candidate if candidate.exists() else None