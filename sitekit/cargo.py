"""Workspace metadata as reported by ``cargo metadata``."""

from __future__ import annotations

import json
import os
import subprocess
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .paths import PathError, clean_windows_path, unbase


@dataclass(frozen=True)
class Target:
    name: str
    kind: tuple[str, ...] = ()
    crate_types: tuple[str, ...] = ()
    src_path: Path | None = None

    def is_bin(self) -> bool:
        return "bin" in self.kind


@dataclass(frozen=True)
class Dependency:
    name: str
    path: Path | None = None


@dataclass(frozen=True)
class Package:
    id: str
    name: str
    manifest_path: Path
    targets: tuple[Target, ...] = ()
    dependencies: tuple[Dependency, ...] = ()

    def has_bin_target(self) -> bool:
        return any(target.is_bin() for target in self.targets)

    def bin_targets(self) -> Iterator[Target]:
        return (target for target in self.targets if target.is_bin())

    def cdylib_target(self) -> Target | None:
        return next((t for t in self.targets if "cdylib" in t.crate_types), None)

    def target_list(self) -> str:
        return ", ".join(
            f"{target.name} ({', '.join(target.crate_types)})" for target in self.targets
        )

    def path_dependencies(self) -> list[Path]:
        return [dep.path for dep in self.dependencies if dep.path is not None]


@dataclass(frozen=True)
class ResolveNode:
    id: str
    deps: tuple[str, ...] = ()


@dataclass(frozen=True)
class Resolve:
    nodes: tuple[ResolveNode, ...] = ()

    def deps_for(self, package_id: str) -> set[str]:
        """Ids of ``package_id`` and everything it depends on, transitively."""
        nodes = {node.id: node for node in reversed(self.nodes)}
        found: set[str] = set()
        pending = [package_id]
        while pending:
            node = nodes.get(pending.pop())
            if node is None or node.id in found:
                continue
            found.add(node.id)
            pending.extend(reversed(node.deps))
        return found


def _optional_path(value) -> Path | None:
    return None if value is None else Path(value)


def _parse_package(data: Mapping) -> Package:
    return Package(
        id=data["id"],
        name=data["name"],
        manifest_path=Path(data["manifest_path"]),
        targets=tuple(
            Target(
                name=target["name"],
                kind=tuple(target.get("kind", ())),
                crate_types=tuple(target.get("crate_types", ())),
                src_path=_optional_path(target.get("src_path")),
            )
            for target in data.get("targets", ())
        ),
        dependencies=tuple(
            Dependency(name=dep["name"], path=_optional_path(dep.get("path")))
            for dep in data.get("dependencies", ())
        ),
    )


def _parse_resolve(data: Mapping | None) -> Resolve | None:
    if data is None:
        return None
    return Resolve(
        nodes=tuple(
            ResolveNode(
                id=node["id"],
                deps=tuple(dep["pkg"] for dep in node.get("deps", ())),
            )
            for node in data.get("nodes", ())
        )
    )


@dataclass(frozen=True)
class Metadata:
    packages: tuple[Package, ...]
    workspace_root: Path
    target_directory: Path
    resolve: Resolve | None = field(default=None)

    @classmethod
    def from_json(cls, data) -> Metadata:
        """Build from the JSON text or decoded object of ``cargo metadata``."""
        if isinstance(data, (str, bytes, bytearray)):
            data = json.loads(data)
        return cls(
            packages=tuple(_parse_package(pkg) for pkg in data.get("packages", ())),
            workspace_root=Path(data["workspace_root"]),
            target_directory=Path(data["target_directory"]),
            resolve=_parse_resolve(data.get("resolve")),
        )

    @classmethod
    def load_cleaned(cls, manifest_path) -> Metadata:
        """Run ``cargo metadata`` for ``manifest_path`` and clean its paths."""
        cargo = os.environ.get("CARGO", "cargo")
        completed = subprocess.run(
            [
                cargo,
                "metadata",
                "--format-version",
                "1",
                "--manifest-path",
                os.fspath(manifest_path),
            ],
            check=True,
            capture_output=True,
        )
        metadata = cls.from_json(completed.stdout)
        packages = tuple(
            Package(
                id=pkg.id,
                name=pkg.name,
                manifest_path=clean_windows_path(pkg.manifest_path),
                targets=pkg.targets,
                dependencies=tuple(
                    Dependency(dep.name, None if dep.path is None else clean_windows_path(dep.path))
                    for dep in pkg.dependencies
                ),
            )
            for pkg in metadata.packages
        )
        return cls(
            packages=packages,
            workspace_root=clean_windows_path(metadata.workspace_root),
            target_directory=clean_windows_path(metadata.target_directory),
            resolve=metadata.resolve,
        )

    def rel_target_dir(self) -> Path:
        return Path(os.path.relpath(self.target_directory, self.workspace_root))

    def package_for(self, package_id: str) -> Package | None:
        return next((pkg for pkg in self.packages if pkg.id == package_id), None)

    def path_dependencies(self, package_id: str) -> list[Path]:
        """Local path dependencies of the package and all it depends on."""
        if self.resolve is None:
            return []
        ids = self.resolve.deps_for(package_id)
        return [
            path
            for pkg in self.packages
            if pkg.id in ids
            for path in pkg.path_dependencies()
        ]

    def src_path_dependencies(self, package_id: str) -> list[Path]:
        """The ``src`` directories of the path dependencies, workspace relative."""
        found = []
        for path in self.path_dependencies(package_id):
            try:
                base = unbase(path, self.workspace_root)
            except PathError:
                base = path
            found.append(base / "src")
        return found