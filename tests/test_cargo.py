import json
import subprocess
from pathlib import Path

import pytest

from sitekit.cargo import Dependency, Metadata, Package, Resolve, ResolveNode, Target

ROOT = Path("/work/space")


def _metadata_dict(with_resolve=True):
    data = {
        "workspace_root": str(ROOT),
        "target_directory": str(ROOT / "target"),
        "packages": [
            {
                "id": "app",
                "name": "app",
                "manifest_path": str(ROOT / "app" / "Cargo.toml"),
                "targets": [
                    {"name": "app", "kind": ["bin"], "crate_types": ["bin"]},
                    {"name": "app", "kind": ["cdylib", "rlib"], "crate_types": ["cdylib", "rlib"]},
                ],
                "dependencies": [
                    {"name": "front", "path": str(ROOT / "front")},
                    {"name": "serde"},
                ],
            },
            {
                "id": "front",
                "name": "front",
                "manifest_path": str(ROOT / "front" / "Cargo.toml"),
                "targets": [{"name": "front", "kind": ["lib"], "crate_types": ["rlib"]}],
                "dependencies": [{"name": "shared", "path": "/elsewhere/shared"}],
            },
            {
                "id": "other",
                "name": "other",
                "manifest_path": str(ROOT / "other" / "Cargo.toml"),
                "targets": [],
                "dependencies": [{"name": "unused", "path": str(ROOT / "unused")}],
            },
        ],
        "resolve": None,
    }
    if with_resolve:
        data["resolve"] = {
            "nodes": [
                {"id": "app", "deps": [{"pkg": "front"}, {"pkg": "serde"}]},
                {"id": "front", "deps": [{"pkg": "shared"}]},
                {"id": "shared", "deps": []},
                {"id": "serde", "deps": []},
                {"id": "other", "deps": [{"pkg": "unused"}]},
            ]
        }
    return data


@pytest.fixture
def metadata():
    return Metadata.from_json(json.dumps(_metadata_dict()))


def test_target_queries(metadata):
    app = metadata.package_for("app")
    assert app.has_bin_target()
    assert [t.kind for t in app.bin_targets()] == [("bin",)]
    assert app.cdylib_target().crate_types == ("cdylib", "rlib")
    assert app.target_list() == "app (bin), app (cdylib, rlib)"
    front = metadata.package_for("front")
    assert not front.has_bin_target()
    assert front.cdylib_target() is None


def test_package_for_unknown(metadata):
    assert metadata.package_for("missing") is None


def test_package_path_dependencies(metadata):
    assert metadata.package_for("app").path_dependencies() == [ROOT / "front"]


def test_deps_for_is_transitive(metadata):
    assert metadata.resolve.deps_for("app") == {"app", "front", "shared", "serde"}
    assert metadata.resolve.deps_for("missing") == set()


def test_deps_for_handles_cycles():
    resolve = Resolve(nodes=(ResolveNode("a", ("b",)), ResolveNode("b", ("a",))))
    assert resolve.deps_for("a") == {"a", "b"}


def test_path_dependencies(metadata):
    assert metadata.path_dependencies("app") == [ROOT / "front", Path("/elsewhere/shared")]


def test_path_dependencies_without_resolve():
    meta = Metadata.from_json(_metadata_dict(with_resolve=False))
    assert meta.path_dependencies("app") == []


def test_src_path_dependencies(metadata):
    assert metadata.src_path_dependencies("app") == [
        Path("front") / "src",
        Path("/elsewhere/shared") / "src",
    ]


def test_rel_target_dir(metadata):
    assert metadata.rel_target_dir() == Path("target")


def test_is_bin_from_kind():
    assert Target("x", kind=("bin",)).is_bin()
    assert not Target("x", kind=("lib",), crate_types=("bin",)).is_bin()


def test_dependency_without_path():
    pkg = Package("p", "p", Path("Cargo.toml"), dependencies=(Dependency("d"),))
    assert pkg.path_dependencies() == []


def test_load_cleaned_missing_cargo(tmp_path, monkeypatch):
    monkeypatch.setenv("CARGO", str(tmp_path / "missing-cargo"))
    with pytest.raises((FileNotFoundError, subprocess.SubprocessError)):
        Metadata.load_cleaned(tmp_path / "Cargo.toml")