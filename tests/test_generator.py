from __future__ import annotations

from pathlib import Path

import pytest

import realfunctions_codegen.generator as generator_module
from realfunctions_codegen import declared_outputs, generate
from realfunctions_codegen.errors import CatalogError, WriteFailureError
from realfunctions_codegen.generator import (
    ArtifactKey,
    ArtifactKind,
    GeneratedArtifact,
    artifact_keys,
    render_artifact,
    write_artifact,
)
from realfunctions_codegen.scalar_types import Precision, TargetType


def _read_all(root: Path) -> dict:
    return {path.name: path.read_bytes() for path in sorted(root.iterdir())}


def test_artifact_matrix():
    keys = artifact_keys()
    assert len(keys) == 27
    assert len(set(keys)) == len(keys)
    assert keys[0] == ArtifactKey(TargetType.generic(), ArtifactKind.IMPLEMENTATIONS)
    assert keys[1] == ArtifactKey(TargetType.scalar(Precision.F32), ArtifactKind.DERIVATIVES)
    for precision in (Precision.F32, Precision.F64):
        for width in (2, 4, 8, 16, 32, 64):
            target = TargetType.vector(precision, width)
            assert ArtifactKey(target, ArtifactKind.IMPLEMENTATIONS) in keys
            assert ArtifactKey(target, ArtifactKind.DERIVATIVES) in keys


def test_declared_outputs_names(tmp_path):
    names = [path.name for path in declared_outputs(tmp_path)]
    assert len(names) == len(set(names)) == 27
    assert "SIMD+RealFunctions.swift" in names
    assert "Float+RealFunctions+Derivatives.swift" in names
    assert "Double+RealFunctions+Derivatives.swift" in names
    assert "SIMD16+Double+RealFunctions.swift" in names
    assert "SIMD64+Float+RealFunctions+Derivatives.swift" in names
    assert all(path.parent == tmp_path for path in declared_outputs(tmp_path))


@pytest.mark.parametrize(
    "key",
    [
        lambda: ArtifactKey(TargetType.generic(), ArtifactKind.DERIVATIVES),
        lambda: ArtifactKey(TargetType.scalar(Precision.F64), ArtifactKind.IMPLEMENTATIONS),
    ],
)
def test_undeclared_keys_are_rejected(key):
    with pytest.raises(CatalogError):
        key()


def test_generate_writes_exactly_the_declared_outputs(tmp_path):
    output = tmp_path / "generated"
    artifacts = generate(output)
    assert [artifact.path for artifact in artifacts] == declared_outputs(output)
    assert sorted(output.iterdir()) == sorted(declared_outputs(output))
    for artifact in artifacts:
        assert artifact.path.read_text(encoding="utf-8") == artifact.text


def test_generate_is_idempotent(tmp_path):
    first = tmp_path / "first"
    second = tmp_path / "second"
    generate(first)
    generate(second, jobs=1)
    snapshot = _read_all(first)
    assert snapshot == _read_all(second)
    generate(first, jobs=4)
    assert _read_all(first) == snapshot


def test_render_artifact_is_pure(tmp_path):
    key = ArtifactKey(TargetType.vector(Precision.F32, 8), ArtifactKind.DERIVATIVES)
    first = render_artifact(key, tmp_path)
    second = render_artifact(key, tmp_path)
    assert first == second
    assert first.path == tmp_path / "SIMD8+Float+RealFunctions+Derivatives.swift"
    assert "extension SIMD8<Float> {" in first.text
    assert not first.path.exists()


def test_write_failure_reports_path(tmp_path):
    blocked = tmp_path / "SIMD4+Float+RealFunctions.swift"
    blocked.mkdir()
    with pytest.raises(WriteFailureError) as excinfo:
        generate(tmp_path)
    assert excinfo.value.path == blocked
    assert isinstance(excinfo.value.__cause__, OSError)
    assert not list(tmp_path.glob("*.tmp"))


def test_unusable_output_root(tmp_path):
    root = tmp_path / "not-a-directory"
    root.write_text("", encoding="utf-8")
    with pytest.raises(WriteFailureError) as excinfo:
        generate(root)
    assert excinfo.value.path == root


def test_failed_write_removes_stale_artifact(tmp_path, monkeypatch):
    path = tmp_path / "Float+RealFunctions+Derivatives.swift"
    path.write_text("stale", encoding="utf-8")

    def _fail_replace(src, dst):
        raise PermissionError("read-only output directory")

    monkeypatch.setattr(generator_module.os, "replace", _fail_replace)
    artifact = GeneratedArtifact(
        key=ArtifactKey(TargetType.scalar(Precision.F32), ArtifactKind.DERIVATIVES),
        path=path,
        text="fresh",
    )
    with pytest.raises(WriteFailureError, match="read-only output directory"):
        write_artifact(artifact)
    assert not path.exists()
    assert not (tmp_path / "Float+RealFunctions+Derivatives.swift.tmp").exists()
