import os
from pathlib import Path

import pytest

from realfunctions_codegen.generator import ArtifactKey, ArtifactKind, render_text
from realfunctions_codegen.scalar_types import Precision, TargetType

REFERENCE_DIR = Path(__file__).resolve().parent / "golden"

GOLDEN_KEYS = [
    ArtifactKey(TargetType.generic(), ArtifactKind.IMPLEMENTATIONS),
    ArtifactKey(TargetType.scalar(Precision.F32), ArtifactKind.DERIVATIVES),
    ArtifactKey(TargetType.vector(Precision.F32, 4), ArtifactKind.IMPLEMENTATIONS),
    ArtifactKey(TargetType.vector(Precision.F64, 32), ArtifactKind.IMPLEMENTATIONS),
]


def _normalize_source(source: str) -> str:
    return "\n".join(line.rstrip() for line in source.splitlines()) + "\n"


@pytest.mark.parametrize("key", GOLDEN_KEYS, ids=lambda key: key.file_name)
def test_artifact_matches_reference(key: ArtifactKey) -> None:
    source = render_text(key)
    reference_path = REFERENCE_DIR / key.file_name
    if os.getenv("UPDATE_REFS"):
        reference_path.parent.mkdir(parents=True, exist_ok=True)
        reference_path.write_text(source, encoding="utf-8")
    expected = reference_path.read_text(encoding="utf-8")
    assert _normalize_source(source) == _normalize_source(expected)
    assert source.endswith("\n") and not source.endswith("\n\n")


def test_written_artifacts_match_reference(tmp_path: Path) -> None:
    from realfunctions_codegen import generate

    written = {artifact.key: artifact.path for artifact in generate(tmp_path)}
    for key in GOLDEN_KEYS:
        reference = (REFERENCE_DIR / key.file_name).read_text(encoding="utf-8")
        assert written[key].read_text(encoding="utf-8") == reference
