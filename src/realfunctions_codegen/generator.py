"""Expand the (precision, width, kind) matrix into written artifacts.

Every artifact depends only on its own key, so artifacts are rendered and
written concurrently. The first failure cancels the remaining work and
surfaces as :class:`WriteFailureError`; nothing is retried.
"""

from __future__ import annotations

import contextlib
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List

from realfunctions_codegen.emitter import render_derivatives, render_implementations
from realfunctions_codegen.errors import CatalogError, WriteFailureError
from realfunctions_codegen.scalar_types import PRECISIONS, SIMD_WIDTHS, TargetType


class ArtifactKind(str, Enum):
    IMPLEMENTATIONS = "implementations"
    DERIVATIVES = "derivatives"


@dataclass(frozen=True)
class ArtifactKey:
    target: TargetType
    kind: ArtifactKind

    def __post_init__(self) -> None:
        if self.target.is_generic and self.kind is ArtifactKind.DERIVATIVES:
            raise CatalogError("the generic SIMD extension has no derivatives")
        if (
            not self.target.is_generic
            and not self.target.is_vector
            and self.kind is ArtifactKind.IMPLEMENTATIONS
        ):
            raise CatalogError(
                f"{self.target.type_name} implementations come from RealModule"
            )

    @property
    def file_name(self) -> str:
        target = self.target
        if target.is_generic:
            stem = "SIMD+RealFunctions"
        elif target.is_vector:
            stem = f"SIMD{target.width}+{target.precision.type_name}+RealFunctions"
        else:
            stem = f"{target.precision.type_name}+RealFunctions"
        if self.kind is ArtifactKind.DERIVATIVES:
            stem = f"{stem}+Derivatives"
        return f"{stem}.swift"


@dataclass(frozen=True)
class GeneratedArtifact:
    key: ArtifactKey
    path: Path
    text: str


def artifact_keys() -> List[ArtifactKey]:
    keys = [ArtifactKey(TargetType.generic(), ArtifactKind.IMPLEMENTATIONS)]
    for precision in PRECISIONS:
        keys.append(ArtifactKey(TargetType.scalar(precision), ArtifactKind.DERIVATIVES))
        for width in SIMD_WIDTHS:
            target = TargetType.vector(precision, width)
            keys.append(ArtifactKey(target, ArtifactKind.IMPLEMENTATIONS))
            keys.append(ArtifactKey(target, ArtifactKind.DERIVATIVES))
    return keys


def artifact_path(key: ArtifactKey, output_root: Path | str) -> Path:
    return Path(output_root) / key.file_name


def declared_outputs(output_root: Path | str) -> List[Path]:
    paths = [artifact_path(key, output_root) for key in artifact_keys()]
    if len(set(paths)) != len(paths):
        raise CatalogError("artifact paths collide")
    return paths


def render_text(key: ArtifactKey) -> str:
    if key.kind is ArtifactKind.IMPLEMENTATIONS:
        return render_implementations(key.target)
    return render_derivatives(key.target)


def render_artifact(key: ArtifactKey, output_root: Path | str) -> GeneratedArtifact:
    return GeneratedArtifact(
        key=key, path=artifact_path(key, output_root), text=render_text(key)
    )


def write_artifact(artifact: GeneratedArtifact) -> None:
    path = artifact.path
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        tmp_path.write_text(artifact.text, encoding="utf-8")
        os.replace(tmp_path, path)
    except OSError as exc:
        with contextlib.suppress(OSError):
            tmp_path.unlink(missing_ok=True)
        # A previous run's file must not pass for this run's output.
        with contextlib.suppress(OSError):
            path.unlink(missing_ok=True)
        raise WriteFailureError(path, exc) from exc


def _render_and_write(key: ArtifactKey, output_root: Path) -> GeneratedArtifact:
    artifact = render_artifact(key, output_root)
    write_artifact(artifact)
    return artifact


def generate(output_root: Path | str, *, jobs: int | None = None) -> List[GeneratedArtifact]:
    root = Path(output_root)
    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise WriteFailureError(root, exc) from exc
    keys = artifact_keys()
    declared_outputs(root)
    with ThreadPoolExecutor(max_workers=jobs) as executor:
        futures = [executor.submit(_render_and_write, key, root) for key in keys]
        try:
            for future in as_completed(futures):
                future.result()
        except BaseException:
            for future in futures:
                future.cancel()
            raise
    return [future.result() for future in futures]


__all__ = [
    "ArtifactKey",
    "ArtifactKind",
    "GeneratedArtifact",
    "artifact_keys",
    "artifact_path",
    "declared_outputs",
    "generate",
    "render_artifact",
    "render_text",
    "write_artifact",
]
