from __future__ import annotations

from pathlib import Path


class CodegenError(RuntimeError):
    pass


class CatalogError(CodegenError, ValueError):
    pass


class WriteFailureError(CodegenError):
    def __init__(self, path: Path, cause: BaseException) -> None:
        super().__init__(f"failed to write {path}: {cause}")
        self.path = path
        self.cause = cause
