from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from realfunctions_codegen.errors import CatalogError


class Precision(str, Enum):
    F32 = "Float"
    F64 = "Double"

    @property
    def type_name(self) -> str:
        return self.value


PRECISIONS: Tuple[Precision, ...] = (Precision.F32, Precision.F64)
SIMD_WIDTHS: Tuple[int, ...] = (2, 4, 8, 16, 32, 64)


@dataclass(frozen=True)
class TargetType:
    """A type the generator emits code for.

    ``precision`` and ``width`` both ``None`` is the generic ``SIMD``
    protocol extension; ``width`` ``None`` alone is the bare scalar type.
    """

    precision: Precision | None = None
    width: int | None = None

    def __post_init__(self) -> None:
        if self.width is not None:
            if self.precision is None:
                raise CatalogError("vector targets require a scalar precision")
            if self.width not in SIMD_WIDTHS:
                raise CatalogError(
                    f"unsupported SIMD width {self.width}, expected one of {SIMD_WIDTHS}"
                )
        if self.precision is not None and not isinstance(self.precision, Precision):
            raise CatalogError(f"unsupported scalar precision: {self.precision!r}")

    @classmethod
    def generic(cls) -> "TargetType":
        return cls()

    @classmethod
    def scalar(cls, precision: Precision) -> "TargetType":
        return cls(precision=precision)

    @classmethod
    def vector(cls, precision: Precision, width: int) -> "TargetType":
        return cls(precision=precision, width=width)

    @property
    def is_generic(self) -> bool:
        return self.precision is None

    @property
    def is_vector(self) -> bool:
        return self.width is not None

    @property
    def type_name(self) -> str:
        if self.is_generic:
            return "Self"
        if self.width is None:
            return self.precision.type_name
        return f"SIMD{self.width}<{self.precision.type_name}>"

    @property
    def object_type(self) -> str:
        if self.is_generic:
            return "SIMD"
        return self.type_name

    @property
    def scalar_name(self) -> str:
        if self.is_generic:
            return "Scalar"
        return self.precision.type_name
