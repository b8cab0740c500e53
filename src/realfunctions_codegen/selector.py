from __future__ import annotations

from enum import Enum

from realfunctions_codegen.catalog import FunctionSpec
from realfunctions_codegen.scalar_types import Precision, TargetType

# The simd library stops at 16 lanes, and only for single precision there.
ACCELERATION_MAX_WIDTH = 16


class AccelerationPolicy(str, Enum):
    ACCELERATED = "accelerated"
    ELEMENT_WISE = "element_wise"


def is_acceleration_eligible(target: TargetType) -> bool:
    if not target.is_vector:
        return False
    if target.width < ACCELERATION_MAX_WIDTH:
        return True
    return (
        target.width == ACCELERATION_MAX_WIDTH
        and target.precision is Precision.F32
    )


def select_policy(target: TargetType, spec: FunctionSpec) -> AccelerationPolicy:
    if spec.accelerated_alias is None:
        return AccelerationPolicy.ELEMENT_WISE
    if not is_acceleration_eligible(target):
        return AccelerationPolicy.ELEMENT_WISE
    return AccelerationPolicy.ACCELERATED


__all__ = [
    "ACCELERATION_MAX_WIDTH",
    "AccelerationPolicy",
    "is_acceleration_eligible",
    "select_policy",
]
