from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from realfunctions_codegen.errors import CatalogError

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

POSITIONAL = "_"


def _check_identifier(value: str, what: str) -> None:
    if not isinstance(value, str) or not _IDENTIFIER.match(value):
        raise CatalogError(f"invalid {what}: {value!r}")


@dataclass(frozen=True)
class ArgumentSpec:
    """One argument of a catalog function.

    ``label`` ``None`` labels the argument with its own name at call sites,
    ``"_"`` makes it positional. A non-null ``fixed_type`` keeps the argument's
    type independent of the target type: it is broadcast instead of indexed
    and never receives a cotangent.
    """

    name: str
    label: str | None = POSITIONAL
    fixed_type: str | None = None

    def __post_init__(self) -> None:
        _check_identifier(self.name, "argument name")
        if self.label is not None:
            _check_identifier(self.label, "argument label")
        if self.fixed_type is not None:
            _check_identifier(self.fixed_type, "argument type")

    @property
    def is_fixed(self) -> bool:
        return self.fixed_type is not None

    @property
    def is_positional(self) -> bool:
        return self.label == POSITIONAL

    @property
    def external_name(self) -> str:
        return self.name if self.label is None else self.label


@dataclass(frozen=True)
class FunctionSpec:
    name: str
    accelerated_alias: str | None
    arguments: Tuple[ArgumentSpec, ...]

    def __post_init__(self) -> None:
        _check_identifier(self.name, "function name")
        if self.accelerated_alias is not None:
            _check_identifier(self.accelerated_alias, "accelerated alias")
        if not self.arguments:
            raise CatalogError(f"{self.name} declares no arguments")
        names = [argument.name for argument in self.arguments]
        if len(set(names)) != len(names):
            raise CatalogError(f"{self.name} declares duplicate arguments: {names}")
        if self.arguments[0].is_fixed:
            raise CatalogError(
                f"{self.name} must take a varying-type first argument"
            )

    @property
    def selector(self) -> str:
        labels = "".join(f"{argument.external_name}:" for argument in self.arguments)
        return f"{self.name}({labels})"

    @property
    def key(self) -> str:
        parts = "".join(
            f"{argument.external_name}:{argument.fixed_type or ''}"
            for argument in self.arguments
        )
        return f"{self.name}({parts})"

    @property
    def varying_arguments(self) -> Tuple[ArgumentSpec, ...]:
        return tuple(argument for argument in self.arguments if not argument.is_fixed)

    @property
    def fixed_arguments(self) -> Tuple[ArgumentSpec, ...]:
        return tuple(argument for argument in self.arguments if argument.is_fixed)


@dataclass(frozen=True)
class CatalogSection:
    title: str
    protocol: str
    functions: Tuple[FunctionSpec, ...]


def _arg(name: str, label: str | None = POSITIONAL, fixed_type: str | None = None) -> ArgumentSpec:
    return ArgumentSpec(name=name, label=label, fixed_type=fixed_type)


def _unary(name: str, alias: str | None = None, *, label: str = POSITIONAL) -> FunctionSpec:
    return FunctionSpec(name=name, accelerated_alias=alias, arguments=(_arg("x", label),))


def _binary(name: str, alias: str | None, first: ArgumentSpec, second: ArgumentSpec) -> FunctionSpec:
    return FunctionSpec(name=name, accelerated_alias=alias, arguments=(first, second))


ELEMENTARY_FUNCTIONS: Tuple[FunctionSpec, ...] = (
    _unary("exp", "exp"),
    _unary("expMinusOne", "expm1"),
    _unary("cosh", "cosh"),
    _unary("sinh", "sinh"),
    _unary("tanh", "tanh"),
    _unary("cos", "cos"),
    _unary("sin", "sin"),
    _unary("tan", "tan"),
    _unary("log", "log"),
    _unary("log", "log1p", label="onePlus"),
    _unary("acosh", "acosh"),
    _unary("asinh", "asinh"),
    _unary("atanh", "atanh"),
    _unary("acos", "acos"),
    _unary("asin", "asin"),
    _unary("atan", "atan"),
    _binary("pow", "pow", _arg("x"), _arg("n", fixed_type="Int")),
    _binary("pow", "pow", _arg("x"), _arg("y")),
    # sqrt and root have no simd counterpart.
    _unary("sqrt"),
    _binary("root", None, _arg("x"), _arg("n", fixed_type="Int")),
)

REAL_FUNCTIONS: Tuple[FunctionSpec, ...] = (
    _binary("atan2", "atan2", _arg("y", None), _arg("x", None)),
    _unary("erf", "erf"),
    _unary("erfc", "erfc"),
    _unary("exp2", "exp2"),
    _unary("exp10", "exp10"),
    _binary("hypot", "hypot", _arg("x"), _arg("y")),
    _unary("gamma", "tgamma"),
    _unary("log2", "log2"),
    _unary("log10", "log10"),
    _unary("logGamma", "lgamma"),
)

FLOATING_POINT_FUNCTIONS: Tuple[FunctionSpec, ...] = (
    _unary("abs", "simd_abs"),
)

CATALOG_SECTIONS: Tuple[CatalogSection, ...] = (
    CatalogSection("ElementaryFunctions", "ElementaryFunctions", ELEMENTARY_FUNCTIONS),
    CatalogSection("RealFunctions", "RealFunctions", REAL_FUNCTIONS),
    CatalogSection("FloatingPointFunctions", "Real", FLOATING_POINT_FUNCTIONS),
)


def all_functions() -> Tuple[FunctionSpec, ...]:
    return ELEMENTARY_FUNCTIONS + REAL_FUNCTIONS + FLOATING_POINT_FUNCTIONS


def _build_key_index(functions: Sequence[FunctionSpec]) -> Dict[str, FunctionSpec]:
    index: Dict[str, FunctionSpec] = {}
    for spec in functions:
        if spec.key in index:
            raise CatalogError(f"duplicate catalog entry: {spec.key}")
        index[spec.key] = spec
    return index


_FUNCTIONS_BY_KEY: Dict[str, FunctionSpec] = _build_key_index(all_functions())


def lookup_key(key: str) -> FunctionSpec:
    try:
        return _FUNCTIONS_BY_KEY[key]
    except KeyError as exc:
        raise CatalogError(f"unknown catalog function: {key}") from exc


def lookup(
    name: str,
    labels: Sequence[str] | None = None,
    fixed_types: Sequence[str | None] | None = None,
) -> FunctionSpec:
    """Find one catalog function by name.

    ``labels`` and ``fixed_types`` narrow the overloads: ``fixed_types`` has
    one entry per argument, ``None`` for varying-type arguments.
    """
    candidates: List[FunctionSpec] = [
        spec for spec in all_functions() if spec.name == name
    ]
    if labels is not None:
        wanted = tuple(labels)
        candidates = [
            spec
            for spec in candidates
            if tuple(argument.external_name for argument in spec.arguments) == wanted
        ]
    if fixed_types is not None:
        wanted_types = tuple(fixed_types)
        candidates = [
            spec
            for spec in candidates
            if tuple(argument.fixed_type for argument in spec.arguments) == wanted_types
        ]
    if not candidates:
        raise CatalogError(f"unknown catalog function: {name}")
    if len(candidates) > 1:
        keys = [spec.key for spec in candidates]
        raise CatalogError(f"ambiguous catalog function {name}, candidates: {keys}")
    return candidates[0]


def derivative_reference(spec: FunctionSpec) -> str:
    # Overloads that differ only by type resolve from the registration's
    # signature; overloads that differ by label need the full selector.
    for other in all_functions():
        if other.name == spec.name and other.selector != spec.selector:
            return spec.selector
    return spec.name


__all__ = [
    "ArgumentSpec",
    "CATALOG_SECTIONS",
    "CatalogSection",
    "ELEMENTARY_FUNCTIONS",
    "FLOATING_POINT_FUNCTIONS",
    "FunctionSpec",
    "REAL_FUNCTIONS",
    "all_functions",
    "derivative_reference",
    "lookup",
    "lookup_key",
]
