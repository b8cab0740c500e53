"""Closed-form reverse-mode derivatives for every catalog function.

Partials are written as derivative expressions over the forward inputs, the
forward result ``value`` and optional local bindings; ``{{ T }}`` stands for
the scalar type of the target. The pullback for a cotangent ``v`` returns
``v * partial`` per varying argument, in argument order. Fixed-type
arguments never receive a cotangent.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Sequence, Tuple

from realfunctions_codegen.catalog import (
    FunctionSpec,
    all_functions,
    derivative_reference,
    lookup_key,
)
from realfunctions_codegen.errors import CatalogError, CodegenError
from realfunctions_codegen.scalar_types import TargetType
from realfunctions_codegen.signatures import render_call, render_parameters
from realfunctions_codegen.templates import get_template, render_expression

_VALUE = re.compile(r"\bvalue\b")


class FormulaKind(str, Enum):
    CLOSED_FORM = "closed_form"
    SIGN_PIECEWISE = "sign_piecewise"
    UNIMPLEMENTED = "unimplemented"


@dataclass(frozen=True)
class DerivativeFormula:
    kind: FormulaKind
    partials: Tuple[str, ...] = ()
    bindings: Tuple[Tuple[str, str], ...] = ()

    @property
    def uses_value(self) -> bool:
        expressions = list(self.partials) + [expr for _, expr in self.bindings]
        return any(_VALUE.search(expr) for expr in expressions)


def _closed(*partials: str, bindings: Sequence[Tuple[str, str]] = ()) -> DerivativeFormula:
    return DerivativeFormula(
        kind=FormulaKind.CLOSED_FORM, partials=tuple(partials), bindings=tuple(bindings)
    )


_UNIMPLEMENTED = DerivativeFormula(kind=FormulaKind.UNIMPLEMENTED)
_SIGN_PIECEWISE = DerivativeFormula(kind=FormulaKind.SIGN_PIECEWISE)

_FORMULAS: Dict[str, DerivativeFormula] = {
    # ElementaryFunctions
    "exp(_:)": _closed("value"),
    "expMinusOne(_:)": _closed("exp(x)"),
    "cosh(_:)": _closed("sinh(x)"),
    "sinh(_:)": _closed("cosh(x)"),
    "tanh(_:)": _closed("1 - value * value"),
    "cos(_:)": _closed("-sin(x)"),
    "sin(_:)": _closed("cos(x)"),
    "tan(_:)": _closed("1 / (cosx * cosx)", bindings=[("cosx", "cos(x)")]),
    "log(_:)": _closed("1 / x"),
    "log(onePlus:)": _closed("1 / (1 + x)"),
    # acosh is only defined for x > 1
    "acosh(_:)": _closed("1 / sqrt(x * x - 1)"),
    "asinh(_:)": _closed("1 / sqrt(x * x + 1)"),
    "atanh(_:)": _closed("1 / (1 - x * x)"),
    "acos(_:)": _closed("-1 / sqrt(1 - x * x)"),
    "asin(_:)": _closed("1 / sqrt(1 - x * x)"),
    "atan(_:)": _closed("1 / (x * x + 1)"),
    "pow(_:_:Int)": _closed("{{ T }}(n) * pow(x, n - 1)"),
    # the y partial is not defined for x < 0 or for x == 0, y == 0
    "pow(_:_:)": _closed("y * pow(x, y - 1)", "value * log(x)"),
    "sqrt(_:)": _closed("1 / (2 * value)"),
    "root(_:_:Int)": _closed("value / (x * {{ T }}(n))"),
    # RealFunctions
    "atan2(y:x:)": _closed("x / c", "-y / c", bindings=[("c", "x * x + y * y")]),
    "erf(_:)": _closed("2 * exp(-x * x) / {{ T }}.sqrt({{ T }}.pi)"),
    "erfc(_:)": _closed("-2 * exp(-x * x) / {{ T }}.sqrt({{ T }}.pi)"),
    "exp2(_:)": _closed("value * {{ T }}.log(2)"),
    "exp10(_:)": _closed("value * {{ T }}.log(10)"),
    "hypot(_:_:)": _closed("x / c", "y / c", bindings=[("c", "sqrt(x * x + y * y)")]),
    "gamma(_:)": _UNIMPLEMENTED,
    "log2(_:)": _closed("1 / ({{ T }}.log(2) * x)"),
    "log10(_:)": _closed("1 / ({{ T }}.log(10) * x)"),
    "logGamma(_:)": _UNIMPLEMENTED,
    # FloatingPointFunctions
    "abs(_:)": _SIGN_PIECEWISE,
}


def _validate_formulas() -> None:
    catalog_keys = {spec.key for spec in all_functions()}
    errors: List[str] = []
    missing = sorted(catalog_keys - _FORMULAS.keys())
    if missing:
        errors.append(f"catalog functions without a derivative formula: {missing}")
    unexpected = sorted(_FORMULAS.keys() - catalog_keys)
    if unexpected:
        errors.append(f"derivative formulas without a catalog function: {unexpected}")
    for key in sorted(catalog_keys & _FORMULAS.keys()):
        formula = _FORMULAS[key]
        if formula.kind is not FormulaKind.CLOSED_FORM:
            continue
        arity = len(lookup_key(key).varying_arguments)
        if len(formula.partials) != arity:
            errors.append(
                f"{key} has {len(formula.partials)} partials for {arity} varying arguments"
            )
    if errors:
        raise CatalogError(
            "derivative table/catalog drift detected:\n" + "\n".join(errors)
        )


_validate_formulas()


def formula_for(spec: FunctionSpec) -> DerivativeFormula:
    try:
        return _FORMULAS[spec.key]
    except KeyError as exc:
        raise CatalogError(f"no derivative formula for {spec.key}") from exc


def _has_top_level_sum(expr: str) -> bool:
    depth = 0
    previous = ""
    for char in expr:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif char in "+-" and depth == 0 and previous and (
            previous.isalnum() or previous in "_)."
        ):
            return True
        if not char.isspace():
            previous = char
    return False


def scale_by_cotangent(partial: str, cotangent: str = "v") -> str:
    """Render ``cotangent * partial`` without redundant factors."""
    if _has_top_level_sum(partial):
        return f"{cotangent} * ({partial})"
    if partial.startswith("-"):
        return f"-{scale_by_cotangent(partial[1:], cotangent)}"
    if partial.startswith("1 / "):
        return f"{cotangent} / {partial[len('1 / '):]}"
    return f"{cotangent} * {partial}"


def render_bindings(formula: DerivativeFormula, scalar_name: str) -> List[Tuple[str, str]]:
    return [
        (name, render_expression(expr, T=scalar_name)) for name, expr in formula.bindings
    ]


def cotangent_expressions(formula: DerivativeFormula, scalar_name: str) -> List[str]:
    return [
        scale_by_cotangent(render_expression(partial, T=scalar_name))
        for partial in formula.partials
    ]


def _pullback_result(formula: DerivativeFormula, scalar_name: str) -> str:
    cotangents = cotangent_expressions(formula, scalar_name)
    if len(cotangents) == 1:
        return cotangents[0]
    return f"({', '.join(cotangents)})"


def _closed_form_body(spec: FunctionSpec, formula: DerivativeFormula, scalar_name: str) -> List[str]:
    forward = render_call(spec)
    result = _pullback_result(formula, scalar_name)
    bindings = render_bindings(formula, scalar_name)
    lines: List[str] = []
    value = forward
    prefix = ""
    if formula.uses_value:
        lines.append(f"let value = {forward}")
        value = "value"
        prefix = "return "
    if not bindings:
        lines.append(f"{prefix}(value: {value}, pullback: {{ v in {result} }})")
        return lines
    lines.append(f"{prefix}(")
    lines.append(f"    value: {value},")
    lines.append("    pullback: { v in")
    lines.extend(f"        let {name} = {expr}" for name, expr in bindings)
    lines.append(f"        return {result}")
    lines.append("    }")
    lines.append(")")
    return lines


def _sign_piecewise_body(target: TargetType) -> List[str]:
    if target.is_vector:
        return [
            "(value: abs(x), pullback: { v in v.replacing(with: -v, where: x .< .zero) })"
        ]
    # zero takes the non-negative branch
    return [
        "x < 0 ? (value: -x, pullback: { v in .zero - v }) : (value: x, pullback: { v in v })"
    ]


def derivative_body(spec: FunctionSpec, target: TargetType) -> List[str]:
    formula = formula_for(spec)
    if formula.kind is FormulaKind.UNIMPLEMENTED:
        return ['fatalError("unimplemented")']
    if formula.kind is FormulaKind.SIGN_PIECEWISE:
        return _sign_piecewise_body(target)
    return _closed_form_body(spec, formula, target.scalar_name)


def vjp_name(spec: FunctionSpec) -> str:
    return f"_vjp{spec.name[0].upper()}{spec.name[1:]}"


def cotangent_type(spec: FunctionSpec, type_name: str) -> str:
    arity = len(spec.varying_arguments)
    if arity == 1:
        return type_name
    return f"({', '.join([type_name] * arity)})"


def render_derivative(spec: FunctionSpec, target: TargetType) -> str:
    if target.is_generic:
        raise CodegenError("derivatives are only registered on concrete types")
    type_name = target.type_name
    rendered = get_template("derivative.swift.j2").render(
        reference=derivative_reference(spec),
        vjp_name=vjp_name(spec),
        parameters=render_parameters(spec, type_name),
        type_name=type_name,
        cotangent_type=cotangent_type(spec, type_name),
        body=derivative_body(spec, target),
    )
    return rendered.rstrip("\n")


__all__ = [
    "DerivativeFormula",
    "FormulaKind",
    "cotangent_expressions",
    "cotangent_type",
    "derivative_body",
    "formula_for",
    "render_bindings",
    "render_derivative",
    "scale_by_cotangent",
    "vjp_name",
]
