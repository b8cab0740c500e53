from __future__ import annotations

from dataclasses import dataclass
from typing import List

from realfunctions_codegen.catalog import CATALOG_SECTIONS, CatalogSection, FunctionSpec
from realfunctions_codegen.derivatives import render_derivative
from realfunctions_codegen.errors import CodegenError
from realfunctions_codegen.scalar_types import TargetType
from realfunctions_codegen.selector import AccelerationPolicy, select_policy
from realfunctions_codegen.signatures import (
    render_accelerated_arguments,
    render_call,
    render_declaration,
)
from realfunctions_codegen.templates import get_template

_SIGN_GAMMA_NOTE = "\n".join(
    [
        "    // signGamma is not generated: it would have to return a vector of",
        "    // FloatingPointSign, so SIMD types cannot conform to RealFunctions.",
    ]
)


@dataclass(frozen=True)
class _RenderedSection:
    title: str
    where_clause: str
    body: str
    note: str | None = None


def render_function_implementation(spec: FunctionSpec, target: TargetType) -> str:
    if not target.is_vector and not target.is_generic:
        raise CodegenError(
            f"{target.type_name} takes its implementations from RealModule"
        )
    policy = select_policy(target, spec)
    rendered = get_template("real_function.swift.j2").render(
        accelerated=policy is AccelerationPolicy.ACCELERATED,
        declaration=render_declaration(spec, target.type_name),
        alias=spec.accelerated_alias,
        accelerated_arguments=render_accelerated_arguments(spec),
        element_call=render_call(spec, indexed=True, qualifier="."),
    )
    return rendered.rstrip("\n")


def _where_clause(section: CatalogSection, target: TargetType) -> str:
    if target.is_generic:
        return f" where Scalar: {section.protocol}"
    return ""


def _is_accelerated(target: TargetType) -> bool:
    return any(
        select_policy(target, spec) is AccelerationPolicy.ACCELERATED
        for section in CATALOG_SECTIONS
        for spec in section.functions
    )


def render_implementations(target: TargetType) -> str:
    sections: List[_RenderedSection] = []
    for section in CATALOG_SECTIONS:
        body = "\n\n".join(
            render_function_implementation(spec, target) for spec in section.functions
        )
        sections.append(
            _RenderedSection(
                title=section.title,
                where_clause=_where_clause(section, target),
                body=body,
                note=_SIGN_GAMMA_NOTE if section.protocol == "RealFunctions" else None,
            )
        )
    text = get_template("real_functions.swift.j2").render(
        accelerated=_is_accelerated(target),
        object_type=target.object_type,
        sections=sections,
    )
    return text.rstrip("\n") + "\n"


def render_derivatives(target: TargetType) -> str:
    sections: List[_RenderedSection] = []
    for section in CATALOG_SECTIONS:
        body = "\n\n".join(render_derivative(spec, target) for spec in section.functions)
        sections.append(
            _RenderedSection(title=section.title, where_clause="", body=body)
        )
    text = get_template("derivatives.swift.j2").render(
        type_name=target.type_name,
        sections=sections,
    )
    return text.rstrip("\n") + "\n"


__all__ = [
    "render_derivatives",
    "render_function_implementation",
    "render_implementations",
]
