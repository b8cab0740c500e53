from __future__ import annotations

from realfunctions_codegen.catalog import ArgumentSpec, FunctionSpec


def _parameter(argument: ArgumentSpec, type_name: str) -> str:
    parameter_type = argument.fixed_type or type_name
    if argument.label is None:
        return f"{argument.name}: {parameter_type}"
    return f"{argument.label} {argument.name}: {parameter_type}"


def _call_argument(argument: ArgumentSpec, indexed: bool) -> str:
    value = argument.name
    if indexed and not argument.is_fixed:
        value = f"{value}[i]"
    if argument.is_positional:
        return value
    return f"{argument.external_name}: {value}"


def render_parameters(spec: FunctionSpec, type_name: str) -> str:
    return ", ".join(_parameter(argument, type_name) for argument in spec.arguments)


def render_call_arguments(spec: FunctionSpec, indexed: bool = False) -> str:
    """Arguments at an implementation site.

    With ``indexed`` set, varying-type arguments are read per vector lane
    (``x[i]``) while fixed-type arguments are passed through unchanged.
    """
    return ", ".join(_call_argument(argument, indexed) for argument in spec.arguments)


def render_accelerated_arguments(spec: FunctionSpec) -> str:
    arguments = []
    for argument in spec.arguments:
        if argument.is_fixed:
            arguments.append(f".init(repeating: .init({argument.name}))")
        else:
            arguments.append(argument.name)
    return ", ".join(arguments)


def render_call(spec: FunctionSpec, indexed: bool = False, qualifier: str = "") -> str:
    return f"{qualifier}{spec.name}({render_call_arguments(spec, indexed)})"


def render_declaration(spec: FunctionSpec, type_name: str) -> str:
    return (
        f"public static func {spec.name}({render_parameters(spec, type_name)})"
        f" -> {type_name}"
    )
