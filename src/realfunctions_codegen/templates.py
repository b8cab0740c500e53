from __future__ import annotations

from importlib import resources

from jinja2 import Environment, FileSystemLoader, Template

_TEMPLATE_ENV: Environment | None = None


def _build_template_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(
            resources.files("realfunctions_codegen") / "templates"
        ),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def get_template_env() -> Environment:
    global _TEMPLATE_ENV
    if _TEMPLATE_ENV is None:
        _TEMPLATE_ENV = _build_template_env()
    return _TEMPLATE_ENV


def get_template(name: str) -> Template:
    return get_template_env().get_template(name)


def render_expression(source: str, **context: object) -> str:
    return get_template_env().from_string(source).render(**context)
