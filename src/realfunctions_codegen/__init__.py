__all__ = ["declared_outputs", "generate"]


def __getattr__(name: str):
    if name == "generate":
        from .generator import generate

        return generate
    if name == "declared_outputs":
        from .generator import declared_outputs

        return declared_outputs
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:
    return sorted(__all__)
