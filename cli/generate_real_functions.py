import argparse
from pathlib import Path
from typing import Iterable

from realfunctions_codegen.generator import generate


def _parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Generate RealFunctions implementations for SIMD types and their "
            "reverse-mode derivative registrations."
        )
    )
    parser.add_argument(
        "output_dir",
        type=Path,
        help="Directory that receives the generated Swift sources.",
    )
    return parser.parse_args(argv)


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_args(argv)
    artifacts = generate(args.output_dir)
    for artifact in artifacts:
        print(f"[realfunctions-codegen] wrote {artifact.path}")
    print(f"[realfunctions-codegen] generated {len(artifacts)} files.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
