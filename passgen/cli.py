"""
Command-line interface and high-level generator function.
"""
from __future__ import annotations

import logging
import sys
import unicodedata
from pathlib import Path
from typing import Annotated, Optional

import typer

from .config import GeneratorConfig, DEFAULT_CONFIG, ENTROPY_SOURCES
from .engine import OutputError, PasswordGeneratorError, build_engine

logger = logging.getLogger(__name__)

MIN_LENGTH = 6

# str.isspace() accepts these separators, but they are control characters.
_CONTROL_SEPARATORS = frozenset("\x1c\x1d\x1e\x1f")

app = typer.Typer(
    help="A command-line password generator.",
    add_completion=False,
)


def generate_password(config: GeneratorConfig | None = None) -> str:
    """
    Return a single password for `config`, ignoring its count and output.
    """
    cfg = config or DEFAULT_CONFIG
    return build_engine(cfg).create_one()


def _parse_length(value: int) -> int:
    if value < MIN_LENGTH:
        raise typer.BadParameter(
            f"The password length must be at least {MIN_LENGTH}."
        )
    return value


def _parse_chars(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not value:
        raise typer.BadParameter(
            "The custom character set cannot be empty. "
            "Please provide at least one character."
        )
    if any(c.isspace() and c not in _CONTROL_SEPARATORS for c in value):
        raise typer.BadParameter(
            "The custom character set cannot contain whitespace characters."
        )
    if any(unicodedata.category(c) == "Cc" for c in value):
        raise typer.BadParameter(
            "The custom character set cannot contain control characters."
        )
    if not value.isascii():
        raise typer.BadParameter(
            "The custom character set can only contain ASCII characters."
        )
    return value


def _parse_entropy_source(value: str) -> str:
    if value not in ENTROPY_SOURCES:
        raise typer.BadParameter(
            f"Choose one of: {', '.join(ENTROPY_SOURCES)}."
        )
    return value


def build_config(
    *,
    length: int,
    count: int,
    use_all: bool = False,
    use_lower: bool = False,
    use_upper: bool = False,
    use_digits: bool = False,
    use_symbols: bool = False,
    chars: Optional[str] = None,
    seed: Optional[int] = None,
    entropy_source: str = "system",
) -> GeneratorConfig:
    """
    Apply the category defaults: every category is enabled when --all is
    given or when neither a category flag nor --chars was chosen.
    """
    any_flag_set = (
        use_lower or use_upper or use_digits or use_symbols or chars is not None
    )
    everything = use_all or not any_flag_set

    return GeneratorConfig(
        length=length,
        count=count,
        use_lower=use_lower or everything,
        use_upper=use_upper or everything,
        use_digits=use_digits or everything,
        use_symbols=use_symbols or everything,
        custom_chars=chars,
        seed=seed,
        entropy_source=entropy_source,
    )


@app.command()
def run(
    use_all: Annotated[
        bool,
        typer.Option(
            "--all",
            "-a",
            help=(
                "Include all default character categories: "
                "lowercase, uppercase, digits, and symbols."
            ),
        ),
    ] = False,
    chars: Annotated[
        Optional[str],
        typer.Option(
            "--chars",
            "-c",
            metavar="CHARS",
            help="Specify an additional set of characters to include in the password.",
            callback=_parse_chars,
        ),
    ] = None,
    count: Annotated[
        int,
        typer.Option("--count", "-C", min=1, help="The number of passwords to generate."),
    ] = 1,
    length: Annotated[
        int,
        typer.Option(
            "--length",
            "-L",
            help="The total length of the password to be generated.",
            callback=_parse_length,
        ),
    ] = 8,
    use_lower: Annotated[
        bool, typer.Option("--use-lower", "-l", help="Include lowercase letters (a-z).")
    ] = False,
    use_upper: Annotated[
        bool, typer.Option("--use-upper", "-u", help="Include uppercase letters (A-Z).")
    ] = False,
    use_digits: Annotated[
        bool, typer.Option("--use-digits", "-d", help="Include digits (0-9).")
    ] = False,
    use_symbols: Annotated[
        bool,
        typer.Option("--use-symbols", "-s", help="Include symbols (e.g., !@#)."),
    ] = False,
    output: Annotated[
        Optional[Path],
        typer.Option(
            "--output",
            "-o",
            metavar="FILE",
            help="The output file path. If not specified, output to stdout.",
        ),
    ] = None,
    seed: Annotated[
        Optional[int],
        typer.Option("--seed", help="Seed a deterministic generator (not for real passwords)."),
    ] = None,
    entropy_source: Annotated[
        str,
        typer.Option(
            "--entropy-source",
            help="system or quantum (local qiskit simulator).",
            callback=_parse_entropy_source,
        ),
    ] = "system",
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log progress to stderr.")
    ] = False,
) -> None:
    """Generate random passwords, one per line."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )

    cfg = build_config(
        length=length,
        count=count,
        use_all=use_all,
        use_lower=use_lower,
        use_upper=use_upper,
        use_digits=use_digits,
        use_symbols=use_symbols,
        chars=chars,
        seed=seed,
        entropy_source=entropy_source,
    )

    try:
        # Built before the file is opened, so a bad request leaves nothing behind.
        engine = build_engine(cfg)
        if output is None:
            engine.write(sys.stdout)
        else:
            try:
                with open(output, "w", encoding="utf-8", newline="\n") as handle:
                    written = engine.write(handle, output)
            except OSError as exc:
                raise OutputError(output, exc) from exc
            logger.info("Wrote %d password(s) to %s", written, output)
    except PasswordGeneratorError as err:
        typer.echo(f"Error: {err}", err=True)
        raise typer.Exit(1) from err


def main() -> None:
    """
    Entry point for `python -m passgen.cli` or `run_passgen.py`.
    """
    app()


if __name__ == "__main__":
    main()
