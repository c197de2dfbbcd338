"""
Password engine: validates a request against the alphabet and produces
passwords that contain at least one character of every required set.
"""

from __future__ import annotations

import logging
import random
import sys
from pathlib import Path
from typing import Iterator, Optional, Protocol, Sequence, TextIO

from .alphabet import Alphabet
from .config import GeneratorConfig, DEFAULT_CONFIG, ENTROPY_SOURCES

logger = logging.getLogger(__name__)


class PasswordGeneratorError(Exception):
    """Base class for fatal generation errors."""


class ConfigurationError(PasswordGeneratorError):
    """The request cannot be satisfied with the selected character sets."""


class OutputError(PasswordGeneratorError):
    """Writing to the output sink failed."""

    def __init__(self, sink: Optional[Path], cause: BaseException) -> None:
        self.sink = sink
        self.cause = cause
        if sink is not None:
            message = f"Failed to write to file '{sink}': {cause}"
        else:
            message = f"An output error occurred: {cause}"
        super().__init__(message)


class RandomSource(Protocol):
    """Anything with the random.Random selection interface."""

    def choice(self, seq: Sequence[str]) -> str: ...

    def shuffle(self, x: list) -> None: ...


class PasswordEngine:
    """
    Holds one validated generation request.

    The alphabet, length, count and random source are fixed at
    construction; every password of the batch shares the same source.
    """

    def __init__(
        self,
        alphabet: Alphabet,
        length: int,
        count: int = 1,
        rng: RandomSource | None = None,
    ) -> None:
        if not alphabet.full:
            raise ConfigurationError(
                "No character sets selected. "
                "Please use --all or select at least one category."
            )
        if length < len(alphabet.required_sets):
            raise ConfigurationError(
                f"Password length ({length}) is too short to include one "
                f"character from each selected set ({len(alphabet.required_sets)})."
            )
        if count <= 0:
            raise ConfigurationError(f"Password count must be positive, got {count}.")

        self._alphabet = alphabet
        self._length = length
        self._count = count
        self._rng: RandomSource = rng if rng is not None else random.SystemRandom()

        logger.debug(
            "Engine ready: length=%d count=%d alphabet=%d (at most %.1f bits per password)",
            length,
            count,
            len(alphabet),
            self.entropy_bits,
        )

    @property
    def required_sets(self) -> tuple[str, ...]:
        return self._alphabet.required_sets

    @property
    def full_alphabet(self) -> tuple[str, ...]:
        return self._alphabet.full

    @property
    def length(self) -> int:
        return self._length

    @property
    def count(self) -> int:
        return self._count

    @property
    def entropy_bits(self) -> float:
        return self._alphabet.entropy_bits(self._length)

    def create_one(self) -> str:
        rng = self._rng
        chars: list[str] = []

        # One character from each required set first...
        for subset in self.required_sets:
            chars.append(rng.choice(subset))

        # ...then fill the rest from the full alphabet.
        for _ in range(self._length - len(chars)):
            chars.append(rng.choice(self.full_alphabet))

        # Required characters must not stay at the front.
        rng.shuffle(chars)
        return "".join(chars)

    def generate_batch(self) -> Iterator[str]:
        for _ in range(self._count):
            yield self.create_one()

    def write(self, sink: TextIO, sink_path: Optional[Path] = None) -> int:
        """
        Write the whole batch, one password per line.

        Stops at the first failed write; lines already written stay.
        Returns the number of passwords written.
        """
        written = 0
        for password in self.generate_batch():
            self._write_line(sink, password + "\n", sink_path)
            written += 1
        try:
            sink.flush()
        except (OSError, ValueError) as exc:
            raise OutputError(sink_path, exc) from exc

        logger.debug("Wrote %d password(s)", written)
        return written

    @staticmethod
    def _write_line(sink: TextIO, line: str, sink_path: Optional[Path]) -> None:
        try:
            sink.write(line)
        except (OSError, ValueError) as exc:
            # ValueError: write to a closed file.
            raise OutputError(sink_path, exc) from exc


def make_rng(config: GeneratorConfig | None = None) -> RandomSource:
    """Pick the random source described by the config."""
    cfg = config or DEFAULT_CONFIG

    if cfg.entropy_source not in ENTROPY_SOURCES:
        raise ConfigurationError(
            f"Unknown entropy source '{cfg.entropy_source}'. "
            f"Choose one of: {', '.join(ENTROPY_SOURCES)}."
        )

    if cfg.entropy_source == "quantum":
        # Imported lazily: qiskit is slow to load.
        from .quantum_engine import QuantumRandom

        return QuantumRandom(cfg)

    if cfg.seed is not None:
        return random.Random(cfg.seed)
    return random.SystemRandom()


def build_engine(config: GeneratorConfig | None = None) -> PasswordEngine:
    cfg = config or DEFAULT_CONFIG
    alphabet = Alphabet.from_config(cfg)
    return PasswordEngine(alphabet, cfg.length, cfg.count, rng=make_rng(cfg))


def generate(config: GeneratorConfig | None = None) -> int:
    """
    High-level pipeline:

    - Build the required sets and the full alphabet.
    - Validate the request (nothing is written if this fails).
    - Write `count` passwords to the configured sink.
    """
    cfg = config or DEFAULT_CONFIG
    engine = build_engine(cfg)

    sink = cfg.output if cfg.output is not None else sys.stdout
    return engine.write(sink, cfg.output_path)
