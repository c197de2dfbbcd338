"""
Configuration for the password generator.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, TextIO


class Category(Enum):
    """Predefined character classes, in the order they are applied."""

    LOWER = "abcdefghijklmnopqrstuvwxyz"
    UPPER = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    DIGIT = "0123456789"
    SYMBOL = "!@#$%^&*()_-+=[]{}|;:,.<>?"

    @property
    def chars(self) -> str:
        return self.value


LOWERCASE = Category.LOWER.chars
UPPERCASE = Category.UPPER.chars
DIGITS = Category.DIGIT.chars
SYMBOLS = Category.SYMBOL.chars

ENTROPY_SOURCES = ("system", "quantum")


@dataclass
class GeneratorConfig:
    # Characters per password.
    length: int = 8

    # Number of passwords to write.
    count: int = 1

    # Category switches. The CLI decides the "all by default" policy;
    # the engine takes these as given.
    use_lower: bool = True
    use_upper: bool = True
    use_digits: bool = True
    use_symbols: bool = True

    # Extra characters treated as one more required set.
    custom_chars: Optional[str] = None

    # Sink for generated passwords. None means standard output.
    output: Optional[TextIO] = None
    # Only used to label write errors.
    output_path: Optional[Path] = None

    # "system" (OS randomness) or "quantum" (qiskit simulator).
    entropy_source: str = "system"
    # Deterministic PRNG seed, mainly for reproducible runs.
    seed: Optional[int] = None

    # Quantum source settings.
    # NOTE: Keep num_qubits <= backend limit (often 20–29 for local simulators).
    num_qubits: int = 20
    entropy_rounds: int = 2
    quantum_streams: int = 2

    def enabled_categories(self) -> list[Category]:
        flags = {
            Category.LOWER: self.use_lower,
            Category.UPPER: self.use_upper,
            Category.DIGIT: self.use_digits,
            Category.SYMBOL: self.use_symbols,
        }
        return [category for category in Category if flags[category]]


# Default configuration instance you can import elsewhere
DEFAULT_CONFIG = GeneratorConfig()
