"""
Alphabet building: turn category switches into the character sets
the engine draws from.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Tuple

from .config import GeneratorConfig, DEFAULT_CONFIG

logger = logging.getLogger(__name__)


def build_required_sets(config: GeneratorConfig | None = None) -> Tuple[str, ...]:
    """
    One entry per enabled category (lowercase, uppercase, digits, symbols,
    in that order), then the custom characters as the final entry.

    Every password gets at least one character from each entry.
    """
    cfg = config or DEFAULT_CONFIG

    required = [category.chars for category in cfg.enabled_categories()]
    if cfg.custom_chars:
        required.append(cfg.custom_chars)

    return tuple(required)


def build_full_alphabet(required_sets: Iterable[str]) -> Tuple[str, ...]:
    """
    Deduplicated union of every required set.

    Sorted so a seeded generator always sees the same ordering.
    """
    chars: set[str] = set()
    for subset in required_sets:
        chars.update(subset)
    return tuple(sorted(chars))


@dataclass(frozen=True)
class Alphabet:
    required_sets: Tuple[str, ...]
    full: Tuple[str, ...]

    @classmethod
    def from_config(cls, config: GeneratorConfig | None = None) -> "Alphabet":
        required_sets = build_required_sets(config)
        full = build_full_alphabet(required_sets)
        logger.debug(
            "Built alphabet: %d required set(s), %d distinct characters",
            len(required_sets),
            len(full),
        )
        return cls(required_sets=required_sets, full=full)

    def __len__(self) -> int:
        return len(self.full)

    def entropy_bits(self, length: int) -> float:
        """
        Upper bound on the entropy of one password: every position drawn
        uniformly from the full alphabet. The required-set draws and a
        weaker random source only lower it.
        """
        if not self.full:
            return 0.0
        return length * math.log2(len(self.full))
