"""
Constrained random password generator package.
"""

from .config import Category, GeneratorConfig, DEFAULT_CONFIG
from .alphabet import Alphabet, build_full_alphabet, build_required_sets
from .engine import (
    ConfigurationError,
    OutputError,
    PasswordEngine,
    PasswordGeneratorError,
    generate,
)
from .cli import generate_password

__all__ = [
    "Alphabet",
    "Category",
    "ConfigurationError",
    "DEFAULT_CONFIG",
    "GeneratorConfig",
    "OutputError",
    "PasswordEngine",
    "PasswordGeneratorError",
    "build_full_alphabet",
    "build_required_sets",
    "generate",
    "generate_password",
]
