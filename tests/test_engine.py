import io
import logging
import random
from collections import Counter

import pytest

from passgen.alphabet import Alphabet
from passgen.config import DIGITS, LOWERCASE, SYMBOLS, UPPERCASE, GeneratorConfig
from passgen.engine import (
    ConfigurationError,
    OutputError,
    PasswordEngine,
    PasswordGeneratorError,
    build_engine,
    generate,
    make_rng,
)


def _config(**kwargs) -> GeneratorConfig:
    flags = {
        "use_lower": False,
        "use_upper": False,
        "use_digits": False,
        "use_symbols": False,
    }
    flags.update(kwargs)
    return GeneratorConfig(**flags)


def _engine(length: int, count: int = 1, seed: int = 0, **flags) -> PasswordEngine:
    alphabet = Alphabet.from_config(_config(**flags))
    return PasswordEngine(alphabet, length, count, rng=random.Random(seed))


class _BrokenRandom(random.Random):
    """Fails on the nth choice() call, the way a faulty entropy source would."""

    def __init__(self, fail_after: int) -> None:
        super().__init__(0)
        self.fail_after = fail_after
        self.calls = 0

    def choice(self, seq):
        if self.calls >= self.fail_after:
            raise ValueError("bitstreams of different lengths")
        self.calls += 1
        return super().choice(seq)


class _FailingSink(io.StringIO):
    """Accepts `limit` writes, then fails like a full disk."""

    def __init__(self, limit: int) -> None:
        super().__init__()
        self.limit = limit
        self.writes = 0

    def write(self, s: str) -> int:
        if self.writes >= self.limit:
            raise OSError(28, "No space left on device")
        self.writes += 1
        return super().write(s)


class TestConstruction:
    def test_length_too_short(self) -> None:
        alphabet = Alphabet.from_config(GeneratorConfig())
        with pytest.raises(ConfigurationError, match=r"\(3\).*too short.*\(4\)"):
            PasswordEngine(alphabet, 3)

    def test_length_one_with_all_categories(self) -> None:
        sink = io.StringIO()
        cfg = GeneratorConfig(length=1, output=sink)
        with pytest.raises(ConfigurationError, match="too short"):
            generate(cfg)
        assert sink.getvalue() == ""

    def test_no_categories(self) -> None:
        alphabet = Alphabet.from_config(_config())
        with pytest.raises(ConfigurationError, match="No character sets selected"):
            PasswordEngine(alphabet, 8)

    def test_no_categories_zero_length(self) -> None:
        alphabet = Alphabet.from_config(_config())
        with pytest.raises(ConfigurationError, match="No character sets selected"):
            PasswordEngine(alphabet, 0)

    def test_length_equal_to_required_sets(self) -> None:
        engine = _engine(4, use_lower=True, use_upper=True, use_digits=True, use_symbols=True)
        password = engine.create_one()
        assert len(password) == 4
        for subset in (LOWERCASE, UPPERCASE, DIGITS, SYMBOLS):
            assert any(c in subset for c in password)

    def test_count_must_be_positive(self) -> None:
        alphabet = Alphabet.from_config(GeneratorConfig())
        with pytest.raises(ConfigurationError, match="count"):
            PasswordEngine(alphabet, 8, count=0)

    def test_errors_share_base_class(self) -> None:
        assert issubclass(ConfigurationError, PasswordGeneratorError)
        assert issubclass(OutputError, PasswordGeneratorError)

    def test_state_is_read_only(self) -> None:
        engine = _engine(8, use_lower=True)
        with pytest.raises(AttributeError):
            engine.length = 3  # type: ignore[misc]

    def test_defaults_to_system_random(self) -> None:
        alphabet = Alphabet.from_config(GeneratorConfig())
        engine = PasswordEngine(alphabet, 8)
        assert isinstance(engine._rng, random.SystemRandom)

    def test_entropy_logged_as_upper_bound(self, caplog) -> None:
        with caplog.at_level(logging.DEBUG, logger="passgen.engine"):
            _engine(8, use_lower=True, use_digits=True)
        assert "at most 41.4 bits per password" in caplog.text


class TestCreateOne:
    @pytest.mark.parametrize("seed", range(20))
    def test_all_categories_invariants(self, seed: int) -> None:
        engine = _engine(
            6,
            seed=seed,
            use_lower=True,
            use_upper=True,
            use_digits=True,
            use_symbols=True,
        )
        password = engine.create_one()
        assert len(password) == 6
        assert set(password) <= set(engine.full_alphabet)
        for subset in engine.required_sets:
            assert any(c in subset for c in password)

    def test_lower_and_digits_scenario(self) -> None:
        sink = io.StringIO()
        cfg = _config(length=8, count=1, use_lower=True, use_digits=True, seed=7, output=sink)
        assert generate(cfg) == 1

        lines = sink.getvalue().splitlines()
        assert len(lines) == 1
        password = lines[0]
        assert len(password) == 8
        assert set(password) <= set(LOWERCASE + DIGITS)
        assert any(c in LOWERCASE for c in password)
        assert any(c in DIGITS for c in password)

    def test_custom_set_represented(self) -> None:
        engine = _engine(10, seed=3, use_lower=True, custom_chars="%~")
        for _ in range(50):
            password = engine.create_one()
            assert any(c in "%~" for c in password)
            assert set(password) <= set(LOWERCASE + "%~")

    def test_required_characters_not_pinned_to_front(self) -> None:
        # Without the shuffle the digit would always be at index 1.
        engine = _engine(12, seed=11, use_lower=True, use_digits=True)
        positions = set()
        for _ in range(200):
            password = engine.create_one()
            positions.update(i for i, c in enumerate(password) if c in DIGITS)
        assert positions == set(range(12))

    def test_same_seed_same_passwords(self) -> None:
        a = _engine(16, count=5, seed=42, use_lower=True, use_symbols=True)
        b = _engine(16, count=5, seed=42, use_lower=True, use_symbols=True)
        assert list(a.generate_batch()) == list(b.generate_batch())

    def test_uniform_single_category(self) -> None:
        engine = _engine(10, count=2000, seed=1234, use_lower=True)
        counts = Counter("".join(engine.generate_batch()))

        total = sum(counts.values())
        expected = total / len(LOWERCASE)
        assert set(counts) == set(LOWERCASE)
        chi_square = sum((counts[c] - expected) ** 2 / expected for c in LOWERCASE)
        # 25 degrees of freedom.
        assert chi_square < 60


class TestBatch:
    def test_exact_count(self) -> None:
        sink = io.StringIO()
        written = _engine(9, count=25, use_upper=True, use_digits=True).write(sink)
        lines = sink.getvalue().splitlines()
        assert written == 25
        assert len(lines) == 25
        for line in lines:
            assert len(line) == 9
            assert any(c in UPPERCASE for c in line)
            assert any(c in DIGITS for c in line)

    def test_each_line_newline_terminated(self) -> None:
        sink = io.StringIO()
        _engine(8, count=3, use_lower=True).write(sink)
        assert sink.getvalue().count("\n") == 3
        assert sink.getvalue().endswith("\n")

    def test_write_failure_aborts_and_keeps_written_lines(self, tmp_path) -> None:
        sink = _FailingSink(limit=2)
        engine = _engine(8, count=5, use_lower=True)
        target = tmp_path / "out.txt"

        with pytest.raises(OutputError) as excinfo:
            engine.write(sink, target)

        assert len(sink.getvalue().splitlines()) == 2
        assert excinfo.value.sink == target
        assert isinstance(excinfo.value.__cause__, OSError)
        assert str(excinfo.value).startswith(f"Failed to write to file '{target}'")

    def test_write_to_closed_stdout_like_sink(self) -> None:
        sink = io.StringIO()
        sink.close()
        with pytest.raises(OutputError, match="An output error occurred"):
            _engine(8, count=2, use_lower=True).write(sink)

    def test_generation_error_is_not_an_output_error(self, tmp_path) -> None:
        sink = io.StringIO()
        alphabet = Alphabet.from_config(_config(use_lower=True))
        # Enough draws for two passwords of length 8, then the source breaks.
        engine = PasswordEngine(alphabet, 8, count=5, rng=_BrokenRandom(fail_after=16))

        with pytest.raises(ValueError, match="different lengths") as excinfo:
            engine.write(sink, tmp_path / "out.txt")

        assert not isinstance(excinfo.value, OutputError)
        assert len(sink.getvalue().splitlines()) == 2


class TestMakeRng:
    def test_seeded(self) -> None:
        rng = make_rng(GeneratorConfig(seed=5))
        assert type(rng) is random.Random
        assert rng.random() == random.Random(5).random()

    def test_unseeded_is_system_random(self) -> None:
        assert isinstance(make_rng(GeneratorConfig()), random.SystemRandom)

    def test_unknown_source(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown entropy source"):
            make_rng(GeneratorConfig(entropy_source="dice"))

    def test_build_engine_uses_config(self) -> None:
        engine = build_engine(_config(length=12, count=3, use_digits=True, seed=1))
        assert engine.length == 12
        assert engine.count == 3
        assert engine.required_sets == (DIGITS,)
