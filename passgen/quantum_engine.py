from __future__ import annotations

"""
Quantum random source: qubits in superposition, measured in alternating
bases on the local Aer simulator, whitened with SHA-256 and exposed
through the random.Random interface.
"""
import logging
import math
import random
from typing import List

from qiskit import QuantumCircuit
from qiskit import transpile
from qiskit_aer import AerSimulator

from .config import GeneratorConfig, DEFAULT_CONFIG
from .engine import ConfigurationError
from .entropy import amplify_entropy, bits_to_int, xor_bits

logger = logging.getLogger(__name__)

RECIP_BPF = 2.0 ** -53  # 1 / 2**53, as in random.SystemRandom
BLOCK_BITS = 256  # SHA-256 digest size


class QuantumEngine:
    """
    Encapsulates all quantum-circuit-related logic.
    """

    def __init__(self, config: GeneratorConfig | None = None) -> None:
        self.config = config or DEFAULT_CONFIG
        self.backend = AerSimulator()

        n = self.config.num_qubits
        if n <= 0:
            raise ConfigurationError(f"num_qubits must be positive, got {n}.")

        # Safety: ensure requested num_qubits does not exceed backend capability.
        backend_cfg = getattr(self.backend, "configuration", None)
        max_qubits = getattr(backend_cfg(), "n_qubits", None) if backend_cfg else None

        if max_qubits is not None and n > max_qubits:
            raise ConfigurationError(
                f"Configured num_qubits={n} exceeds backend limit ({max_qubits}). "
                "Lower num_qubits in GeneratorConfig."
            )

        self.circuit, self.measurement_basis = self._build_circuit()
        # The circuit never changes, so transpile once.
        self._compiled = transpile(self.circuit, self.backend)

    def _build_circuit(self) -> tuple[QuantumCircuit, list[str]]:
        """
        Give every qubit exactly one H gate and measure it.

        Even qubits are prepared in |+> and read in the Z basis; odd qubits
        stay in |0> and are read in the X basis (H, then a Z measurement).
        Both outcomes are a fair coin.
        """
        n = self.config.num_qubits
        measurement_basis = ["Z" if i % 2 == 0 else "X" for i in range(n)]
        qc = QuantumCircuit(n, n)

        for i in range(n):
            qc.h(i)
            qc.measure(i, i)

        return qc, measurement_basis

    def get_raw_bits(self, shots: int = 1) -> list[int]:
        """
        Run the circuit `shots` times and return all bits, shot by shot,
        qubit 0 first within each shot.
        """
        result = self.backend.run(self._compiled, shots=shots, memory=True).result()

        bits: list[int] = []
        # Qiskit orders bits as [q_(n-1) ... q_0]; reverse so index 0 is first qubit.
        for bitstring in result.get_memory():
            bits.extend(int(b) for b in bitstring[::-1])
        return bits


class QuantumRandom(random.Random):
    """
    random.Random backed by the quantum engine.

    Only getrandbits() and random() draw entropy; choice(), shuffle() and
    friends reuse the unbiased sampling of random.Random on top of them.
    Like SystemRandom, it cannot be seeded and has no state to save.
    """

    def __new__(cls, *args, **kwargs):
        # random.Random.__new__ would try to seed from (hash) the config.
        return super().__new__(cls)

    def __init__(self, config: GeneratorConfig | None = None) -> None:
        self.config = config or DEFAULT_CONFIG
        self.engine = QuantumEngine(self.config)
        self._pool: List[int] = []
        super().__init__()

    def _refill(self) -> None:
        streams = max(1, self.config.quantum_streams)
        # Enough shots for at least one full digest of raw bits, so hashing
        # never outputs more bits than were measured.
        shots = math.ceil(BLOCK_BITS / self.config.num_qubits)

        combined = self.engine.get_raw_bits(shots)
        for _ in range(streams - 1):
            combined = xor_bits(combined, self.engine.get_raw_bits(shots))

        fresh = amplify_entropy(combined, self.config.entropy_rounds)
        logger.debug(
            "Quantum pool refilled with %d bits from %d raw bits x %d stream(s)",
            len(fresh),
            len(combined),
            streams,
        )
        self._pool.extend(fresh)

    def getrandbits(self, k: int) -> int:
        if k < 0:
            raise ValueError("number of bits must be non-negative")
        while len(self._pool) < k:
            self._refill()

        bits, self._pool = self._pool[:k], self._pool[k:]
        return bits_to_int(bits)

    def random(self) -> float:
        return self.getrandbits(53) * RECIP_BPF

    def seed(self, *args, **kwds) -> None:
        "Stub method.  Not used for a quantum random number generator."
        return None

    def _notimplemented(self, *args, **kwds):
        "Method should not be called for a quantum random number generator."
        raise NotImplementedError("Quantum entropy does not have state.")

    getstate = setstate = _notimplemented
