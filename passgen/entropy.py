"""
Bit helpers for the quantum random source: packing measurement bits
and whitening them with SHA-256.
"""

from __future__ import annotations

import hashlib
from typing import List


def bits_to_bytes(bits: List[int]) -> bytes:
    """
    Pack bits (MSB first) into bytes, zero-padding the last byte.
    """
    if not bits:
        return b""

    pad_len = (8 - (len(bits) % 8)) % 8
    padded = bits + [0] * pad_len

    out = bytearray()
    for i in range(0, len(padded), 8):
        out.append(bits_to_int(padded[i : i + 8]))
    return bytes(out)


def bytes_to_bits(data: bytes) -> List[int]:
    out_bits: List[int] = []
    for byte in data:
        out_bits.extend((byte >> shift) & 1 for shift in range(7, -1, -1))
    return out_bits


def bits_to_int(bits: List[int]) -> int:
    """Read a bit list as an unsigned big-endian integer."""
    value = 0
    for bit in bits:
        value = (value << 1) | bit
    return value


def xor_bits(a: List[int], b: List[int]) -> List[int]:
    if len(a) != len(b):
        raise ValueError(
            f"Cannot combine bitstreams of different lengths ({len(a)} != {len(b)})."
        )
    return [x ^ y for x, y in zip(a, b)]


def amplify_entropy(bits: List[int], rounds: int = 1) -> List[int]:
    """
    Hash the packed bits with SHA-256 `rounds` times.

    Always yields 256 bits when rounds > 0; rounds <= 0 returns the
    input unchanged.
    """
    if rounds <= 0:
        return bits

    data = bits_to_bytes(bits)
    for _ in range(rounds):
        data = hashlib.sha256(data).digest()

    return bytes_to_bits(data)
