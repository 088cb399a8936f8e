"""
Hashing service for content fingerprints.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

import xxhash


class HashAlgorithm(Enum):
    """Supported hash algorithms."""
    XXH64 = auto()      # Fast non-cryptographic hash (default)
    XXH3_128 = auto()   # Wider xxhash variant for very large trees
    SHA256 = auto()

    @property
    def name(self) -> str:
        return self._name_.lower()


@dataclass
class HashResult:
    """Result of a hash operation."""
    algorithm: HashAlgorithm
    hash_hex: str
    size: int

    def matches(self, other: 'HashResult') -> bool:
        """Check if this hash matches another."""
        return (self.algorithm == other.algorithm and
                self.hash_hex == other.hash_hex)


class HashingService:
    """Service for computing content hashes."""

    def __init__(self, default_algorithm: HashAlgorithm = HashAlgorithm.XXH64):
        self.default_algorithm = default_algorithm

    def hash_bytes(
        self,
        data: bytes,
        algorithm: Optional[HashAlgorithm] = None
    ) -> HashResult:
        """Compute hash of bytes."""
        algorithm = algorithm or self.default_algorithm
        hasher = self._create_hasher(algorithm)
        hasher.update(data)

        return HashResult(
            algorithm=algorithm,
            hash_hex=hasher.hexdigest(),
            size=len(data)
        )

    def hash_string(
        self,
        text: str,
        algorithm: Optional[HashAlgorithm] = None,
        encoding: str = 'utf-8'
    ) -> HashResult:
        """Compute hash of a string."""
        return self.hash_bytes(text.encode(encoding, errors='surrogateescape'), algorithm)

    def _create_hasher(self, algorithm: HashAlgorithm):
        """Create a hasher for the given algorithm."""
        if algorithm == HashAlgorithm.XXH64:
            return xxhash.xxh64()
        elif algorithm == HashAlgorithm.XXH3_128:
            return xxhash.xxh3_128()
        elif algorithm == HashAlgorithm.SHA256:
            return hashlib.sha256()
        else:
            raise ValueError(f"Unknown algorithm: {algorithm}")


_default_service: Optional[HashingService] = None


def get_hashing_service() -> HashingService:
    """Shared service used by file entries."""
    global _default_service
    if _default_service is None:
        _default_service = HashingService()
    return _default_service
