"""Tests for the hashing service."""

from __future__ import annotations

import hashlib

import xxhash

from treepatch.services.hashing import HashAlgorithm, HashingService, get_hashing_service


class TestHashingService:
    def test_default_is_xxh64(self):
        result = HashingService().hash_bytes(b"abc")

        assert result.algorithm == HashAlgorithm.XXH64
        assert result.hash_hex == xxhash.xxh64(b"abc").hexdigest()
        assert result.size == 3

    def test_xxh3_128(self):
        result = HashingService().hash_bytes(b"abc", HashAlgorithm.XXH3_128)

        assert result.hash_hex == xxhash.xxh3_128(b"abc").hexdigest()

    def test_sha256(self):
        result = HashingService(HashAlgorithm.SHA256).hash_bytes(b"abc")

        assert result.hash_hex == hashlib.sha256(b"abc").hexdigest()

    def test_hash_string_matches_bytes(self):
        service = HashingService()

        assert service.hash_string("héllo").matches(service.hash_bytes("héllo".encode("utf-8")))

    def test_matches_requires_same_algorithm(self):
        service = HashingService()
        a = service.hash_bytes(b"x", HashAlgorithm.XXH64)
        b = service.hash_bytes(b"x", HashAlgorithm.SHA256)

        assert not a.matches(b)

    def test_algorithm_name_is_lowercase(self):
        assert HashAlgorithm.XXH64.name == "xxh64"

    def test_shared_service(self):
        assert get_hashing_service() is get_hashing_service()
