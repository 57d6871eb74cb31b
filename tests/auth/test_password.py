"""Tests for password hashing and validation."""

import pytest

from codetrack.auth.password import (
    PasswordStrengthError,
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)


class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("correct horse")
        assert verify_password("correct horse", hashed) is True

    def test_wrong_password_rejected(self):
        hashed = hash_password("correct horse")
        assert verify_password("battery staple", hashed) is False

    def test_garbage_hash_rejected(self):
        assert verify_password("anything", "not-a-hash") is False

    def test_hash_is_argon2id(self):
        assert hash_password("whatever1").startswith("$argon2id$")

    def test_hashes_are_salted(self):
        assert hash_password("same-password") != hash_password("same-password")

    def test_check_needs_rehash(self):
        assert check_needs_rehash(hash_password("whatever1")) is False

    def test_weaker_parameters_need_rehash(self):
        import argon2

        weak = argon2.PasswordHasher(time_cost=1, memory_cost=8192, parallelism=1).hash("whatever1")
        assert check_needs_rehash(weak) is True


class TestPasswordPolicy:
    def test_minimum_length_accepted(self):
        validate_password_strength("abcdef")  # six characters, no class rules

    def test_short_password_rejected(self):
        with pytest.raises(PasswordStrengthError, match="at least 6"):
            validate_password_strength("abcde")

    def test_empty_password_rejected(self):
        with pytest.raises(PasswordStrengthError):
            validate_password_strength("")

    def test_whitespace_only_rejected(self):
        with pytest.raises(PasswordStrengthError):
            validate_password_strength("        ")

    def test_too_long_password_rejected(self):
        with pytest.raises(PasswordStrengthError):
            validate_password_strength("a" * 129)

    def test_minimum_is_configurable(self, monkeypatch):
        from codetrack.config import get_settings

        monkeypatch.setenv("CODETRACK_PASSWORD_MIN_LENGTH", "10")
        get_settings.cache_clear()
        with pytest.raises(PasswordStrengthError, match="at least 10"):
            validate_password_strength("abcdefgh")
