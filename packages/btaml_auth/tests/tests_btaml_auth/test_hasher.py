import pytest
from argon2 import PasswordHasher
from btaml_auth.hasher import hash_password, needs_rehash, verify_password
from btaml_auth.models import User


class TestHasher:
    def test_hash_password_success(self):
        """Hashing returns an Argon2 string."""
        raw = "MySecretPassword123!"
        hashed = hash_password(raw)

        assert hashed != raw
        assert "$argon2" in hashed

    def test_hash_empty_password_fails(self):
        """Hashing an empty string raises ValueError."""
        with pytest.raises(ValueError, match="Password cannot be empty"):
            hash_password("")

    def test_verify_password(self):
        """verify_password accepts the right password only."""
        hashed = hash_password("secret")
        assert verify_password(hashed, "secret") is True
        assert verify_password(hashed, "wrong_secret") is False

    def test_verify_malformed_hash(self):
        """Malformed hashes verify as False instead of raising."""
        assert verify_password("not_a_valid_hash", "secret") is False
        assert verify_password("", "secret") is False

    def test_user_password_helpers(self):
        """User.set_password and check_password work together."""
        user = User(username="u")
        user.set_password("abcdef")
        assert user.check_password("abcdef") is True
        assert user.check_password("abcdeg") is False

    def test_outdated_hash_is_upgraded_on_login_check(self):
        """A match against a weaker hash swaps in a current one."""
        weak = PasswordHasher(time_cost=1, memory_cost=8, parallelism=1)
        user = User(username="u", password_hash=weak.hash("abcdef"))
        assert needs_rehash(user.password_hash) is True

        assert user.check_password("abcdef") is True
        assert needs_rehash(user.password_hash) is False
        assert verify_password(user.password_hash, "abcdef") is True

    def test_failed_check_keeps_outdated_hash(self):
        weak = PasswordHasher(time_cost=1, memory_cost=8, parallelism=1)
        stored = weak.hash("abcdef")
        user = User(username="u", password_hash=stored)
        assert user.check_password("wrong") is False
        assert user.password_hash == stored

    def test_malformed_hash_needs_rehash(self):
        assert needs_rehash("not_a_valid_hash") is True
