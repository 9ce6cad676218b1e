"""Тесты для хэширования паролей"""
import pytest

from grocery.utils.passwords import PasswordHasher


class TestPasswordHasher:
    """Тесты PBKDF2 хэширования"""

    def test_hash_format(self, hasher):
        password_hash = hasher.hash("secret123")
        algorithm, iterations, salt, key = password_hash.split("$")

        assert algorithm == "pbkdf2_sha256"
        assert iterations == "1000"
        assert salt and key

    def test_verify(self, hasher):
        password_hash = hasher.hash("secret123")
        assert hasher.verify("secret123", password_hash)
        assert not hasher.verify("secret124", password_hash)

    def test_salted(self, hasher):
        assert hasher.hash("secret123") != hasher.hash("secret123")

    def test_verify_uses_stored_iterations(self, hasher):
        """Хэш с другим числом итераций проверяется по своим параметрам"""
        password_hash = PasswordHasher(iterations=2000).hash("secret123")
        assert hasher.verify("secret123", password_hash)

    @pytest.mark.parametrize(
        "broken",
        ["", "plain-text", "md5$1$abc$def", "pbkdf2_sha256$many$abc$def", "pbkdf2_sha256$1$$"],
    )
    def test_malformed_hash(self, hasher, broken):
        assert hasher.verify("secret123", broken) is False

    def test_default_iterations_from_config(self, monkeypatch):
        from grocery.core.config import Config

        monkeypatch.setattr(Config, "PASSWORD_HASH_ITERATIONS", 1234)
        assert PasswordHasher().iterations == 1234
