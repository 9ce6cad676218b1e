"""
Хэширование и проверка паролей (PBKDF2-HMAC-SHA256)
"""

import base64
import logging
import secrets

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from grocery.core.config import Config


logger = logging.getLogger(__name__)

ALGORITHM = "pbkdf2_sha256"
SALT_SIZE = 16
KEY_LENGTH = 32


class PasswordHasher:
    """
    Хэширование паролей

    Формат хэша: pbkdf2_sha256$<iterations>$<salt_b64>$<hash_b64>
    """

    def __init__(self, iterations: int | None = None):
        """
        Args:
            iterations: Количество итераций PBKDF2 (по умолчанию из Config)
        """
        self.iterations = iterations or Config.PASSWORD_HASH_ITERATIONS

    @staticmethod
    def _derive(password: str, salt: bytes, iterations: int) -> bytes:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_LENGTH,
            salt=salt,
            iterations=iterations,
        )
        return kdf.derive(password.encode("utf-8"))

    def hash(self, password: str) -> str:
        """
        Хэширование пароля со случайной солью

        Args:
            password: Пароль в открытом виде

        Returns:
            Строка хэша в формате pbkdf2_sha256$...
        """
        salt = secrets.token_bytes(SALT_SIZE)
        key = self._derive(password, salt, self.iterations)
        salt_b64 = base64.urlsafe_b64encode(salt).decode("ascii")
        key_b64 = base64.urlsafe_b64encode(key).decode("ascii")
        return f"{ALGORITHM}${self.iterations}${salt_b64}${key_b64}"

    def verify(self, password: str, password_hash: str) -> bool:
        """
        Проверка пароля с защитой от timing-атак

        Args:
            password: Пароль в открытом виде
            password_hash: Сохранённый хэш

        Returns:
            True если пароль совпадает. Некорректный хэш всегда даёт False.
        """
        try:
            algorithm, iterations, salt_b64, key_b64 = password_hash.split("$")
            if algorithm != ALGORITHM:
                return False
            salt = base64.urlsafe_b64decode(salt_b64.encode("ascii"))
            expected = base64.urlsafe_b64decode(key_b64.encode("ascii"))
            derived = self._derive(password, salt, int(iterations))
        except (ValueError, AttributeError) as e:
            logger.warning("Некорректный формат хэша пароля: %s", type(e).__name__)
            return False

        return secrets.compare_digest(derived, expected)
