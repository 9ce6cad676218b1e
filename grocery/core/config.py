"""
Конфигурация приложения из переменных окружения
"""

import os

from dotenv import load_dotenv


load_dotenv()


class Config:
    """Настройки приложения"""

    DATABASE_PATH: str = os.getenv("DATABASE_PATH", "grocery.db")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOGS_DIR: str = os.getenv("LOGS_DIR", "logs")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Количество итераций PBKDF2 для хэширования паролей
    PASSWORD_HASH_ITERATIONS: int = int(os.getenv("PASSWORD_HASH_ITERATIONS", "390000"))

    @classmethod
    def validate(cls) -> bool:
        """
        Проверка корректности конфигурации

        Returns:
            True если конфигурация валидна

        Raises:
            ValueError: Если обязательные параметры не заданы или некорректны
        """
        if not cls.DATABASE_PATH:
            raise ValueError("DATABASE_PATH не установлен")

        if cls.PASSWORD_HASH_ITERATIONS < 1:
            raise ValueError("PASSWORD_HASH_ITERATIONS должен быть положительным числом")

        if cls.LOG_LEVEL.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Недопустимый LOG_LEVEL: {cls.LOG_LEVEL}")

        return True
