"""
Базовый репозиторий для работы с базой данных
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Generic, TypeVar

import aiosqlite

from grocery.repositories.exceptions import IntegrityError
from grocery.repositories.locks import EntityLocks


logger = logging.getLogger(__name__)

T = TypeVar("T")


def to_db_datetime(value: datetime | None) -> str | None:
    """Сериализация datetime в ISO-строку для SQLite"""
    return value.isoformat() if value is not None else None


def from_db_datetime(value: str | None) -> datetime | None:
    """Разбор ISO-строки из SQLite"""
    if not value:
        return None
    return datetime.fromisoformat(value)


class BaseRepository(Generic[T]):
    """
    Базовый класс для всех репозиториев
    Предоставляет общую функциональность для работы с БД
    """

    entity_type: str = "Entity"

    def __init__(self, db_connection: aiosqlite.Connection, locks: EntityLocks | None = None):
        """
        Инициализация репозитория

        Args:
            db_connection: Подключение к базе данных
            locks: Общий реестр блокировок (один на соединение)
        """
        self.db = db_connection
        self.locks = locks if locks is not None else EntityLocks()

    @asynccontextmanager
    async def transaction(self):
        """
        Контекстный менеджер для транзакций

        Использует BEGIN IMMEDIATE. Запись через одно соединение
        сериализуется write_lock, иначе параллельные корутины получили бы
        ошибку вложенной транзакции. Вложенный вызов из той же задачи
        присоединяется к внешней транзакции: commit и rollback выполняет
        только внешний уровень.

        Yields:
            aiosqlite.Connection: Подключение к БД
        """
        if not self.db:
            raise RuntimeError("База данных не подключена")

        if self.locks.owns_write():
            yield self.db
            return

        async with self.locks.writing():
            await self.db.execute("BEGIN IMMEDIATE")
            try:
                yield self.db
                await self.db.commit()
                logger.debug("✅ Транзакция успешно завершена (commit)")
            except Exception as e:
                await self.db.rollback()
                logger.error(f"❌ Транзакция отменена (rollback): {e}")
                raise

    @asynccontextmanager
    async def integrity_guard(self, message: str):
        """
        Перевод aiosqlite.IntegrityError (UNIQUE, FOREIGN KEY) в IntegrityError репозитория

        Args:
            message: Описание операции для текста ошибки
        """
        try:
            yield
        except aiosqlite.IntegrityError as e:
            logger.warning(f"{message}: {e}")
            raise IntegrityError(f"{message}: {e}") from e

    def locked(self, entity_id: object):
        """
        Блокировка сущности на время load → transition → save

        Args:
            entity_id: ID сущности (или другой уникальный ключ, например email)
        """
        return self.locks.hold(self.entity_type, entity_id)

    async def _execute(self, query: str, params: tuple | dict | None = None) -> aiosqlite.Cursor:
        """
        Выполнение SQL запроса

        Args:
            query: SQL запрос
            params: Параметры запроса

        Returns:
            Cursor с результатом
        """
        if params:
            return await self.db.execute(query, params)
        return await self.db.execute(query)

    async def _fetch_one(
        self, query: str, params: tuple | dict | None = None
    ) -> aiosqlite.Row | None:
        """
        Получение одной записи

        Args:
            query: SQL запрос
            params: Параметры запроса

        Returns:
            Строка результата или None
        """
        cursor = await self._execute(query, params)
        return await cursor.fetchone()

    async def _fetch_all(
        self, query: str, params: tuple | dict | None = None
    ) -> list[aiosqlite.Row]:
        """
        Получение всех записей

        Args:
            query: SQL запрос
            params: Параметры запроса

        Returns:
            Список строк результата
        """
        cursor = await self._execute(query, params)
        return list(await cursor.fetchall())
