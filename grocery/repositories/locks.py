"""
Сериализация конкурентных переходов одной сущности

Все переходы одной сущности (аккаунта, заявки, заказа) выполняются по
схеме load → transition → save под блокировкой её ключа. Без этого два
параллельных неудачных входа могли бы прочитать один и тот же счётчик.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


logger = logging.getLogger(__name__)


class EntityLocks:
    """
    Реестр asyncio.Lock по ключу (тип сущности, id)

    Блокировка ключа живёт, пока её кто-то держит или ждёт, затем
    удаляется из реестра.
    """

    def __init__(self):
        self._locks: dict[tuple[str, object], asyncio.Lock] = {}
        self._holders: dict[tuple[str, object], int] = {}
        # Одно соединение SQLite не допускает вложенных BEGIN
        self.write_lock = asyncio.Lock()
        self._writer: asyncio.Task | None = None

    @asynccontextmanager
    async def hold(self, entity_type: str, entity_id: object) -> AsyncIterator[None]:
        """
        Захват блокировки сущности

        Args:
            entity_type: Тип сущности ("Account", "Request", "Order")
            entity_id: Идентификатор сущности
        """
        key = (entity_type, entity_id)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                logger.debug("Блокировка %s #%s захвачена", entity_type, entity_id)
                yield
        finally:
            self._holders[key] -= 1
            if not self._holders[key]:
                del self._holders[key]
                del self._locks[key]

    def active_keys(self) -> int:
        """Количество ключей, которые сейчас удерживаются или ожидаются"""
        return len(self._locks)

    def owns_write(self) -> bool:
        """Текущая задача уже открыла транзакцию на этом соединении"""
        return self._writer is not None and self._writer is asyncio.current_task()

    @asynccontextmanager
    async def writing(self) -> AsyncIterator[None]:
        """Захват write_lock с запоминанием задачи-владельца"""
        async with self.write_lock:
            self._writer = asyncio.current_task()
            try:
                yield
            finally:
                self._writer = None
