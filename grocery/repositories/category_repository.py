"""
Репозиторий для работы с категориями товаров
"""

import logging
from dataclasses import replace

import aiosqlite

from grocery.database.models import AuditRecord, Category
from grocery.repositories.base import BaseRepository, from_db_datetime, to_db_datetime
from grocery.repositories.exceptions import ConcurrentModificationError, EntityNotFoundError


logger = logging.getLogger(__name__)


class CategoryRepository(BaseRepository[Category]):
    """Репозиторий для работы с категориями"""

    entity_type = "Category"

    async def create(self, category: Category) -> Category:
        """
        Создание категории

        Args:
            category: Несохранённая категория

        Returns:
            Категория с присвоенным ID

        Raises:
            IntegrityError: Если родительская категория или автор не существуют
        """
        async with self.integrity_guard("Не удалось сохранить категорию"), self.transaction():
            cursor = await self._execute(
                """
                INSERT INTO categories (name, description, slug, image_url, parent_id,
                                        sort_order, is_visible, created_by, version, is_active,
                                        created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    category.name,
                    category.description,
                    category.slug,
                    category.image_url,
                    category.parent_id,
                    category.sort_order,
                    int(category.is_visible),
                    category.created_by,
                    category.version,
                    int(category.audit.is_active),
                    to_db_datetime(category.audit.created_at),
                    to_db_datetime(category.audit.updated_at),
                ),
            )

        created = replace(category, id=cursor.lastrowid)
        logger.info(f"Создана категория #{created.id} ({created.slug})")
        return created

    async def load(self, category_id: int) -> Category:
        """
        Получение категории по ID

        Raises:
            EntityNotFoundError: Если категория не найдена
        """
        row = await self._fetch_one("SELECT * FROM categories WHERE id = ?", (category_id,))
        if not row:
            raise EntityNotFoundError(self.entity_type, category_id)
        return self._row_to_category(row)

    async def save(self, category: Category) -> Category:
        """
        Сохранение категории с optimistic locking

        Raises:
            ConcurrentModificationError: Если версия в БД уже другая
            EntityNotFoundError: Если категория не найдена
        """
        if category.id is None:
            raise ValueError("Нельзя сохранить категорию без ID, используйте create()")

        async with self.integrity_guard("Не удалось сохранить категорию"), self.transaction():
            cursor = await self._execute(
                """
                UPDATE categories
                SET name = ?, description = ?, slug = ?, image_url = ?, parent_id = ?,
                    sort_order = ?, is_visible = ?, is_active = ?, updated_at = ?,
                    version = version + 1
                WHERE id = ? AND version = ?
                """,
                (
                    category.name,
                    category.description,
                    category.slug,
                    category.image_url,
                    category.parent_id,
                    category.sort_order,
                    int(category.is_visible),
                    int(category.audit.is_active),
                    to_db_datetime(category.audit.updated_at),
                    category.id,
                    category.version,
                ),
            )

            if cursor.rowcount == 0:
                exists = await self._fetch_one(
                    "SELECT version FROM categories WHERE id = ?", (category.id,)
                )
                if not exists:
                    raise EntityNotFoundError(self.entity_type, category.id)
                raise ConcurrentModificationError(self.entity_type, category.id, category.version)

        return replace(category, version=category.version + 1)

    async def list_visible(self) -> list[Category]:
        """Активные видимые категории в порядке sort_order"""
        rows = await self._fetch_all(
            """
            SELECT * FROM categories
            WHERE is_active = 1 AND is_visible = 1
            ORDER BY sort_order, name
            """
        )
        return [self._row_to_category(row) for row in rows]

    def _row_to_category(self, row: aiosqlite.Row) -> Category:
        return Category(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            slug=row["slug"],
            image_url=row["image_url"],
            parent_id=row["parent_id"],
            sort_order=row["sort_order"],
            is_visible=bool(row["is_visible"]),
            created_by=row["created_by"],
            version=row["version"],
            audit=AuditRecord(
                created_at=from_db_datetime(row["created_at"]),
                updated_at=from_db_datetime(row["updated_at"]),
                is_active=bool(row["is_active"]),
            ),
        )
