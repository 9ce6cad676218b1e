"""
Репозиторий для работы с заказами
"""

import logging
from dataclasses import replace

import aiosqlite

from grocery.core.constants import OrderStatus
from grocery.database.models import AuditRecord, Order, OrderItem
from grocery.repositories.base import BaseRepository, from_db_datetime, to_db_datetime
from grocery.repositories.exceptions import ConcurrentModificationError, EntityNotFoundError


logger = logging.getLogger(__name__)


class OrderRepository(BaseRepository[Order]):
    """Репозиторий для работы с заказами"""

    entity_type = "Order"

    async def create(self, order: Order, created_by: int | None = None) -> Order:
        """
        Сохранение нового заказа вместе с позициями

        Args:
            order: Заказ, созданный OrderLifecycle.place
            created_by: Кто оформил заказ (для истории статусов)

        Returns:
            Заказ с присвоенным ID

        Raises:
            IntegrityError: Если покупатель не существует или номер заказа занят
        """
        async with self.integrity_guard("Не удалось сохранить заказ"), self.transaction():
            cursor = await self._execute(
                """
                INSERT INTO orders (order_number, user_id, status, total_amount, discount_amount,
                                    shipping_amount, tax_amount, final_amount, shipping_address,
                                    payment_method, tracking_number, notes, version, is_active,
                                    created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    order.order_number,
                    order.user_id,
                    order.status.value,
                    order.total_amount,
                    order.discount_amount,
                    order.shipping_amount,
                    order.tax_amount,
                    order.final_amount,
                    order.shipping_address,
                    order.payment_method,
                    order.tracking_number,
                    order.notes,
                    order.version,
                    int(order.audit.is_active),
                    to_db_datetime(order.audit.created_at),
                    to_db_datetime(order.audit.updated_at),
                ),
            )
            order_id = cursor.lastrowid

            for position, item in enumerate(order.items):
                await self._execute(
                    """
                    INSERT INTO order_items (order_id, position, product_id, product_name,
                                             unit_price, quantity, unit)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        order_id,
                        position,
                        item.product_id,
                        item.product_name,
                        item.unit_price,
                        item.quantity,
                        item.unit,
                    ),
                )

            await self._execute(
                """
                INSERT INTO order_status_history (order_id, old_status, new_status, changed_by, changed_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    order_id,
                    None,
                    order.status.value,
                    created_by if created_by is not None else order.user_id,
                    to_db_datetime(order.audit.created_at),
                ),
            )

        created = replace(order, id=order_id)
        logger.info(f"Создан заказ #{created.id} ({created.order_number})")
        return created

    async def load(self, order_id: int) -> Order:
        """
        Получение заказа по ID

        Raises:
            EntityNotFoundError: Если заказ не найден
        """
        row = await self._fetch_one("SELECT * FROM orders WHERE id = ?", (order_id,))
        if not row:
            raise EntityNotFoundError(self.entity_type, order_id)

        item_rows = await self._fetch_all(
            "SELECT * FROM order_items WHERE order_id = ? ORDER BY position", (order_id,)
        )
        return self._row_to_order(row, item_rows)

    async def get_by_user(self, user_id: int, status: str | None = None) -> list[Order]:
        """
        Заказы покупателя, новые первыми

        Args:
            user_id: ID покупателя
            status: Фильтр по статусу

        Returns:
            Список заказов
        """
        query = "SELECT id FROM orders WHERE user_id = ?"
        params: list = [user_id]

        if status:
            query += " AND status = ?"
            params.append(OrderStatus(status).value)

        query += " ORDER BY created_at DESC, id DESC"

        rows = await self._fetch_all(query, tuple(params))
        return [await self.load(row["id"]) for row in rows]

    async def save(self, order: Order, changed_by: int | None = None) -> Order:
        """
        Сохранение заказа с optimistic locking

        При смене статуса в той же транзакции пишется строка
        order_status_history.

        Args:
            order: Заказ после перехода
            changed_by: Кто выполнил переход

        Returns:
            Заказ с увеличенной версией

        Raises:
            ConcurrentModificationError: Если версия в БД уже другая
            EntityNotFoundError: Если заказ не найден
        """
        if order.id is None:
            raise ValueError("Нельзя сохранить заказ без ID, используйте create()")

        async with self.transaction():
            row = await self._fetch_one(
                "SELECT status, version FROM orders WHERE id = ?", (order.id,)
            )
            if not row:
                raise EntityNotFoundError(self.entity_type, order.id)

            if row["version"] != order.version:
                logger.warning(
                    f"Optimistic locking conflict for Order #{order.id}: "
                    f"expected version {order.version}, got {row['version']}"
                )
                raise ConcurrentModificationError(self.entity_type, order.id, order.version)

            old_status = row["status"]

            cursor = await self._execute(
                """
                UPDATE orders
                SET status = ?, tracking_number = ?, notes = ?, shipping_address = ?,
                    payment_method = ?, cancelled_by = ?, cancelled_at = ?,
                    cancellation_reason = ?, is_active = ?, updated_at = ?,
                    version = version + 1
                WHERE id = ? AND version = ?
                """,
                (
                    order.status.value,
                    order.tracking_number,
                    order.notes,
                    order.shipping_address,
                    order.payment_method,
                    order.cancelled_by,
                    to_db_datetime(order.cancelled_at),
                    order.cancellation_reason,
                    int(order.audit.is_active),
                    to_db_datetime(order.audit.updated_at),
                    order.id,
                    order.version,
                ),
            )

            if cursor.rowcount == 0:
                raise ConcurrentModificationError(self.entity_type, order.id, order.version)

            if old_status != order.status.value:
                await self._execute(
                    """
                    INSERT INTO order_status_history (order_id, old_status, new_status, changed_by,
                                                      changed_at, notes)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        order.id,
                        old_status,
                        order.status.value,
                        changed_by,
                        to_db_datetime(order.audit.updated_at),
                        order.cancellation_reason if order.status == OrderStatus.CANCELLED else None,
                    ),
                )
                logger.info(
                    f"✅ Order #{order.id} status updated: {old_status} → {order.status.value} "
                    f"(version: {order.version} → {order.version + 1})"
                )

        return replace(order, version=order.version + 1)

    async def get_status_history(self, order_id: int) -> list[dict]:
        """
        История изменения статусов заказа в хронологическом порядке

        Args:
            order_id: ID заказа

        Returns:
            Список словарей: old_status, new_status, changed_by, changed_at, notes
        """
        rows = await self._fetch_all(
            """
            SELECT old_status, new_status, changed_by, changed_at, notes
            FROM order_status_history
            WHERE order_id = ?
            ORDER BY id
            """,
            (order_id,),
        )
        return [
            {
                "old_status": row["old_status"],
                "new_status": row["new_status"],
                "changed_by": row["changed_by"],
                "changed_at": from_db_datetime(row["changed_at"]),
                "notes": row["notes"],
            }
            for row in rows
        ]

    def _row_to_order(self, row: aiosqlite.Row, item_rows: list[aiosqlite.Row]) -> Order:
        """
        Преобразование строк БД в объект Order

        Args:
            row: Строка заказа
            item_rows: Строки позиций заказа

        Returns:
            Объект Order
        """
        items = tuple(
            OrderItem(
                product_id=item["product_id"],
                product_name=item["product_name"],
                unit_price=item["unit_price"],
                quantity=item["quantity"],
                unit=item["unit"],
            )
            for item in item_rows
        )
        return Order(
            id=row["id"],
            order_number=row["order_number"],
            user_id=row["user_id"],
            items=items,
            status=OrderStatus(row["status"]),
            total_amount=row["total_amount"],
            discount_amount=row["discount_amount"],
            shipping_amount=row["shipping_amount"],
            tax_amount=row["tax_amount"],
            final_amount=row["final_amount"],
            shipping_address=row["shipping_address"],
            payment_method=row["payment_method"],
            tracking_number=row["tracking_number"],
            notes=row["notes"] or "",
            cancelled_by=row["cancelled_by"],
            cancelled_at=from_db_datetime(row["cancelled_at"]),
            cancellation_reason=row["cancellation_reason"],
            version=row["version"],
            audit=AuditRecord(
                created_at=from_db_datetime(row["created_at"]),
                updated_at=from_db_datetime(row["updated_at"]),
                is_active=bool(row["is_active"]),
            ),
        )
