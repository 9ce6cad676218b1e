"""
Сервис для работы с заказами (бизнес-логика)
"""

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from grocery.core.constants import OrderStatus
from grocery.database.models import Actor, Order, OrderItem
from grocery.domain.authorization import Action, AuthorizationGate, role_label
from grocery.domain.errors import AuthorizationError, StateError, ValidationError, is_failure
from grocery.domain.order_lifecycle import OrderLifecycle
from grocery.domain.ports import Clock, OrderStore
from grocery.schemas.order import OrderCreateSchema
from grocery.utils.clock import SystemClock
from grocery.utils.pii_masking import mask_address


logger = logging.getLogger(__name__)


class OrderService:
    """
    Сервис для управления заказами
    Инкапсулирует бизнес-логику работы с заказами
    """

    def __init__(self, order_repo: OrderStore, clock: Clock | None = None):
        """
        Инициализация сервиса

        Args:
            order_repo: Репозиторий заказов
            clock: Источник текущего времени
        """
        self.order_repo = order_repo
        self.clock = clock or SystemClock()

    async def place_order(
        self,
        actor: Actor,
        items: list[dict[str, Any]],
        **fields: Any,
    ) -> Order | ValidationError | AuthorizationError:
        """
        Оформление заказа из корзины

        Args:
            actor: Покупатель
            items: Позиции (product_id, product_name, unit_price, quantity, unit)
            **fields: discount_amount, shipping_amount, tax_amount,
                shipping_address, payment_method, notes

        Returns:
            Созданный заказ, ValidationError или AuthorizationError
        """
        if not AuthorizationGate.can_perform(actor.role, Action.PLACE_ORDER):
            return AuthorizationError(
                message="Роль не может оформлять заказы",
                role=role_label(actor.role),
                action=Action.PLACE_ORDER.value,
            )

        try:
            data = OrderCreateSchema(user_id=actor.id, items=items, **fields)
        except PydanticValidationError as e:
            errors = tuple(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            logger.warning(f"Заказ от #{actor.id} не прошёл проверку: {'; '.join(errors)}")
            return ValidationError(message="Данные заказа не прошли проверку", errors=errors)

        order = OrderLifecycle.place(
            user_id=data.user_id,
            items=[OrderItem(**item.model_dump()) for item in data.items],
            now=self.clock.now(),
            discount_amount=data.discount_amount,
            shipping_amount=data.shipping_amount,
            tax_amount=data.tax_amount,
            shipping_address=data.shipping_address,
            payment_method=data.payment_method,
            notes=data.notes,
        )
        created = await self.order_repo.create(order, created_by=actor.id)
        logger.info(
            f"Заказ #{created.id} ({created.order_number}) оформлен аккаунтом #{actor.id} "
            f"на сумму {created.final_amount:.2f}, адрес: {mask_address(created.shipping_address)}"
        )
        return created

    async def advance(
        self,
        order_id: int,
        actor: Actor,
        target_status: OrderStatus | str,
        tracking_number: str | None = None,
    ) -> Order | AuthorizationError | StateError:
        """
        Перевод заказа на следующий этап

        Args:
            order_id: ID заказа
            actor: Исполнитель
            target_status: Целевой статус (строго следующий)
            tracking_number: Трек-номер при отправке

        Returns:
            Обновлённый заказ, AuthorizationError или StateError

        Raises:
            EntityNotFoundError: Если заказ не найден
            ValueError: Неизвестный статус
        """
        async with self.order_repo.locked(order_id):
            order = await self.order_repo.load(order_id)
            result = OrderLifecycle.advance(
                order, actor, target_status, self.clock.now(), tracking_number=tracking_number
            )
            if is_failure(result):
                logger.warning(
                    f"Невозможно изменить статус заказа #{order_id} "
                    f"(аккаунт #{actor.id}): {result.message}"
                )
                return result

            return await self.order_repo.save(result, changed_by=actor.id)

    async def cancel(
        self, order_id: int, actor: Actor, reason: str | None = None
    ) -> Order | AuthorizationError | StateError:
        """
        Отмена заказа

        Args:
            order_id: ID заказа
            actor: Администратор или покупатель-владелец
            reason: Причина отмены

        Returns:
            Отменённый заказ, AuthorizationError или StateError

        Raises:
            EntityNotFoundError: Если заказ не найден
        """
        async with self.order_repo.locked(order_id):
            order = await self.order_repo.load(order_id)
            result = OrderLifecycle.cancel(order, actor, reason, self.clock.now())
            if is_failure(result):
                logger.warning(
                    f"Невозможно отменить заказ #{order_id} (аккаунт #{actor.id}): {result.message}"
                )
                return result

            saved = await self.order_repo.save(result, changed_by=actor.id)

        logger.info(f"Заказ #{saved.id} отменён аккаунтом #{actor.id}")
        return saved

    async def get_order(self, order_id: int) -> Order:
        """
        Получение заказа по ID

        Raises:
            EntityNotFoundError: Если заказ не найден
        """
        return await self.order_repo.load(order_id)

    async def get_user_orders(self, user_id: int, status: str | None = None) -> list[Order]:
        """
        Заказы покупателя

        Args:
            user_id: ID покупателя
            status: Фильтр по статусу

        Returns:
            Список заказов
        """
        return await self.order_repo.get_by_user(user_id, status)

    async def get_status_history(self, order_id: int) -> list[dict]:
        return await self.order_repo.get_status_history(order_id)

    async def available_transitions(self, order_id: int, actor: Actor) -> list[OrderStatus]:
        """
        Статусы, в которые исполнитель может перевести заказ

        Args:
            order_id: ID заказа
            actor: Исполнитель

        Returns:
            Список статусов
        """
        order = await self.order_repo.load(order_id)
        return OrderLifecycle.available_transitions(order, actor)
