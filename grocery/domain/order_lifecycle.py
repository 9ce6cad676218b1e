"""
State Machine жизненного цикла заказа

Граф переходов:

    PENDING → CONFIRMED → PROCESSING → SHIPPED → DELIVERED
       ↓          ↓
    CANCELLED  CANCELLED

Продвижение вперёд - строго на один шаг и только администратором.
Отмена - администратором или покупателем-владельцем, только из PENDING
или CONFIRMED. DELIVERED и CANCELLED - терминальные состояния.
"""

from dataclasses import replace
from datetime import datetime
from typing import Any

from grocery.core.constants import OrderStatus
from grocery.database.models import Actor, AuditRecord, Order, OrderItem
from grocery.domain.authorization import (
    Action,
    AuthorizationContext,
    AuthorizationGate,
    role_label,
)
from grocery.domain.errors import AuthorizationError, StateError


class OrderLifecycle:
    """Переходы статусов заказа"""

    FORWARD_CHAIN: tuple[OrderStatus, ...] = (
        OrderStatus.PENDING,
        OrderStatus.CONFIRMED,
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
    )

    CANCELLABLE_STATUSES: frozenset[OrderStatus] = frozenset(
        {OrderStatus.PENDING, OrderStatus.CONFIRMED}
    )

    TERMINAL_STATUSES: frozenset[OrderStatus] = frozenset(
        {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
    )

    @classmethod
    def next_status(cls, status: OrderStatus | str) -> OrderStatus | None:
        """
        Следующий статус в прямой цепочке

        Args:
            status: Текущий статус

        Returns:
            Следующий статус или None для терминальных статусов
        """
        status = OrderStatus(status)
        if status not in cls.FORWARD_CHAIN:
            return None
        index = cls.FORWARD_CHAIN.index(status)
        if index + 1 >= len(cls.FORWARD_CHAIN):
            return None
        return cls.FORWARD_CHAIN[index + 1]

    @classmethod
    def is_terminal(cls, status: OrderStatus | str) -> bool:
        return OrderStatus(status) in cls.TERMINAL_STATUSES

    @classmethod
    def can_be_cancelled(cls, order: Order) -> bool:
        return order.status in cls.CANCELLABLE_STATUSES

    @classmethod
    def can_be_modified(cls, order: Order) -> bool:
        return order.status == OrderStatus.PENDING

    @classmethod
    def is_in_progress(cls, order: Order) -> bool:
        return order.status in (OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.SHIPPED)

    @classmethod
    def _context(cls, order: Order, actor: Actor) -> AuthorizationContext:
        return AuthorizationContext(
            actor_id=actor.id, owner_id=order.user_id, order_status=order.status
        )

    @classmethod
    def place(
        cls,
        user_id: int,
        items: list[OrderItem] | tuple[OrderItem, ...],
        now: datetime,
        discount_amount: float = 0.0,
        shipping_amount: float = 0.0,
        tax_amount: float = 0.0,
        **extra: Any,
    ) -> Order:
        """
        Оформление заказа (checkout)

        Цены позиций фиксируются на момент оформления, итог:
        final = max(0, total + shipping + tax - discount).

        Args:
            user_id: ID покупателя
            items: Позиции заказа
            now: Текущий момент
            discount_amount: Скидка
            shipping_amount: Доставка
            tax_amount: Налог
            **extra: shipping_address, payment_method, notes

        Returns:
            Новый заказ в статусе PENDING
        """
        items = tuple(items)
        total = round(sum(item.total_price for item in items), 2)
        final = round(max(0.0, total + shipping_amount + tax_amount - discount_amount), 2)

        return Order(
            user_id=user_id,
            items=items,
            status=OrderStatus.PENDING,
            total_amount=total,
            discount_amount=discount_amount,
            shipping_amount=shipping_amount,
            tax_amount=tax_amount,
            final_amount=final,
            shipping_address=extra.get("shipping_address"),
            payment_method=extra.get("payment_method"),
            notes=extra.get("notes") or "",
            audit=AuditRecord.new(now),
        )

    @classmethod
    def advance(
        cls,
        order: Order,
        actor: Actor,
        target_status: OrderStatus | str,
        now: datetime,
        tracking_number: str | None = None,
    ) -> Order | AuthorizationError | StateError:
        """
        Продвижение заказа на следующий этап

        Args:
            order: Заказ
            actor: Исполнитель
            target_status: Целевой статус
            now: Текущий момент
            tracking_number: Трек-номер (учитывается при отправке)

        Returns:
            Заказ в новом статусе, AuthorizationError или StateError

        Raises:
            ValueError: Неизвестный статус (нарушение контракта)
        """
        target = OrderStatus(target_status)

        if not AuthorizationGate.can_perform(
            actor.role, Action.ADVANCE_ORDER, cls._context(order, actor)
        ):
            return AuthorizationError(
                message="Менять статус заказа может только администратор",
                role=role_label(actor.role),
                action=Action.ADVANCE_ORDER.value,
            )

        expected = cls.next_status(order.status)
        if expected is None or target != expected:
            if expected is None:
                reason = (
                    f"Статус '{OrderStatus.get_status_name(order.status)}' является терминальным"
                )
            else:
                reason = (
                    f"Из '{OrderStatus.get_status_name(order.status)}' допустим только переход "
                    f"в '{OrderStatus.get_status_name(expected)}'"
                )
            return StateError(
                message=reason,
                current_state=order.status.value,
                target_state=target.value,
            )

        changes: dict[str, Any] = {"status": target, "audit": order.audit.touch(now)}
        if target == OrderStatus.SHIPPED and tracking_number:
            changes["tracking_number"] = tracking_number

        return replace(order, **changes)

    @classmethod
    def cancel(
        cls,
        order: Order,
        actor: Actor,
        reason: str | None,
        now: datetime,
    ) -> Order | AuthorizationError | StateError:
        """
        Отмена заказа

        Args:
            order: Заказ
            actor: Исполнитель (администратор или покупатель-владелец)
            reason: Причина отмены
            now: Текущий момент

        Returns:
            Отменённый заказ, AuthorizationError или StateError
        """
        if not AuthorizationGate.can_perform(
            actor.role, Action.CANCEL_ORDER, cls._context(order, actor)
        ):
            return AuthorizationError(
                message=(
                    "Отменить заказ может администратор или покупатель-владелец "
                    "до начала сборки"
                ),
                role=role_label(actor.role),
                action=Action.CANCEL_ORDER.value,
            )

        if not cls.can_be_cancelled(order):
            return StateError(
                message=(
                    f"Заказ в статусе '{OrderStatus.get_status_name(order.status)}' "
                    "нельзя отменить"
                ),
                current_state=order.status.value,
                target_state=OrderStatus.CANCELLED.value,
            )

        return replace(
            order,
            status=OrderStatus.CANCELLED,
            cancelled_by=actor.id,
            cancelled_at=now,
            cancellation_reason=reason or "",
            audit=order.audit.touch(now),
        )

    @classmethod
    def available_transitions(cls, order: Order, actor: Actor) -> list[OrderStatus]:
        """
        Статусы, в которые исполнитель может перевести заказ

        Args:
            order: Заказ
            actor: Исполнитель

        Returns:
            Список допустимых целевых статусов
        """
        available = []
        context = cls._context(order, actor)

        expected = cls.next_status(order.status)
        if expected is not None and AuthorizationGate.can_perform(
            actor.role, Action.ADVANCE_ORDER, context
        ):
            available.append(expected)

        if cls.can_be_cancelled(order) and AuthorizationGate.can_perform(
            actor.role, Action.CANCEL_ORDER, context
        ):
            available.append(OrderStatus.CANCELLED)

        return available
