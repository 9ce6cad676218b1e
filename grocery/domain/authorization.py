"""
Проверка прав: кто может выполнять какие переходы
"""

from dataclasses import dataclass
from enum import Enum

from grocery.core.constants import OrderStatus, UserRole


class Action(str, Enum):
    """Действия, которые проходят проверку прав"""

    SUBMIT_REQUEST = "submit_request"
    REVIEW_REQUEST = "review_request"
    PRIORITIZE_REQUEST = "prioritize_request"
    PLACE_ORDER = "place_order"
    ADVANCE_ORDER = "advance_order"
    CANCEL_ORDER = "cancel_order"


@dataclass(frozen=True)
class AuthorizationContext:
    """Минимальные факты для проверки владения"""

    actor_id: int | None = None
    owner_id: int | None = None
    order_status: OrderStatus | None = None


def role_label(role: UserRole | str | None) -> str:
    """Строковое значение роли для сообщений об отказе"""
    return str(getattr(role, "value", role))


class AuthorizationGate:
    """
    Единая точка истины "кто что может"

    Все методы чистые и тотальные: неизвестные роли и действия дают False,
    исключения наружу не выходят.
    """

    # Действия, разрешённые роли без дополнительных условий
    ROLE_PERMISSIONS: dict[UserRole, set[Action]] = {
        UserRole.ADMIN: {
            Action.SUBMIT_REQUEST,
            Action.REVIEW_REQUEST,
            Action.PRIORITIZE_REQUEST,
            Action.PLACE_ORDER,
            Action.ADVANCE_ORDER,
            Action.CANCEL_ORDER,
        },
        UserRole.STORE_MANAGER: {
            Action.SUBMIT_REQUEST,
            Action.PLACE_ORDER,
        },
        UserRole.CUSTOMER: {
            Action.SUBMIT_REQUEST,
            Action.PLACE_ORDER,
        },
    }

    # Статусы, в которых покупатель может сам отменить свой заказ
    SELF_CANCELLABLE_STATUSES: frozenset[OrderStatus] = frozenset(
        {OrderStatus.PENDING, OrderStatus.CONFIRMED}
    )

    @classmethod
    def can_perform(
        cls,
        role: UserRole | str | None,
        action: Action | str | None,
        context: AuthorizationContext | None = None,
    ) -> bool:
        """
        Проверка права роли на действие

        Args:
            role: Роль исполнителя
            action: Действие
            context: Факты о владении (для отмены заказа покупателем)

        Returns:
            True если действие разрешено
        """
        try:
            role = UserRole(role)
            action = Action(action)
        except (TypeError, ValueError):
            return False

        if action in cls.ROLE_PERMISSIONS.get(role, set()):
            return True

        if action == Action.CANCEL_ORDER and role == UserRole.CUSTOMER:
            return cls._is_owner_early_cancel(context)

        return False

    @classmethod
    def _is_owner_early_cancel(cls, context: AuthorizationContext | None) -> bool:
        """Покупатель отменяет свой заказ, пока он на раннем этапе"""
        if context is None or context.actor_id is None or context.owner_id is None:
            return False

        if context.actor_id != context.owner_id:
            return False

        try:
            status = OrderStatus(context.order_status)
        except (TypeError, ValueError):
            return False

        return status in cls.SELF_CANCELLABLE_STATUSES

    @classmethod
    def allowed_actions(cls, role: UserRole | str) -> list[Action]:
        """
        Действия, разрешённые роли без условий владения

        Args:
            role: Роль

        Returns:
            Отсортированный список действий (пустой для неизвестной роли)
        """
        try:
            role = UserRole(role)
        except (TypeError, ValueError):
            return []

        return sorted(cls.ROLE_PERMISSIONS.get(role, set()), key=lambda a: a.value)
