"""Тесты для AuthorizationGate"""
import pytest

from grocery.core.constants import OrderStatus, UserRole
from grocery.domain.authorization import Action, AuthorizationContext, AuthorizationGate


EXPECTED = {
    UserRole.ADMIN: set(Action),
    UserRole.STORE_MANAGER: {Action.SUBMIT_REQUEST, Action.PLACE_ORDER},
    UserRole.CUSTOMER: {Action.SUBMIT_REQUEST, Action.PLACE_ORDER},
}


class TestDecisionTable:
    """Полная таблица роль × действие без контекста владения"""

    @pytest.mark.parametrize("role", list(UserRole))
    @pytest.mark.parametrize("action", list(Action))
    def test_role_action(self, role, action):
        assert AuthorizationGate.can_perform(role, action) is (action in EXPECTED[role])

    def test_string_values_accepted(self):
        assert AuthorizationGate.can_perform("admin", "review_request") is True
        assert AuthorizationGate.can_perform("customer", "review_request") is False

    def test_only_admin_reviews(self):
        allowed = [r for r in UserRole if AuthorizationGate.can_perform(r, Action.REVIEW_REQUEST)]
        assert allowed == [UserRole.ADMIN]

    def test_only_admin_advances_orders(self):
        allowed = [r for r in UserRole if AuthorizationGate.can_perform(r, Action.ADVANCE_ORDER)]
        assert allowed == [UserRole.ADMIN]


class TestTotality:
    """Неизвестные значения дают False, а не исключение"""

    @pytest.mark.parametrize(
        "role, action",
        [
            ("superuser", Action.REVIEW_REQUEST),
            (None, Action.PLACE_ORDER),
            (UserRole.ADMIN, "delete_everything"),
            (UserRole.ADMIN, None),
            (42, 42),
        ],
    )
    def test_unknown_values(self, role, action):
        assert AuthorizationGate.can_perform(role, action) is False

    def test_allowed_actions_unknown_role(self):
        assert AuthorizationGate.allowed_actions("ghost") == []

    def test_allowed_actions_sorted(self):
        actions = AuthorizationGate.allowed_actions(UserRole.CUSTOMER)
        assert actions == [Action.PLACE_ORDER, Action.SUBMIT_REQUEST]


class TestCustomerCancel:
    """Покупатель отменяет только свой заказ и только на раннем этапе"""

    @pytest.mark.parametrize("status", [OrderStatus.PENDING, OrderStatus.CONFIRMED])
    def test_owner_early_status_allowed(self, status):
        context = AuthorizationContext(actor_id=3, owner_id=3, order_status=status)
        assert AuthorizationGate.can_perform(UserRole.CUSTOMER, Action.CANCEL_ORDER, context)

    @pytest.mark.parametrize(
        "status",
        [
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
            OrderStatus.CANCELLED,
        ],
    )
    def test_owner_late_status_denied(self, status):
        context = AuthorizationContext(actor_id=3, owner_id=3, order_status=status)
        assert not AuthorizationGate.can_perform(UserRole.CUSTOMER, Action.CANCEL_ORDER, context)

    def test_not_owner_denied(self):
        context = AuthorizationContext(actor_id=3, owner_id=4, order_status=OrderStatus.PENDING)
        assert not AuthorizationGate.can_perform(UserRole.CUSTOMER, Action.CANCEL_ORDER, context)

    def test_missing_context_denied(self):
        assert not AuthorizationGate.can_perform(UserRole.CUSTOMER, Action.CANCEL_ORDER)

    def test_store_manager_cannot_cancel_even_own(self):
        context = AuthorizationContext(actor_id=2, owner_id=2, order_status=OrderStatus.PENDING)
        assert not AuthorizationGate.can_perform(
            UserRole.STORE_MANAGER, Action.CANCEL_ORDER, context
        )

    def test_admin_cancel_any(self):
        context = AuthorizationContext(actor_id=1, owner_id=3, order_status=OrderStatus.SHIPPED)
        assert AuthorizationGate.can_perform(UserRole.ADMIN, Action.CANCEL_ORDER, context)
