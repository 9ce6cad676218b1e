"""
Workflow одобрения заявок на привилегированные действия

Граф переходов:

    PENDING ──approve(admin)──► APPROVED
       │
       └─────reject(admin)────► REJECTED

APPROVED и REJECTED - терминальные состояния. Проверка прав и правило
терминальности общие для всех типов заявок, по типу различается только
схема request_data.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from grocery.core.constants import (
    RequestPriority,
    RequestStatus,
    RequestType,
    ReviewAction,
)
from grocery.database.models import Actor, AuditRecord, Request
from grocery.domain.authorization import (
    Action,
    AuthorizationContext,
    AuthorizationGate,
    role_label,
)
from grocery.domain.errors import AuthorizationError, StateError, ValidationError
from grocery.schemas.request import REQUEST_DATA_SCHEMAS


@dataclass(frozen=True)
class RequestClassification:
    """Производные признаки заявки для потребителей (очереди, дашборды)"""

    is_pending: bool
    is_approved: bool
    is_rejected: bool
    is_high_priority: bool
    is_store_manager_request: bool
    is_category_request: bool


def _format_errors(exc: PydanticValidationError) -> tuple[str, ...]:
    return tuple(
        f"{'.'.join(str(part) for part in error['loc']) or 'request_data'}: {error['msg']}"
        for error in exc.errors()
    )


class RequestWorkflow:
    """Переходы состояния заявок"""

    PRIORITY_ORDER: dict[RequestPriority, int] = {
        RequestPriority.URGENT: 0,
        RequestPriority.HIGH: 1,
        RequestPriority.NORMAL: 2,
        RequestPriority.LOW: 3,
    }

    @classmethod
    def validate_request_data(
        cls, request_type: RequestType, request_data: Any
    ) -> dict[str, Any] | ValidationError:
        """
        Проверка данных заявки по схеме её типа

        Args:
            request_type: Тип заявки
            request_data: Данные заявки

        Returns:
            Нормализованные данные или ValidationError
        """
        if not isinstance(request_data, dict):
            return ValidationError(
                message="Данные заявки должны быть словарём",
                errors=("request_data: must be a mapping",),
            )

        schema = REQUEST_DATA_SCHEMAS[request_type]
        try:
            validated = schema.model_validate(request_data)
        except PydanticValidationError as e:
            return ValidationError(
                message=f"Данные заявки '{request_type.value}' не прошли проверку",
                errors=_format_errors(e),
            )

        return validated.model_dump(by_alias=True)

    @classmethod
    def submit(
        cls,
        request_type: RequestType | str,
        requested_by: int | None,
        request_data: dict[str, Any],
        now: datetime,
        priority: RequestPriority | str = RequestPriority.NORMAL,
        notes: str = "",
    ) -> Request | ValidationError:
        """
        Создание заявки

        Заявка с неполными данными не создаётся вообще, поэтому её
        невозможно одобрить в невалидном виде.

        Args:
            request_type: Тип заявки
            requested_by: ID аккаунта-заявителя
            request_data: Данные заявки
            now: Текущий момент
            priority: Приоритет
            notes: Начальные заметки

        Returns:
            Новая заявка в статусе PENDING или ValidationError
        """
        try:
            request_type = RequestType(request_type)
        except ValueError:
            return ValidationError(
                message=f"Неизвестный тип заявки: {request_type}",
                errors=("type: unknown request type",),
            )

        try:
            priority = RequestPriority(priority)
        except ValueError:
            return ValidationError(
                message=f"Неизвестный приоритет: {priority}",
                errors=("priority: unknown priority",),
            )

        if requested_by is None:
            return ValidationError(
                message="Не указан автор заявки",
                errors=("requested_by: field required",),
            )

        data = cls.validate_request_data(request_type, request_data)
        if isinstance(data, ValidationError):
            return data

        return Request(
            type=request_type,
            status=RequestStatus.PENDING,
            requested_by=requested_by,
            request_data=data,
            priority=priority,
            notes=notes or "",
            audit=AuditRecord.new(now),
        )

    @classmethod
    def review(
        cls,
        request: Request,
        reviewer: Actor,
        action: ReviewAction | str,
        now: datetime,
        reason: str | None = None,
        note: str | None = None,
    ) -> Request | AuthorizationError | StateError:
        """
        Рассмотрение заявки администратором

        Args:
            request: Заявка
            reviewer: Кто рассматривает
            action: approve или reject
            now: Текущий момент
            reason: Причина отклонения (только для reject)
            note: Заметка, добавляемая к заявке

        Returns:
            Рассмотренная заявка, AuthorizationError или StateError

        Raises:
            ValueError: Неизвестное действие (нарушение контракта)
        """
        action = ReviewAction(action)

        context = AuthorizationContext(actor_id=reviewer.id, owner_id=request.requested_by)
        if not AuthorizationGate.can_perform(reviewer.role, Action.REVIEW_REQUEST, context):
            return AuthorizationError(
                message="Рассматривать заявки может только администратор",
                role=role_label(reviewer.role),
                action=Action.REVIEW_REQUEST.value,
            )

        target = RequestStatus.APPROVED if action == ReviewAction.APPROVE else RequestStatus.REJECTED
        if request.status != RequestStatus.PENDING:
            return StateError(
                message=f"Заявка уже рассмотрена (статус '{request.status.value}')",
                current_state=request.status.value,
                target_state=target.value,
            )

        return replace(
            request,
            status=target,
            reviewed_by=reviewer.id,
            reviewed_at=now,
            rejection_reason=(reason or "") if target == RequestStatus.REJECTED else None,
            notes=cls._append_note(request.notes, note),
            audit=request.audit.touch(now),
        )

    @classmethod
    def reprioritize(
        cls,
        request: Request,
        actor: Actor,
        priority: RequestPriority | str,
        now: datetime,
    ) -> Request | AuthorizationError | StateError:
        """
        Изменение приоритета ожидающей заявки

        Raises:
            ValueError: Неизвестный приоритет (нарушение контракта)
        """
        priority = RequestPriority(priority)

        if not AuthorizationGate.can_perform(actor.role, Action.PRIORITIZE_REQUEST):
            return AuthorizationError(
                message="Менять приоритет заявок может только администратор",
                role=role_label(actor.role),
                action=Action.PRIORITIZE_REQUEST.value,
            )

        if request.status != RequestStatus.PENDING:
            return StateError(
                message="Приоритет можно менять только у ожидающей заявки",
                current_state=request.status.value,
            )

        return replace(request, priority=priority, audit=request.audit.touch(now))

    @staticmethod
    def _append_note(notes: str, note: str | None) -> str:
        if not note:
            return notes
        return f"{notes}\n{note}" if notes else note

    @classmethod
    def classify(cls, request: Request) -> RequestClassification:
        """
        Производные признаки заявки

        Args:
            request: Заявка

        Returns:
            RequestClassification
        """
        return RequestClassification(
            is_pending=request.status == RequestStatus.PENDING,
            is_approved=request.status == RequestStatus.APPROVED,
            is_rejected=request.status == RequestStatus.REJECTED,
            is_high_priority=request.priority in RequestPriority.high_priorities(),
            is_store_manager_request=request.type == RequestType.STORE_MANAGER_APPROVAL,
            is_category_request=request.type in RequestType.category_types(),
        )

    @classmethod
    def priority_rank(cls, request: Request) -> tuple[int, datetime | None]:
        """Ключ сортировки очереди: сначала срочные, затем самые старые"""
        created_at = request.audit.created_at
        return (cls.PRIORITY_ORDER[request.priority], created_at)
