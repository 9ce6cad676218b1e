"""
Сервис для работы с заявками на привилегированные действия
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from typing import Any

from grocery.core.constants import (
    RequestPriority,
    RequestStatus,
    RequestType,
    ReviewAction,
    UserRole,
)
from grocery.database.models import Actor, Category, Request
from grocery.domain.authorization import Action, AuthorizationGate, role_label
from grocery.domain.category_catalog import CategoryCatalog
from grocery.domain.errors import AuthorizationError, StateError, ValidationError, is_failure
from grocery.domain.ports import AccountStore, CategoryStore, Clock, RequestFilter, RequestStore
from grocery.domain.request_workflow import RequestWorkflow
from grocery.utils.clock import SystemClock
from grocery.utils.pii_masking import mask_dict


logger = logging.getLogger(__name__)

ApprovalHandler = Callable[[Request], Awaitable[None]]


class RequestService:
    """
    Сервис для управления заявками

    При одобрении вызывается обработчик, зарегистрированный для типа
    заявки: он выполняет сам привилегированный эффект. Сохранение решения
    и эффект выполняются в одной транзакции: если обработчик падает,
    заявка остаётся в PENDING и её можно рассмотреть повторно.

    Обработчик работает внутри открытой транзакции и под блокировкой
    аккаунта заявителя, поэтому сам не должен захватывать блокировки
    сущностей.
    """

    def __init__(
        self,
        request_repo: RequestStore,
        account_repo: AccountStore,
        category_repo: CategoryStore | None = None,
        clock: Clock | None = None,
    ):
        """
        Инициализация сервиса

        Args:
            request_repo: Репозиторий заявок
            account_repo: Репозиторий аккаунтов
            category_repo: Репозиторий категорий
            clock: Источник текущего времени
        """
        self.request_repo = request_repo
        self.account_repo = account_repo
        self.category_repo = category_repo
        self.clock = clock or SystemClock()
        self.approval_handlers: dict[RequestType, ApprovalHandler] = {
            RequestType.STORE_MANAGER_APPROVAL: self._promote_to_store_manager,
        }
        if category_repo is not None:
            self.approval_handlers[RequestType.CATEGORY_CREATION] = self._create_category
            self.approval_handlers[RequestType.CATEGORY_MODIFICATION] = self._modify_category

    def register_approval_handler(
        self, request_type: RequestType | str, handler: ApprovalHandler
    ) -> None:
        """
        Регистрация обработчика одобренных заявок типа

        Args:
            request_type: Тип заявки
            handler: Асинхронная функция, принимающая одобренную заявку
        """
        self.approval_handlers[RequestType(request_type)] = handler

    async def submit(
        self,
        actor: Actor,
        request_type: RequestType | str,
        request_data: dict[str, Any],
        priority: RequestPriority | str = RequestPriority.NORMAL,
        notes: str = "",
    ) -> Request | ValidationError | AuthorizationError:
        """
        Подача заявки

        Args:
            actor: Заявитель
            request_type: Тип заявки
            request_data: Данные заявки
            priority: Приоритет
            notes: Заметки

        Returns:
            Сохранённая заявка, ValidationError или AuthorizationError
        """
        if not AuthorizationGate.can_perform(actor.role, Action.SUBMIT_REQUEST):
            return AuthorizationError(
                message="Роль не может подавать заявки",
                role=role_label(actor.role),
                action=Action.SUBMIT_REQUEST.value,
            )

        result = RequestWorkflow.submit(
            request_type=request_type,
            requested_by=actor.id,
            request_data=request_data,
            now=self.clock.now(),
            priority=priority,
            notes=notes,
        )
        if is_failure(result):
            logger.warning(
                f"Заявка от #{actor.id} отклонена валидацией: {'; '.join(result.errors)}"
            )
            return result

        created = await self.request_repo.create(result)
        logger.info(
            f"Заявка #{created.id} ({created.type.value}) подана аккаунтом #{actor.id}: "
            f"{mask_dict(created.request_data)}"
        )
        return created

    async def review(
        self,
        request_id: int,
        reviewer: Actor,
        action: ReviewAction | str,
        reason: str | None = None,
        note: str | None = None,
    ) -> Request | AuthorizationError | StateError:
        """
        Рассмотрение заявки

        Args:
            request_id: ID заявки
            reviewer: Рассматривающий администратор
            action: approve или reject
            reason: Причина отклонения
            note: Заметка к заявке

        Returns:
            Рассмотренная заявка, AuthorizationError или StateError

        Raises:
            EntityNotFoundError: Если заявка не найдена
            ValueError: Неизвестное действие
            Exception: Ошибка обработчика одобрения (заявка остаётся PENDING)
        """
        async with self.request_repo.locked(request_id):
            request = await self.request_repo.load(request_id)
            result = RequestWorkflow.review(
                request, reviewer, action, self.clock.now(), reason=reason, note=note
            )
            if is_failure(result):
                logger.warning(
                    f"Рассмотрение заявки #{request_id} аккаунтом #{reviewer.id} "
                    f"отклонено: {result.message}"
                )
                return result

            if result.status == RequestStatus.APPROVED:
                saved = await self._approve(result)
            else:
                saved = await self.request_repo.save(result)

            logger.info(
                f"Заявка #{saved.id}: {request.status.value} → {saved.status.value} "
                f"(рассмотрел #{reviewer.id})"
            )

        return saved

    async def _approve(self, request: Request) -> Request:
        """Сохранение одобрения вместе с эффектом обработчика"""
        handler = self.approval_handlers.get(request.type)

        async with self.account_repo.locked(request.requested_by):
            try:
                async with self.request_repo.transaction():
                    saved = await self.request_repo.save(request)
                    if handler is None:
                        logger.info(
                            f"Для заявок типа {request.type.value} обработчик не зарегистрирован"
                        )
                    else:
                        await handler(saved)
            except Exception as e:
                logger.error(f"Ошибка обработки одобренной заявки #{request.id}: {e}")
                raise

        return saved

    async def _promote_to_store_manager(self, request: Request) -> None:
        """Одобренная заявка менеджера магазина повышает роль заявителя"""
        account = await self.account_repo.load(request.requested_by)
        if account.role == UserRole.STORE_MANAGER:
            return

        promoted = replace(
            account,
            role=UserRole.STORE_MANAGER,
            audit=account.audit.touch(self.clock.now()),
        )
        await self.account_repo.save(promoted)
        logger.info(f"Аккаунт #{account.id} получил роль store_manager (заявка #{request.id})")

    async def _create_category(self, request: Request) -> None:
        """Одобренная заявка category_creation создаёт категорию"""
        category = CategoryCatalog.build(
            request.request_data, created_by=request.requested_by, now=self.clock.now()
        )
        created = await self.category_repo.create(category)
        logger.info(f"Категория #{created.id} создана по заявке #{request.id}")

    async def _modify_category(self, request: Request) -> None:
        """
        Одобренная заявка category_modification изменяет категорию

        Raises:
            ValueError: В данных заявки нет ID категории
            EntityNotFoundError: Категория не найдена
        """
        category_id = CategoryCatalog.target_id(request.request_data)
        if category_id is None:
            raise ValueError(f"В заявке #{request.id} не указан ID категории")

        category = await self.category_repo.load(category_id)
        modified = CategoryCatalog.modify(category, request.request_data, self.clock.now())
        await self.category_repo.save(modified)
        logger.info(f"Категория #{category_id} изменена по заявке #{request.id}")

    async def reprioritize(
        self, request_id: int, actor: Actor, priority: RequestPriority | str
    ) -> Request | AuthorizationError | StateError:
        """
        Изменение приоритета ожидающей заявки

        Raises:
            EntityNotFoundError: Если заявка не найдена
            ValueError: Неизвестный приоритет
        """
        async with self.request_repo.locked(request_id):
            request = await self.request_repo.load(request_id)
            result = RequestWorkflow.reprioritize(request, actor, priority, self.clock.now())
            if is_failure(result):
                logger.warning(f"Смена приоритета заявки #{request_id} отклонена: {result.message}")
                return result

            saved = await self.request_repo.save(result)

        logger.info(
            f"Приоритет заявки #{saved.id}: {request.priority.value} → {saved.priority.value}"
        )
        return saved

    async def list_pending(self, request_filter: RequestFilter | None = None) -> list[Request]:
        """
        Очередь ожидающих заявок (срочные и старые первыми)

        Args:
            request_filter: Фильтр

        Returns:
            Список заявок
        """
        return await self.request_repo.list_pending(request_filter)

    async def get_request(self, request_id: int) -> Request:
        return await self.request_repo.load(request_id)

    async def list_categories(self) -> list[Category]:
        """Видимые категории каталога"""
        if self.category_repo is None:
            return []
        return await self.category_repo.list_visible()
