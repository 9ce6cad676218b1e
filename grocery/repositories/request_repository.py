"""
Репозиторий для работы с заявками на привилегированные действия
"""

import json
import logging
from dataclasses import replace

import aiosqlite

from grocery.core.constants import RequestPriority, RequestStatus, RequestType
from grocery.database.models import AuditRecord, Request
from grocery.domain.ports import RequestFilter
from grocery.domain.request_workflow import RequestWorkflow
from grocery.repositories.base import BaseRepository, from_db_datetime, to_db_datetime
from grocery.repositories.exceptions import ConcurrentModificationError, EntityNotFoundError


logger = logging.getLogger(__name__)


class RequestRepository(BaseRepository[Request]):
    """Репозиторий для работы с заявками"""

    entity_type = "Request"

    async def create(self, request: Request) -> Request:
        """
        Сохранение новой заявки

        Args:
            request: Заявка, созданная RequestWorkflow.submit

        Returns:
            Заявка с присвоенным ID

        Raises:
            IntegrityError: Если заявитель не существует
        """
        async with self.integrity_guard("Не удалось сохранить заявку"), self.transaction():
            cursor = await self._execute(
                """
                INSERT INTO requests (type, status, requested_by, reviewed_by, reviewed_at,
                                      rejection_reason, request_data, priority, notes, version,
                                      is_active, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    request.type.value,
                    request.status.value,
                    request.requested_by,
                    request.reviewed_by,
                    to_db_datetime(request.reviewed_at),
                    request.rejection_reason,
                    json.dumps(request.request_data, ensure_ascii=False),
                    request.priority.value,
                    request.notes,
                    request.version,
                    int(request.audit.is_active),
                    to_db_datetime(request.audit.created_at),
                    to_db_datetime(request.audit.updated_at),
                ),
            )

        created = replace(request, id=cursor.lastrowid)
        logger.info(f"Создана заявка #{created.id} ({created.type.value})")
        return created

    async def load(self, request_id: int) -> Request:
        """
        Получение заявки по ID

        Raises:
            EntityNotFoundError: Если заявка не найдена
        """
        row = await self._fetch_one("SELECT * FROM requests WHERE id = ?", (request_id,))
        if not row:
            raise EntityNotFoundError(self.entity_type, request_id)
        return self._row_to_request(row)

    async def save(self, request: Request) -> Request:
        """
        Сохранение заявки с optimistic locking

        Args:
            request: Заявка после перехода

        Returns:
            Заявка с увеличенной версией

        Raises:
            ConcurrentModificationError: Если версия в БД уже другая
            EntityNotFoundError: Если заявка не найдена
        """
        if request.id is None:
            raise ValueError("Нельзя сохранить заявку без ID, используйте create()")

        async with self.transaction():
            cursor = await self._execute(
                """
                UPDATE requests
                SET status = ?, reviewed_by = ?, reviewed_at = ?, rejection_reason = ?,
                    request_data = ?, priority = ?, notes = ?, is_active = ?,
                    updated_at = ?, version = version + 1
                WHERE id = ? AND version = ?
                """,
                (
                    request.status.value,
                    request.reviewed_by,
                    to_db_datetime(request.reviewed_at),
                    request.rejection_reason,
                    json.dumps(request.request_data, ensure_ascii=False),
                    request.priority.value,
                    request.notes,
                    int(request.audit.is_active),
                    to_db_datetime(request.audit.updated_at),
                    request.id,
                    request.version,
                ),
            )

            if cursor.rowcount == 0:
                exists = await self._fetch_one(
                    "SELECT version FROM requests WHERE id = ?", (request.id,)
                )
                if not exists:
                    raise EntityNotFoundError(self.entity_type, request.id)
                logger.warning(
                    f"Optimistic locking conflict for Request #{request.id}: "
                    f"expected version {request.version}, got {exists['version']}"
                )
                raise ConcurrentModificationError(self.entity_type, request.id, request.version)

        return replace(request, version=request.version + 1)

    async def list_pending(self, request_filter: RequestFilter | None = None) -> list[Request]:
        """
        Очередь ожидающих заявок

        Сортировка: сначала более высокий приоритет, внутри приоритета -
        более старые заявки.

        Args:
            request_filter: Фильтр по типу, приоритету, автору и лимит

        Returns:
            Список заявок в статусе PENDING
        """
        request_filter = request_filter or RequestFilter()

        query = "SELECT * FROM requests WHERE status = ? AND is_active = 1"
        params: list = [RequestStatus.PENDING.value]

        if request_filter.type:
            query += " AND type = ?"
            params.append(RequestType(request_filter.type).value)

        if request_filter.priority:
            query += " AND priority = ?"
            params.append(RequestPriority(request_filter.priority).value)

        if request_filter.requested_by is not None:
            query += " AND requested_by = ?"
            params.append(request_filter.requested_by)

        rows = await self._fetch_all(query, tuple(params))
        requests = sorted(
            (self._row_to_request(row) for row in rows), key=RequestWorkflow.priority_rank
        )

        if request_filter.limit:
            requests = requests[: request_filter.limit]
        return requests

    def _row_to_request(self, row: aiosqlite.Row) -> Request:
        """
        Преобразование строки БД в объект Request

        Args:
            row: Строка из БД

        Returns:
            Объект Request
        """
        return Request(
            id=row["id"],
            type=RequestType(row["type"]),
            status=RequestStatus(row["status"]),
            requested_by=row["requested_by"],
            reviewed_by=row["reviewed_by"],
            reviewed_at=from_db_datetime(row["reviewed_at"]),
            rejection_reason=row["rejection_reason"],
            request_data=json.loads(row["request_data"]) if row["request_data"] else {},
            priority=RequestPriority(row["priority"]),
            notes=row["notes"] or "",
            version=row["version"],
            audit=AuditRecord(
                created_at=from_db_datetime(row["created_at"]),
                updated_at=from_db_datetime(row["updated_at"]),
                is_active=bool(row["is_active"]),
            ),
        )
