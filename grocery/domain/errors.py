"""
Типизированные результаты-ошибки доменного слоя

Ожидаемые бизнес-отказы не выбрасываются, а возвращаются как значения:
вызывающий код проверяет результат через is_failure() или isinstance().
Исключения остаются только для нарушений контракта (например, неизвестное
значение перечисления).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar


@dataclass(frozen=True)
class DomainFailure:
    """Базовый результат-отказ"""

    message: str
    kind: ClassVar[str] = "domain"


@dataclass(frozen=True)
class ValidationError(DomainFailure):
    """Данные не прошли схему (только при создании заявки)"""

    errors: tuple[str, ...] = ()
    kind: ClassVar[str] = "validation"


@dataclass(frozen=True)
class AuthorizationError(DomainFailure):
    """Роль/владение не позволяют выполнить переход"""

    role: str | None = None
    action: str | None = None
    kind: ClassVar[str] = "authorization"


@dataclass(frozen=True)
class StateError(DomainFailure):
    """Переход недопустим из текущего состояния"""

    current_state: str | None = None
    target_state: str | None = None
    kind: ClassVar[str] = "state"


@dataclass(frozen=True)
class AccountLocked(StateError):
    """Аккаунт заблокирован после неудачных попыток входа"""

    locked_until: datetime | None = None
    kind: ClassVar[str] = "account_locked"


@dataclass(frozen=True)
class InvalidCredentials(DomainFailure):
    """Неверный email или пароль"""

    attempts_remaining: int | None = None
    kind: ClassVar[str] = "invalid_credentials"


def is_failure(result: Any) -> bool:
    """
    Проверка, является ли результат операции отказом

    Args:
        result: Значение, возвращённое доменной операцией

    Returns:
        True если это DomainFailure
    """
    return isinstance(result, DomainFailure)
