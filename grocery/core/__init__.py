"""Ядро приложения - конфигурация и константы"""

from grocery.core.config import Config
from grocery.core.constants import (
    LOCKOUT_DURATION,
    MAX_FAILED_LOGIN_ATTEMPTS,
    OrderStatus,
    RequestPriority,
    RequestStatus,
    RequestType,
    ReviewAction,
    UserRole,
)


__all__ = [
    "LOCKOUT_DURATION",
    "MAX_FAILED_LOGIN_ATTEMPTS",
    "Config",
    "OrderStatus",
    "RequestPriority",
    "RequestStatus",
    "RequestType",
    "ReviewAction",
    "UserRole",
]
