"""
Service layer: асинхронные сценарии поверх доменных переходов
"""

from grocery.services.auth_service import AuthService
from grocery.services.order_service import OrderService
from grocery.services.request_service import RequestService
from grocery.services.service_factory import ServiceFactory


__all__ = [
    "AuthService",
    "OrderService",
    "RequestService",
    "ServiceFactory",
]
