"""
Domain layer для бизнес-логики
"""

from grocery.domain.account_security import AccountSecurityGuard
from grocery.domain.authorization import Action, AuthorizationContext, AuthorizationGate
from grocery.domain.category_catalog import CategoryCatalog
from grocery.domain.errors import (
    AccountLocked,
    AuthorizationError,
    DomainFailure,
    InvalidCredentials,
    StateError,
    ValidationError,
    is_failure,
)
from grocery.domain.order_lifecycle import OrderLifecycle
from grocery.domain.ports import RequestFilter
from grocery.domain.request_workflow import RequestClassification, RequestWorkflow


__all__ = [
    "AccountLocked",
    "AccountSecurityGuard",
    "Action",
    "AuthorizationContext",
    "AuthorizationError",
    "AuthorizationGate",
    "CategoryCatalog",
    "DomainFailure",
    "InvalidCredentials",
    "OrderLifecycle",
    "RequestClassification",
    "RequestFilter",
    "RequestWorkflow",
    "StateError",
    "ValidationError",
    "is_failure",
]
