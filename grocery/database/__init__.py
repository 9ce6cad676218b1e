"""
Database package: подключение к SQLite и модели данных
"""

from grocery.database.db import Database
from grocery.database.models import (
    Account,
    Actor,
    AuditRecord,
    Category,
    Order,
    OrderItem,
    Request,
    generate_order_number,
    slugify,
)


__all__ = [
    "Account",
    "Actor",
    "AuditRecord",
    "Category",
    "Database",
    "Order",
    "OrderItem",
    "Request",
    "generate_order_number",
    "slugify",
]
