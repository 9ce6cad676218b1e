"""Pydantic schemas package"""
from grocery.schemas.account import AccountCreateSchema
from grocery.schemas.order import OrderCreateSchema, OrderItemSchema
from grocery.schemas.request import (
    REQUEST_DATA_SCHEMAS,
    CategoryRequestSchema,
    StoreManagerApprovalSchema,
)


__all__ = [
    # Account schemas
    "AccountCreateSchema",
    # Order schemas
    "OrderCreateSchema",
    "OrderItemSchema",
    # Request schemas
    "REQUEST_DATA_SCHEMAS",
    "CategoryRequestSchema",
    "StoreManagerApprovalSchema",
]
