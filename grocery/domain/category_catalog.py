"""
Категории из одобренных заявок

Заявка category_creation создаёт категорию из request_data, заявка
category_modification меняет существующую. Целевая категория изменения
берётся из originalCategory.id, иначе из id.
"""

from dataclasses import replace
from datetime import datetime
from typing import Any

from grocery.database.models import AuditRecord, Category, slugify


def _to_int(value: Any, default: int | None) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class CategoryCatalog:
    """Построение и изменение категорий по данным заявки"""

    # Ключи request_data → поля Category
    FIELD_MAP: dict[str, str] = {
        "name": "name",
        "description": "description",
        "slug": "slug",
        "imageUrl": "image_url",
        "parentId": "parent_id",
        "sortOrder": "sort_order",
        "isVisible": "is_visible",
    }

    @classmethod
    def target_id(cls, request_data: dict[str, Any]) -> int | None:
        """
        ID изменяемой категории

        Args:
            request_data: Данные заявки category_modification

        Returns:
            ID категории или None, если его нет в данных
        """
        original = request_data.get("originalCategory")
        if isinstance(original, dict) and original.get("id") is not None:
            return _to_int(original["id"], None)
        return _to_int(request_data.get("id"), None)

    @classmethod
    def _fields(cls, request_data: dict[str, Any]) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        for key, attr in cls.FIELD_MAP.items():
            if key not in request_data:
                continue
            value = request_data[key]
            if attr == "parent_id":
                value = _to_int(value, None)
            elif attr == "sort_order":
                value = _to_int(value, 0)
            elif attr == "is_visible":
                value = bool(value)
            elif attr == "slug":
                value = slugify(str(value or ""))
            else:
                value = str(value or "").strip()
            fields[attr] = value
        return fields

    @classmethod
    def build(cls, request_data: dict[str, Any], created_by: int | None, now: datetime) -> Category:
        """
        Новая категория из данных заявки category_creation

        Slug генерируется из названия, если не задан явно.
        """
        fields = cls._fields(request_data)
        if not fields.get("slug"):
            fields["slug"] = slugify(fields.get("name", ""))
        return Category(created_by=created_by, audit=AuditRecord.new(now), **fields)

    @classmethod
    def modify(cls, category: Category, request_data: dict[str, Any], now: datetime) -> Category:
        """
        Применение данных заявки category_modification к категории

        При смене названия slug пересчитывается, если новый не задан явно.
        """
        fields = cls._fields(request_data)
        if "name" in fields and fields["name"] != category.name and not fields.get("slug"):
            fields["slug"] = slugify(fields["name"])
        return replace(category, audit=category.audit.touch(now), **fields)
