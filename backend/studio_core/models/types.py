# backend/studio_core/models/types.py
"""
Custom SQLAlchemy types that work across different database backends.

Core logic sees typed Python values (aware UTC datetimes, ``set[str]``,
``list[str]``); serialization to the column format happens here.
"""

from datetime import datetime, timezone
import json
from typing import TYPE_CHECKING, Any

from sqlalchemy import DateTime, String, Text, TypeDecorator
from sqlalchemy.dialects.postgresql import ARRAY

if TYPE_CHECKING:
    from sqlalchemy.sql.type_api import TypeDecorator as _TypeDecorator

    TypeDecoratorProtocol = _TypeDecorator[Any]
else:
    TypeDecoratorProtocol = TypeDecorator


class UTCDateTime(TypeDecoratorProtocol):
    """
    Timezone-aware UTC datetime on every backend.

    SQLite has no offset storage, so values are written as naive UTC and
    re-tagged with UTC on the way out. Naive inputs are taken to be UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> Any:
        if value is None:
            return value
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: Any, dialect: Any) -> Any:
        if value is None:
            return value
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=timezone.utc)
            return value.astimezone(timezone.utc)
        return value


class GuidSetType(TypeDecoratorProtocol):
    """
    A set of record ids.

    Uses PostgreSQL ARRAY when available and falls back to a sorted JSON
    list for other databases (like SQLite). Empty and blank ids are dropped.
    """

    impl = Text
    cache_ok = True

    def load_dialect_impl(self, dialect: Any) -> Any:
        if dialect.name == "postgresql":
            return dialect.type_descriptor(ARRAY(String(26)))
        return dialect.type_descriptor(Text())

    @staticmethod
    def _clean(value: Any) -> list[str]:
        return sorted({str(v).strip() for v in value if v is not None and str(v).strip()})

    def process_bind_param(self, value: Any, dialect: Any) -> Any:
        if value is None:
            value = ()
        cleaned = self._clean(value)
        if dialect.name == "postgresql":
            return cleaned
        return json.dumps(cleaned)

    def process_result_value(self, value: Any, dialect: Any) -> Any:
        if value is None:
            return set()
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                return set()
            if not isinstance(value, list):
                return set()
        return set(self._clean(value))


class StringListType(TypeDecoratorProtocol):
    """An ordered list of strings (tags, holiday calendar ids)."""

    impl = Text
    cache_ok = True

    def load_dialect_impl(self, dialect: Any) -> Any:
        if dialect.name == "postgresql":
            return dialect.type_descriptor(ARRAY(String(100)))
        return dialect.type_descriptor(Text())

    def process_bind_param(self, value: Any, dialect: Any) -> Any:
        items = [str(v) for v in (value or [])]
        if dialect.name == "postgresql":
            return items
        return json.dumps(items)

    def process_result_value(self, value: Any, dialect: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
            except ValueError:
                return []
            return [str(v) for v in parsed] if isinstance(parsed, list) else []
        return list(value)
