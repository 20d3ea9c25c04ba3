from __future__ import annotations

from contextvars import ContextVar, Token
from dataclasses import dataclass, field
import logging
from typing import FrozenSet, Iterable, Optional

from .enums import UserRole

_request_id_var: ContextVar[str] = ContextVar("request_id", default="")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"


def set_request_id(request_id: Optional[str]) -> Token[str]:
    return _request_id_var.set(request_id or "")


def reset_request_id(token: Token[str]) -> None:
    _request_id_var.reset(token)


def get_request_id_value(default: str = "no-request") -> str:
    value = _request_id_var.get()
    return value if value else default


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = get_request_id_value()
        return True


def configure_logging(level: str = "INFO") -> None:
    """Install the root handler and stamp every record with the current request id."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())


@dataclass(frozen=True)
class RequestContext:
    """Identity resolved by the auth layer, passed explicitly into core calls."""

    studio_id: str
    user_id: Optional[str] = None
    customer_id: Optional[str] = None
    roles: FrozenSet[UserRole] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls,
        studio_id: str,
        *,
        user_id: Optional[str] = None,
        customer_id: Optional[str] = None,
        roles: Iterable[str] = (),
    ) -> "RequestContext":
        parsed = frozenset(UserRole(r.strip().lower()) for r in roles if r and r.strip())
        return cls(studio_id=studio_id, user_id=user_id, customer_id=customer_id, roles=parsed)

    def has_role(self, *roles: UserRole) -> bool:
        return any(role in self.roles for role in roles)

    @property
    def is_staff(self) -> bool:
        return self.has_role(UserRole.ADMIN, UserRole.STAFF)
