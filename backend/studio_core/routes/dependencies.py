# backend/studio_core/routes/dependencies.py
"""
Request-scoped dependencies: database session, resolved identity, studio
lookup and service construction.

Identity is established by the upstream auth layer and forwarded in
headers; this module only turns it into a typed RequestContext.
"""

import logging
from typing import Callable, Optional

from fastapi import Depends, Header, HTTPException, Path, status
from sqlalchemy.orm import Session

from ..core.enums import UserRole
from ..core.exceptions import ForbiddenException, NotFoundException, ValidationException
from ..core.request_context import RequestContext
from ..core.ulid_helper import is_valid_ulid
from ..database import get_db
from ..models.studio import Studio
from ..repositories import RepositoryFactory
from ..services.booking_service import BookingService
from ..services.checkout_service import CheckoutService
from ..services.payroll_service import PayrollService
from ..services.schedule_service import ScheduleService

logger = logging.getLogger(__name__)


def require_ulid(value: str, field: str) -> str:
    if not is_valid_ulid(value):
        raise ValidationException(f"Invalid {field}", code="INVALID_ID", details={"field": field})
    return value


def get_request_context(
    studio_id: str = Path(...),
    x_user_id: Optional[str] = Header(default=None),
    x_customer_id: Optional[str] = Header(default=None),
    x_roles: str = Header(default=""),
) -> RequestContext:
    try:
        return RequestContext.build(
            studio_id,
            user_id=x_user_id,
            customer_id=x_customer_id,
            roles=x_roles.split(","),
        )
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Unknown role", "code": "INVALID_ROLE", "details": {}},
        )


def get_studio(
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> Studio:
    try:
        require_ulid(context.studio_id, "studio_id")
        studio = RepositoryFactory.create_studio_repository(db).get_by_id(context.studio_id)
        if studio is None:
            raise NotFoundException("Studio not found", code="STUDIO_NOT_FOUND")
    except (ValidationException, NotFoundException) as e:
        raise e.to_http_exception()
    return studio


def require_roles(*roles: UserRole) -> Callable[[RequestContext], RequestContext]:
    def checker(context: RequestContext = Depends(get_request_context)) -> RequestContext:
        if not context.has_role(*roles):
            raise ForbiddenException(
                "Insufficient role", code="FORBIDDEN", details={"required": [r.value for r in roles]}
            ).to_http_exception()
        return context

    return checker


require_staff = require_roles(UserRole.ADMIN, UserRole.STAFF)
require_payroll_reporter = require_roles(UserRole.ADMIN, UserRole.STAFF, UserRole.INSTRUCTOR)


def get_schedule_service(db: Session = Depends(get_db)) -> ScheduleService:
    return ScheduleService(db)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(db)


def get_payroll_service(db: Session = Depends(get_db)) -> PayrollService:
    return PayrollService(db)


def get_checkout_service(db: Session = Depends(get_db)) -> CheckoutService:
    return CheckoutService(db)
