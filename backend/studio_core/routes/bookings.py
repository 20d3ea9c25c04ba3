# backend/studio_core/routes/bookings.py
"""
Booking routes.

Customers book for themselves; staff may book or cancel on behalf of a
customer and may skip the health declaration gate.
"""

import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, status

from ..core.enums import UserRole
from ..core.exceptions import DomainException, ForbiddenException
from ..core.request_context import RequestContext
from ..models.studio import Studio
from ..schemas.booking import BookingCreateRequest, BookingResponse
from ..services.booking_service import BookingService
from .dependencies import get_booking_service, get_request_context, get_studio, require_ulid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/studios/{studio_id}/bookings", tags=["bookings"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    raise exc.to_http_exception()


def _resolve_customer_id(context: RequestContext, requested: str | None) -> str:
    if context.is_staff and requested:
        return requested
    if context.has_role(UserRole.CUSTOMER) and context.customer_id:
        if requested and requested != context.customer_id:
            raise ForbiddenException("Cannot book for another customer", code="FORBIDDEN")
        return context.customer_id
    raise ForbiddenException("A customer identity is required", code="FORBIDDEN")


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: BookingCreateRequest,
    studio: Studio = Depends(get_studio),
    context: RequestContext = Depends(get_request_context),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        customer_id = _resolve_customer_id(context, payload.customer_id)
        require_ulid(payload.event_instance_id, "event_instance_id")
        outcome = booking_service.create_booking(
            studio,
            customer_id,
            payload.event_instance_id,
            membership_id=payload.membership_id,
            is_remote=payload.is_remote,
            skip_health_check=payload.skip_health_check and context.is_staff,
        )
        if not outcome.ok:
            raise outcome.to_domain_exception()
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse.model_validate(outcome.value)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: str,
    studio: Studio = Depends(get_studio),
    context: RequestContext = Depends(get_request_context),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        require_ulid(booking_id, "booking_id")
        if not context.is_staff and not context.customer_id:
            raise ForbiddenException("A customer identity is required", code="FORBIDDEN")
        outcome = booking_service.cancel_booking(
            studio,
            booking_id,
            customer_id=None if context.is_staff else context.customer_id,
        )
        if not outcome.ok:
            raise outcome.to_domain_exception()
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse.model_validate(outcome.value)
