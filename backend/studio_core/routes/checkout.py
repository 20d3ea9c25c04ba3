# backend/studio_core/routes/checkout.py
import logging
from typing import NoReturn

from fastapi import APIRouter, Depends

from ..core.enums import UserRole
from ..core.exceptions import DomainException, ForbiddenException
from ..core.request_context import RequestContext
from ..models.studio import Studio
from ..schemas.checkout import CheckoutRequest, CheckoutResponse
from ..services.checkout_service import CheckoutService
from .dependencies import get_checkout_service, get_request_context, get_studio

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/studios/{studio_id}/checkout", tags=["checkout"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    raise exc.to_http_exception()


@router.post("", response_model=CheckoutResponse)
def checkout(
    payload: CheckoutRequest,
    studio: Studio = Depends(get_studio),
    context: RequestContext = Depends(get_request_context),
    checkout_service: CheckoutService = Depends(get_checkout_service),
) -> CheckoutResponse:
    try:
        if not context.has_role(UserRole.CUSTOMER) or not context.customer_id:
            raise ForbiddenException("A customer identity is required", code="FORBIDDEN")
        outcome = checkout_service.checkout(
            studio, context.customer_id, payload.plan_id, payload.coupon_code
        )
        if not outcome.ok:
            raise outcome.to_domain_exception()
    except DomainException as e:
        handle_domain_exception(e)
    return CheckoutResponse.model_validate(outcome.value)
