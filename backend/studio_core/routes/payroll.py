# backend/studio_core/routes/payroll.py
import logging
from typing import NoReturn

from fastapi import APIRouter, Depends

from ..core.exceptions import DomainException
from ..core.request_context import RequestContext
from ..models.studio import Studio
from ..schemas.payroll import PayrollEntryResponse, PayrollReportRequest
from ..services.payroll_service import PayrollService
from .dependencies import get_payroll_service, get_studio, require_payroll_reporter, require_ulid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/studios/{studio_id}/payroll", tags=["payroll"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    raise exc.to_http_exception()


@router.post("", response_model=PayrollEntryResponse)
def report_session(
    payload: PayrollReportRequest,
    studio: Studio = Depends(get_studio),
    context: RequestContext = Depends(require_payroll_reporter),
    payroll_service: PayrollService = Depends(get_payroll_service),
) -> PayrollEntryResponse:
    """Record (or refresh) the instructor payroll entry for a session."""
    try:
        require_ulid(payload.event_instance_id, "event_instance_id")
        entry = payroll_service.report_session(studio, payload.event_instance_id, context.user_id)
    except DomainException as e:
        handle_domain_exception(e)
    return PayrollEntryResponse.model_validate(entry)
