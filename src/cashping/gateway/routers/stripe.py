"""Stripe webhook router."""

from __future__ import annotations

from fastapi import APIRouter, Request, status
from fastapi.responses import PlainTextResponse

from cashping.core.errors import PayloadError

from ..dependencies import CoordinatorDep
from ..dispatch import DispatchState
from ..security import SIGNATURE_HEADER

router = APIRouter(tags=["stripe"])

# One body for every rejection so callers cannot tell which check failed.
REJECTED_BODY = "signature verification failed"


@router.post("/stripe-webhook", response_class=PlainTextResponse)
async def stripe_webhook(request: Request, coordinator: CoordinatorDep) -> PlainTextResponse:
    raw_body = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER, "")

    try:
        report = await coordinator.handle(raw_body, signature)
    except PayloadError:
        request.state.webhook_outcome = "invalid_payload"
        return PlainTextResponse(REJECTED_BODY, status_code=status.HTTP_400_BAD_REQUEST)

    # Picked up by the request log in RequestContextMiddleware.
    request.state.webhook_outcome = report.state.value
    request.state.event_type = report.event_type
    if report.record is not None:
        request.state.order_no = report.record.order_no

    if report.state is DispatchState.REJECTED:
        return PlainTextResponse(REJECTED_BODY, status_code=status.HTTP_400_BAD_REQUEST)
    if report.state is DispatchState.IGNORED:
        return PlainTextResponse("ignored")
    return PlainTextResponse("ok")
