"""Square payment link route."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from services.api import metrics
from services.api.dependencies import get_payment_link_service
from services.payments.square import PaymentLinkRequest, SquarePaymentLinkService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Payments"])


@router.post("/create-payment-link")
def create_payment_link(
    request: PaymentLinkRequest,
    service: SquarePaymentLinkService = Depends(get_payment_link_service),
) -> dict:
    """Create a Square quick-pay link for an invoice.

    ## Error Handling

    - Returns 500 if Square credentials are missing or an Application ID
      was configured in place of the access token or location id
    - Returns 400 if amount or name is missing (a zero amount counts as missing)
    - Returns Square's status code with a readable message on vendor errors
    """
    service.validate_configuration()

    if not request.has_required_fields:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields (amount, name)",
        )

    result = service.create_payment_link(request)
    if not result.success:
        metrics.payment_links_created_total.labels(status="failed").inc()
        raise HTTPException(
            status_code=result.status_code or status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=result.error or "Failed to create Square link",
        )

    metrics.payment_links_created_total.labels(status="success").inc()
    logger.info(f"Created payment link {result.link_id} for order {request.order_id}")
    return {"url": result.url, "id": result.link_id}
