"""
Billing API Routes
Billing info, Stripe Checkout sessions and the Stripe webhook
"""

from fastapi import APIRouter, HTTPException, Request, Header, status
from typing import Optional
import logging

from saas_template.models.billing import (
    BillingInfo, CheckoutSessionResult, CreateCheckoutSchema, CreateCreditsCheckoutSchema
)
from saas_template.services.billing_service import BillingService
from saas_template.services.webhook_service import get_webhook_service
from saas_template.utils.dependencies import AuthContextDep
from saas_template.utils.stripe_client import (
    get_stripe_client, event_to_dict, BillingError, WebhookError
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/info", response_model=BillingInfo)
async def get_billing_info(context: AuthContextDep):
    """Current plan, payment method and billing history"""
    return await BillingService.get_billing_info(context)


@router.post("/checkout", response_model=CheckoutSessionResult)
async def create_checkout_session(request_data: CreateCheckoutSchema, context: AuthContextDep):
    """Start a plan upgrade; the browser is sent to the returned url"""
    try:
        return await BillingService.create_checkout_session(context, request_data)
    except BillingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/credits-checkout", response_model=CheckoutSessionResult)
async def create_credits_checkout_session(request_data: CreateCreditsCheckoutSchema, context: AuthContextDep):
    """Start a credit pack purchase"""
    try:
        return await BillingService.create_credits_checkout_session(context, request_data)
    except BillingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/webhook")
async def stripe_webhook(request: Request, stripe_signature: Optional[str] = Header(None)):
    """
    Stripe webhook endpoint

    The raw body is needed for signature verification.
    """
    payload = await request.body()

    try:
        event = get_stripe_client().construct_event(payload, stripe_signature)
    except WebhookError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        result = await get_webhook_service().process_event(event_to_dict(event))
    except Exception as e:
        logger.error(f"Webhook processing failed for {event['id']}: {e}")
        # Non-2xx makes Stripe retry the delivery
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook processing failed"
        )

    return {"received": True, "status": result['status']}
