"""
Billing Service
Plan information and Stripe Checkout for upgrades and credit packs
"""

from typing import Optional
import logging

from saas_template.config import get_settings
from saas_template.models.billing import (
    BillingInfo, PlanInfo, PaymentMethodInfo, BillingHistoryItem,
    CreateCheckoutSchema, CreateCreditsCheckoutSchema, CheckoutSessionResult, CREDIT_PACKS
)
from saas_template.utils.dependencies import AuthContext
from saas_template.utils.stripe_client import get_stripe_client, stripe_metadata, BillingError

logger = logging.getLogger(__name__)

TIER_ORDER = ["free", "pro", "enterprise"]


class BillingService:
    """Billing operations for the signed-in user"""

    @staticmethod
    async def get_billing_info(context: AuthContext) -> BillingInfo:
        """
        Current plan, payment method and history

        Placeholder data until a billing backend is connected.
        """
        logger.debug(f"Billing info requested by {context.user.id} (token length {len(context.access_token)})")

        return BillingInfo(
            plan=PlanInfo(
                name="Pro",
                billing_period="Monthly",
                amount=29,
                next_payment="May 1, 2024",
                status="active",
            ),
            payment_method=PaymentMethodInfo(
                card_last4="4242",
                expiry_date="04/2025",
            ),
            history=[
                BillingHistoryItem(id="1", date="Apr 1, 2024", description="Pro Plan - Monthly", amount=29.0),
                BillingHistoryItem(id="2", date="Mar 1, 2024", description="Pro Plan - Monthly", amount=29.0),
                BillingHistoryItem(id="3", date="Feb 1, 2024", description="Pro Plan - Monthly", amount=29.0),
            ],
        )

    @staticmethod
    def next_tier(plan_name: Optional[str]) -> Optional[str]:
        """The plan an upgrade button offers, None at the top tier"""
        if not plan_name:
            return None
        current = plan_name.lower()
        if current == "enterprise":
            return None
        return "pro" if current == "free" else "enterprise"

    @staticmethod
    async def create_checkout_session(
        context: AuthContext,
        request: CreateCheckoutSchema
    ) -> CheckoutSessionResult:
        """
        Start a subscription upgrade in Stripe Checkout

        Raises:
            BillingError: no price configured for the plan or Stripe failed
        """
        price_id = get_settings().price_id_for(request.plan, request.billing_period)
        if not price_id:
            logger.error(f"No Stripe price configured for {request.plan}/{request.billing_period}")
            raise BillingError(f"The {request.plan} plan is not available for {request.billing_period} billing")

        params = {
            'mode': 'subscription',
            'line_items': [{'price': price_id, 'quantity': 1}],
            'success_url': request.success_url,
            'cancel_url': request.cancel_url,
            'client_reference_id': context.user.id,
            'metadata': stripe_metadata({
                'user_id': context.user.id,
                'kind': 'subscription',
                'plan': request.plan,
                'billing_period': request.billing_period,
            }),
        }
        if context.user.email:
            params['customer_email'] = context.user.email

        session = await get_stripe_client().create_checkout_session(**params)
        logger.info(f"Upgrade checkout for {context.user.id}: {request.plan} {request.billing_period}")
        return CheckoutSessionResult(id=session.id, url=session.url)

    @staticmethod
    async def create_credits_checkout_session(
        context: AuthContext,
        request: CreateCreditsCheckoutSchema
    ) -> CheckoutSessionResult:
        """Start a one-off credit pack purchase in Stripe Checkout"""
        pack = CREDIT_PACKS[request.pack_size]

        params = {
            'mode': 'payment',
            'line_items': [{
                'price_data': {
                    'currency': 'usd',
                    'unit_amount': pack.price_cents,
                    'product_data': {
                        'name': f"{pack.amount} Credits",
                        'description': pack.description,
                    },
                },
                'quantity': 1,
            }],
            'success_url': request.success_url,
            'cancel_url': request.cancel_url,
            'client_reference_id': context.user.id,
            'metadata': stripe_metadata({
                'user_id': context.user.id,
                'kind': 'credits',
                'credits': pack.amount,
                'pack_size': pack.size,
            }),
        }
        if context.user.email:
            params['customer_email'] = context.user.email

        session = await get_stripe_client().create_checkout_session(**params)
        logger.info(f"Credits checkout for {context.user.id}: {pack.size} pack")
        return CheckoutSessionResult(id=session.id, url=session.url)
