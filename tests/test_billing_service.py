"""
Billing service and Stripe client tests
"""

from types import SimpleNamespace
import pytest
import stripe
from unittest.mock import AsyncMock, MagicMock, patch

from saas_template.models.billing import CreateCheckoutSchema, CreateCreditsCheckoutSchema
from saas_template.services.billing_service import BillingService
from saas_template.utils.stripe_client import (
    StripeClient, BillingError, WebhookError, stripe_metadata
)


@pytest.fixture
def stripe_mock():
    client = MagicMock()
    client.create_checkout_session = AsyncMock(
        return_value=SimpleNamespace(id="cs_test_1", url="https://checkout.stripe.com/c/cs_test_1")
    )
    with patch("saas_template.services.billing_service.get_stripe_client", return_value=client):
        yield client


class TestBillingService:
    @pytest.mark.asyncio
    async def test_billing_info(self, auth_context):
        info = await BillingService.get_billing_info(auth_context)

        assert info.plan.name == "Pro"
        assert info.plan.status == "active"
        assert info.payment_method.card_last4 == "4242"
        assert len(info.history) == 3

    def test_next_tier(self):
        assert BillingService.next_tier("Free") == "pro"
        assert BillingService.next_tier("Pro") == "enterprise"
        assert BillingService.next_tier("Enterprise") is None
        assert BillingService.next_tier(None) is None

    @pytest.mark.asyncio
    async def test_upgrade_checkout(self, auth_context, stripe_mock):
        request = CreateCheckoutSchema(
            plan="pro", billing_period="yearly",
            success_url="http://localhost:8000/app/billing?success=plan",
            cancel_url="http://localhost:8000/app/billing",
        )

        result = await BillingService.create_checkout_session(auth_context, request)

        assert result.url == "https://checkout.stripe.com/c/cs_test_1"
        params = stripe_mock.create_checkout_session.await_args.kwargs
        assert params['mode'] == 'subscription'
        assert params['line_items'] == [{'price': 'price_pro_yearly', 'quantity': 1}]
        assert params['client_reference_id'] == 'user-123'
        assert params['customer_email'] == 'test@example.com'
        assert params['metadata']['kind'] == 'subscription'

    @pytest.mark.asyncio
    async def test_upgrade_without_price(self, auth_context, stripe_mock):
        request = CreateCheckoutSchema(
            plan="enterprise", billing_period="yearly",
            success_url="http://localhost:8000/app/billing", cancel_url="http://localhost:8000/app/billing",
        )

        with pytest.raises(BillingError):
            await BillingService.create_checkout_session(auth_context, request)
        stripe_mock.create_checkout_session.assert_not_called()

    @pytest.mark.asyncio
    async def test_credits_checkout(self, auth_context, stripe_mock):
        request = CreateCreditsCheckoutSchema(
            pack_size="medium",
            success_url="http://localhost:8000/app/billing?success=credits",
            cancel_url="http://localhost:8000/app/billing",
        )

        await BillingService.create_credits_checkout_session(auth_context, request)

        params = stripe_mock.create_checkout_session.await_args.kwargs
        assert params['mode'] == 'payment'
        price_data = params['line_items'][0]['price_data']
        assert price_data['unit_amount'] == 5000
        assert price_data['product_data']['name'] == "550 Credits"
        assert params['metadata'] == {
            'user_id': 'user-123', 'kind': 'credits', 'credits': '550', 'pack_size': 'medium'
        }


class TestStripeClient:
    def test_metadata_values_are_strings(self):
        assert stripe_metadata({'credits': 100, 'skip': None}) == {'credits': '100'}

    @pytest.mark.asyncio
    async def test_checkout_without_key(self):
        client = StripeClient(secret_key="", webhook_secret="")
        with pytest.raises(BillingError, match="not configured"):
            await client.create_checkout_session(mode="payment")

    @pytest.mark.asyncio
    async def test_stripe_error_becomes_billing_error(self):
        client = StripeClient(secret_key="sk_test_123", webhook_secret="whsec_test")
        with patch.object(stripe.checkout.Session, "create", side_effect=stripe.StripeError("Card declined")):
            with pytest.raises(BillingError):
                await client.create_checkout_session(mode="payment")

    def test_webhook_requires_signature(self):
        client = StripeClient(secret_key="sk_test_123", webhook_secret="whsec_test")
        with pytest.raises(WebhookError, match="Missing"):
            client.construct_event(b"{}", None)

    def test_webhook_requires_secret(self):
        client = StripeClient(secret_key="sk_test_123", webhook_secret="")
        with pytest.raises(WebhookError, match="not configured"):
            client.construct_event(b"{}", "t=1,v1=abc")

    def test_webhook_bad_signature(self):
        client = StripeClient(secret_key="sk_test_123", webhook_secret="whsec_test")
        with patch.object(
            stripe.Webhook, "construct_event",
            side_effect=stripe.SignatureVerificationError("No signatures found", "t=1,v1=abc"),
        ):
            with pytest.raises(WebhookError, match="Invalid webhook signature"):
                client.construct_event(b"{}", "t=1,v1=abc")
