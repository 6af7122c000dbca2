"""
Stripe Client
Checkout session creation and webhook verification

The stripe library is synchronous; calls run in a worker thread so the
event loop is never blocked on the network.
"""

import asyncio
from typing import Any, Dict, Optional
import logging

import stripe

from saas_template.config import get_settings

logger = logging.getLogger(__name__)


class BillingError(Exception):
    """Raised when a billing operation cannot be completed"""


class WebhookError(Exception):
    """Raised when a webhook payload cannot be trusted"""


class StripeClient:
    """Wrapper for the Stripe API used by billing"""

    def __init__(self, secret_key: str = None, webhook_secret: str = None, api_version: str = None):
        settings = get_settings()
        self.secret_key = secret_key if secret_key is not None else settings.stripe_secret_key
        self.webhook_secret = webhook_secret if webhook_secret is not None else settings.stripe_webhook_secret
        self.api_version = api_version or settings.stripe_api_version

        if self.secret_key:
            stripe.api_key = self.secret_key
            stripe.api_version = self.api_version
            logger.info(f"Stripe client initialized (api_version={self.api_version})")
        else:
            logger.warning("Stripe secret key not found in environment")

    def is_available(self) -> bool:
        return bool(self.secret_key)

    async def create_checkout_session(self, **params: Any) -> stripe.checkout.Session:
        """
        Create a Stripe Checkout session

        Args:
            **params: stripe.checkout.Session.create parameters

        Returns:
            stripe.checkout.Session

        Raises:
            BillingError: Stripe not configured or the API call failed
        """
        if not self.is_available():
            raise BillingError("Billing is not configured")

        try:
            session = await asyncio.to_thread(stripe.checkout.Session.create, **params)
        except stripe.StripeError as e:
            message = getattr(e, 'user_message', None) or str(e)
            logger.error(f"Stripe checkout session error: {message}")
            raise BillingError(message) from e

        logger.info(f"Stripe checkout session created: {session.id} ({params.get('mode')})")
        return session

    def construct_event(self, payload: bytes, signature: Optional[str]) -> stripe.Event:
        """
        Verify webhook signature and construct event

        Raises:
            WebhookError: If signature verification fails
        """
        if not self.webhook_secret:
            raise WebhookError("Webhook secret not configured")
        if not signature:
            raise WebhookError("Missing Stripe-Signature header")

        try:
            return stripe.Webhook.construct_event(
                payload=payload,
                sig_header=signature,
                secret=self.webhook_secret,
            )
        except stripe.SignatureVerificationError as e:
            logger.warning(f"Webhook signature verification failed: {e}")
            raise WebhookError("Invalid webhook signature") from e
        except ValueError as e:
            logger.warning(f"Webhook payload could not be parsed: {e}")
            raise WebhookError("Invalid webhook payload") from e


_stripe_client: Optional[StripeClient] = None


def get_stripe_client() -> StripeClient:
    """Get the shared Stripe client"""
    global _stripe_client
    if _stripe_client is None:
        _stripe_client = StripeClient()
    return _stripe_client


def stripe_metadata(data: Dict[str, Any]) -> Dict[str, str]:
    """Stripe metadata values must be strings"""
    return {key: str(value) for key, value in data.items() if value is not None}


def event_to_dict(event) -> Dict[str, Any]:
    """Plain dict view of a verified stripe.Event, nested objects included"""
    if isinstance(event, dict):
        return event
    return event.to_dict()
