"""
Webhook Service
Processes verified Stripe events exactly once
"""

from typing import Any, Callable, Dict, Optional, Awaitable
import logging

import redis.asyncio as aioredis

from saas_template.services.credits_service import CreditsService, get_credits_service
from saas_template.utils.redis_client import get_redis_client

logger = logging.getLogger(__name__)

PROCESSED_TTL_SECONDS = 86400 * 7

EventHandler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


class WebhookService:
    """Routes Stripe events to handlers, skipping ones already seen"""

    def __init__(
        self,
        redis_client: Optional[aioredis.Redis] = None,
        credits_service: Optional[CreditsService] = None
    ):
        self._redis = redis_client
        self.credits_service = credits_service
        self.event_handlers: Dict[str, EventHandler] = {
            'checkout.session.completed': self.handle_checkout_completed,
        }

    async def _client(self) -> aioredis.Redis:
        if self._redis is None:
            self._redis = await get_redis_client()
        return self._redis

    def _credits(self) -> CreditsService:
        if self.credits_service is None:
            self.credits_service = get_credits_service()
        return self.credits_service

    @staticmethod
    def processed_key(event_id: str) -> str:
        return f"webhook:processed:{event_id}"

    async def is_event_processed(self, event_id: str) -> bool:
        redis = await self._client()
        return bool(await redis.exists(self.processed_key(event_id)))

    async def mark_event_processed(self, event_id: str) -> None:
        redis = await self._client()
        await redis.setex(self.processed_key(event_id), PROCESSED_TTL_SECONDS, "1")

    async def process_event(self, event) -> Dict[str, Any]:
        """
        Process a verified Stripe event

        Args:
            event: stripe.Event (or any mapping with id, type, data.object)

        Returns:
            dict: processing status
        """
        event_id = event['id']
        event_type = event['type']

        if await self.is_event_processed(event_id):
            logger.info(f"Webhook event already processed: {event_id}")
            return {'status': 'duplicate', 'event_id': event_id}

        handler = self.event_handlers.get(event_type)
        if handler is None:
            logger.debug(f"No handler for webhook event type {event_type}")
            await self.mark_event_processed(event_id)
            return {'status': 'ignored', 'event_id': event_id, 'event_type': event_type}

        result = await handler(event['data']['object'])
        await self.mark_event_processed(event_id)

        logger.info(f"Webhook event processed: {event_id} ({event_type})")
        return {'status': 'success', 'event_id': event_id, 'event_type': event_type, 'result': result}

    async def handle_checkout_completed(self, session: Dict[str, Any]) -> Dict[str, Any]:
        """Grant purchased credits; subscription checkouts are only recorded"""
        metadata = session.get('metadata') or {}
        kind = metadata.get('kind')
        user_id = metadata.get('user_id') or session.get('client_reference_id')

        if kind != 'credits':
            logger.info(f"Checkout completed for {user_id}: {kind or 'unknown'} {metadata.get('plan', '')}".rstrip())
            return {'kind': kind}

        if session.get('payment_status') not in (None, 'paid'):
            logger.warning(f"Credits checkout {session.get('id')} completed without payment")
            return {'kind': kind, 'granted': 0}

        credits = int(metadata.get('credits', 0))
        if not user_id or credits < 1:
            logger.error(f"Credits checkout {session.get('id')} is missing user or credit metadata")
            return {'kind': kind, 'granted': 0}

        balance = await self._credits().grant(user_id, credits, action=f"purchase:{metadata.get('pack_size', 'pack')}")
        return {'kind': kind, 'granted': credits, 'balance': balance}


_webhook_service: Optional[WebhookService] = None


def get_webhook_service() -> WebhookService:
    global _webhook_service
    if _webhook_service is None:
        _webhook_service = WebhookService()
    return _webhook_service
