"""
Credits Service
Redis-backed credit balances with an append-only transaction log
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional
import logging

import redis.asyncio as aioredis

from saas_template.config import get_settings
from saas_template.models.billing import SpendCreditsResult
from saas_template.utils.redis_client import get_redis_client

logger = logging.getLogger(__name__)

MAX_TRANSACTIONS = 100

# Returns the new balance, or -1 when the balance cannot cover the spend
SPEND_SCRIPT = """
local balance = tonumber(redis.call('GET', KEYS[1]) or '0')
local amount = tonumber(ARGV[1])
if balance < amount then
    return -1
end
return redis.call('DECRBY', KEYS[1], amount)
"""


class InsufficientCredits(Exception):
    """Raised when a spend exceeds the available balance"""

    def __init__(self, balance: int, requested: int):
        super().__init__("Insufficient credits")
        self.balance = balance
        self.requested = requested


class CreditsService:
    """Credit ledger keyed by Supabase user id"""

    def __init__(self, redis_client: Optional[aioredis.Redis] = None, initial_credits: Optional[int] = None):
        self._redis = redis_client
        self.initial_credits = (
            initial_credits if initial_credits is not None else get_settings().initial_credits
        )

    @staticmethod
    def balance_key(user_id: str) -> str:
        return f"credits:{user_id}"

    @staticmethod
    def transactions_key(user_id: str) -> str:
        return f"credits:{user_id}:transactions"

    async def _client(self) -> aioredis.Redis:
        if self._redis is None:
            self._redis = await get_redis_client()
        return self._redis

    async def _ensure_account(self, user_id: str) -> None:
        """Seed the balance the first time a user is seen"""
        redis = await self._client()
        created = await redis.set(self.balance_key(user_id), self.initial_credits, nx=True)
        if created:
            logger.info(f"Credits account opened for {user_id} with {self.initial_credits} credits")

    async def _record(self, user_id: str, action: str, amount: int, balance: int) -> Dict:
        transaction = {
            'transaction_id': str(uuid.uuid4()),
            'action': action,
            'amount': amount,
            'balance': balance,
            'timestamp': datetime.now(timezone.utc).isoformat(),
        }
        redis = await self._client()
        key = self.transactions_key(user_id)
        await redis.lpush(key, json.dumps(transaction))
        await redis.ltrim(key, 0, MAX_TRANSACTIONS - 1)
        return transaction

    async def get_balance(self, user_id: str) -> int:
        await self._ensure_account(user_id)
        redis = await self._client()
        value = await redis.get(self.balance_key(user_id))
        return int(value or 0)

    async def spend(self, user_id: str, amount: int, action: str) -> SpendCreditsResult:
        """
        Spend credits atomically

        Args:
            user_id: Supabase user id
            amount: Credits to spend, at least 1
            action: What the credits were spent on

        Returns:
            SpendCreditsResult

        Raises:
            ValueError: amount below 1
            InsufficientCredits: balance lower than amount
        """
        if amount < 1:
            raise ValueError("Amount must be at least 1")

        await self._ensure_account(user_id)
        redis = await self._client()

        remaining = int(await redis.eval(SPEND_SCRIPT, 1, self.balance_key(user_id), amount))
        if remaining < 0:
            balance = await self.get_balance(user_id)
            logger.info(f"Credit spend refused for {user_id}: wanted {amount}, has {balance}")
            raise InsufficientCredits(balance=balance, requested=amount)

        transaction = await self._record(user_id, action, -amount, remaining)
        logger.info(f"User {user_id} spent {amount} credits on {action}, {remaining} left")

        return SpendCreditsResult(
            status="success",
            credits_spent=amount,
            remaining_balance=remaining,
            transaction_id=transaction['transaction_id'],
            timestamp=transaction['timestamp'],
        )

    async def grant(self, user_id: str, amount: int, action: str = "purchase") -> int:
        """Add purchased credits, returns the new balance"""
        if amount < 1:
            raise ValueError("Amount must be at least 1")

        await self._ensure_account(user_id)
        redis = await self._client()
        balance = int(await redis.incrby(self.balance_key(user_id), amount))
        await self._record(user_id, action, amount, balance)
        logger.info(f"Granted {amount} credits to {user_id}, balance {balance}")
        return balance

    async def get_transactions(self, user_id: str, limit: int = 20) -> List[Dict]:
        redis = await self._client()
        raw = await redis.lrange(self.transactions_key(user_id), 0, limit - 1)
        return [json.loads(item) for item in raw]


_credits_service: Optional[CreditsService] = None


def get_credits_service() -> CreditsService:
    """Get credits service instance"""
    global _credits_service
    if _credits_service is None:
        _credits_service = CreditsService()
    return _credits_service
