"""
Billing schemas

Plan, payment method, history, checkout and credit pack models.
"""

from typing import List, Optional, Literal
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

PlanTier = Literal["pro", "enterprise"]
BillingPeriod = Literal["monthly", "yearly"]
PackSize = Literal["small", "medium", "large"]


class BillingHistoryItem(BaseModel):
    id: str
    date: str
    description: str
    amount: float


class PlanInfo(BaseModel):
    name: str
    billing_period: str
    amount: float
    next_payment: str
    status: str = "active"


class PaymentMethodInfo(BaseModel):
    card_last4: str
    expiry_date: str


class BillingInfo(BaseModel):
    plan: Optional[PlanInfo] = None
    payment_method: Optional[PaymentMethodInfo] = None
    history: List[BillingHistoryItem] = Field(default_factory=list)


class CreditPack(BaseModel):
    size: PackSize
    amount: int
    price: int
    description: str

    @property
    def price_per_credit(self) -> float:
        return self.price / self.amount

    @property
    def price_cents(self) -> int:
        return self.price * 100


CREDIT_PACKS = {
    "small": CreditPack(size="small", amount=100, price=10, description="Basic Pack"),
    "medium": CreditPack(size="medium", amount=550, price=50, description="Most Popular"),
    "large": CreditPack(size="large", amount=1200, price=100, description="Best Value"),
}


class CreateCheckoutSchema(BaseModel):
    """Subscription upgrade request"""
    plan: PlanTier
    billing_period: BillingPeriod = "monthly"
    success_url: str
    cancel_url: str


class CreateCreditsCheckoutSchema(BaseModel):
    """Credit pack purchase request"""
    pack_size: PackSize
    success_url: str
    cancel_url: str


class CheckoutSessionResult(BaseModel):
    id: str
    url: Optional[str] = None


class SpendCreditsSchema(BaseModel):
    amount: int = Field(..., ge=1)
    action: str = Field("test_action", min_length=1, max_length=100)

    @field_validator('action')
    @classmethod
    def strip_action(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Action is required')
        return v


class SpendCreditsResult(BaseModel):
    status: str
    credits_spent: int
    remaining_balance: int
    transaction_id: str
    timestamp: datetime
