"""
Credits API Routes
"""

from fastapi import APIRouter, HTTPException, status
import logging

from saas_template.models.auth import GetCreditsResponse
from saas_template.models.billing import SpendCreditsSchema, SpendCreditsResult
from saas_template.services.auth_service import AuthService
from saas_template.services.credits_service import get_credits_service, InsufficientCredits
from saas_template.utils.dependencies import AuthContextDep

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=GetCreditsResponse)
async def get_credits(context: AuthContextDep):
    """Credit balance of the signed-in user"""
    result = await AuthService.get_credits(context)
    if result.error:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=result.message)
    return result


@router.post("/spend", response_model=SpendCreditsResult)
async def spend_credits(spend_data: SpendCreditsSchema, context: AuthContextDep):
    """Spend credits on an action"""
    try:
        return await get_credits_service().spend(context.user.id, spend_data.amount, spend_data.action)
    except InsufficientCredits as e:
        raise HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail=f"Insufficient credits: {e.balance} available, {e.requested} requested"
        )
