"""
Protected Pages
Dashboard, alerts, settings, billing and the credits playground
"""

from typing import Optional
import logging

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError

from saas_template.config import get_settings
from saas_template.models.billing import (
    CREDIT_PACKS, CreateCheckoutSchema, CreateCreditsCheckoutSchema, SpendCreditsSchema
)
from saas_template.services.billing_service import BillingService
from saas_template.services.credits_service import get_credits_service, InsufficientCredits
from saas_template.services.dashboard_service import DashboardService
from saas_template.utils.dependencies import CurrentUser, PageContext
from saas_template.utils.stripe_client import BillingError
from saas_template.utils.templating import render, flash

logger = logging.getLogger(__name__)

router = APIRouter()

SETTINGS_SECTIONS = [
    {'slug': 'profile', 'title': 'Profile', 'description': 'Update your personal information and preferences'},
    {'slug': 'security', 'title': 'Security', 'description': 'Manage your account security and authentication'},
    {'slug': 'notifications', 'title': 'Notifications', 'description': 'Configure your notification preferences'},
]

RECENT_TRANSACTIONS = 10

SUCCESS_TOASTS = {
    'plan': ('Subscription updated', 'Thanks for upgrading. Your new plan is being activated.'),
    'credits': ('Credits purchased', 'Your credits will appear in your balance shortly.'),
}


def _see_other(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=303)


@router.get("/app", response_class=HTMLResponse)
async def app_index(request: Request, user: CurrentUser):
    """Quick access to the main areas"""
    return render(request, "app/index.html")


@router.get("/app/dashboard", response_class=HTMLResponse)
async def dashboard(request: Request, context: PageContext):
    stats = await DashboardService.get_dashboard_stats(context)
    return render(request, "app/dashboard.html", {'stats': stats})


@router.get("/alerts", response_class=HTMLResponse)
async def alerts(request: Request, user: CurrentUser):
    return render(request, "app/alerts.html", {'alerts': []})


@router.get("/app/settings", response_class=HTMLResponse)
async def settings_index(request: Request, user: CurrentUser):
    return render(request, "app/settings/index.html", {'sections': SETTINGS_SECTIONS, 'active_section': None})


@router.get("/app/settings/{section}", response_class=HTMLResponse)
async def settings_section(request: Request, section: str, user: CurrentUser):
    if section not in {s['slug'] for s in SETTINGS_SECTIONS}:
        return _see_other("/app/settings")
    return render(
        request,
        f"app/settings/{section}.html",
        {'sections': SETTINGS_SECTIONS, 'active_section': section}
    )


@router.get("/app/billing", response_class=HTMLResponse)
async def billing(request: Request, context: PageContext, success: Optional[str] = None):
    """
    Plan, history and credit packs

    Renders an error card instead of the page when billing info cannot be loaded.
    """
    if success in SUCCESS_TOASTS:
        title, description = SUCCESS_TOASTS[success]
        flash(request, title, description)

    try:
        billing_info = await BillingService.get_billing_info(context)
    except Exception as e:
        logger.error(f"Failed to load billing info for {context.user.id}: {e}")
        return render(request, "app/billing_error.html", {'error_message': str(e)}, status_code=500)

    plan = billing_info.plan
    return render(request, "app/billing.html", {
        'billing': billing_info,
        'next_tier': BillingService.next_tier(plan.name if plan else None),
        'billing_period': 'yearly' if plan and plan.billing_period.lower() == 'yearly' else 'monthly',
        'credit_packs': list(CREDIT_PACKS.values()),
    })


@router.post("/app/billing/checkout")
async def billing_checkout(
    request: Request,
    context: PageContext,
    plan: str = Form(...),
    billing_period: str = Form("monthly"),
):
    """Send the browser to Stripe Checkout for a plan upgrade"""
    app_url = get_settings().app_url

    try:
        checkout_request = CreateCheckoutSchema(
            plan=plan,
            billing_period=billing_period,
            success_url=f"{app_url}/app/billing?success=plan",
            cancel_url=f"{app_url}/app/billing",
        )
        result = await BillingService.create_checkout_session(context, checkout_request)
    except ValidationError:
        flash(request, "Upgrade failed", "Unknown plan or billing period.", "destructive")
        return _see_other("/app/billing")
    except BillingError as e:
        flash(request, "Upgrade failed", str(e), "destructive")
        return _see_other("/app/billing")

    if not result.url:
        flash(request, "Error", "No redirect URL returned.", "destructive")
        return _see_other("/app/billing")

    return _see_other(result.url)


@router.post("/app/billing/credits")
async def billing_credits(
    request: Request,
    context: PageContext,
    pack_size: str = Form(...),
):
    """Send the browser to Stripe Checkout for a credit pack"""
    app_url = get_settings().app_url

    try:
        credits_request = CreateCreditsCheckoutSchema(
            pack_size=pack_size,
            success_url=f"{app_url}/app/billing?success=credits",
            cancel_url=f"{app_url}/app/billing",
        )
        result = await BillingService.create_credits_checkout_session(context, credits_request)
    except ValidationError:
        flash(request, "Purchase failed", "Unknown credit pack.", "destructive")
        return _see_other("/app/billing")
    except BillingError as e:
        flash(request, "Purchase failed", str(e), "destructive")
        return _see_other("/app/billing")

    if not result.url:
        flash(request, "Error", "No redirect URL returned.", "destructive")
        return _see_other("/app/billing")

    return _see_other(result.url)


@router.get("/app/test", response_class=HTMLResponse)
async def credits_test(request: Request, context: PageContext):
    credits = get_credits_service()
    balance = await credits.get_balance(context.user.id)
    transactions = await credits.get_transactions(context.user.id, limit=RECENT_TRANSACTIONS)
    return render(request, "app/test.html", {
        'amount': 1,
        'action': 'test_action',
        'balance': balance,
        'transactions': transactions,
    })


@router.post("/app/test", response_class=HTMLResponse)
async def credits_test_submit(
    request: Request,
    context: PageContext,
    amount: int = Form(1),
    action: str = Form("test_action"),
):
    """Spend credits and show the transaction"""
    credits = get_credits_service()
    result = None
    status_code = 200

    try:
        spend = SpendCreditsSchema(amount=amount, action=action)
        result = await credits.spend(context.user.id, spend.amount, spend.action)
        flash(
            request,
            "Credits Spent Successfully",
            f"Spent {result.credits_spent} credits. Remaining balance: {result.remaining_balance}"
        )
    except ValidationError:
        flash(request, "Error", "Amount must be at least 1 and an action is required.", "destructive")
        status_code = 400
    except InsufficientCredits as e:
        flash(request, "Error", f"Insufficient credits: {e.balance} available.", "destructive")
        status_code = 402

    balance = result.remaining_balance if result else await credits.get_balance(context.user.id)
    transactions = await credits.get_transactions(context.user.id, limit=RECENT_TRANSACTIONS)
    return render(
        request,
        "app/test.html",
        {
            'amount': amount,
            'action': action,
            'balance': balance,
            'result': result,
            'transactions': transactions,
        },
        status_code=status_code
    )


@router.get("/dashboard")
async def dashboard_shortcut(user: CurrentUser):
    return _see_other("/app/dashboard")


@router.get("/settings")
async def settings_shortcut(user: CurrentUser):
    return _see_other("/app/settings")


@router.get("/billing")
async def billing_shortcut(user: CurrentUser):
    return _see_other("/app/billing")
