"""
SaaS Template

Server-rendered SaaS starter with Supabase authentication and Stripe billing.
"""

__version__ = "1.0.0"
