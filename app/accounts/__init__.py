"""
SafetyHub Accounts Module
User profiles, roles and the signed session issued after identity-provider sign-in.
"""
from .routes import register_account_routes
from .models import init_accounts_schema

__all__ = [
    "register_account_routes",
    "init_accounts_schema",
]
