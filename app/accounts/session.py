"""
SafetyHub Accounts — Session Helpers

The identity provider signs users in; the signed session cookie carries
the resulting user_id. The role is read from the profile on every request
so a role change takes effect immediately.
"""
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from .models import ADMIN_ROLES, MANAGER_ROLES, DEFAULT_ROLE, get_user_role


def session_user(request: Request) -> Optional[str]:
    return request.session.get("user_id")


def session_role(request: Request) -> str:
    user_id = session_user(request)
    if not user_id:
        return DEFAULT_ROLE
    return get_user_role(user_id) or DEFAULT_ROLE


def is_admin(request: Request) -> bool:
    return session_role(request) in ADMIN_ROLES


def is_manager(request: Request) -> bool:
    return session_role(request) in MANAGER_ROLES


def unauthorized() -> JSONResponse:
    return JSONResponse({"ok": False, "error": "Unauthorized - must be logged in"}, status_code=401)


def forbidden(what: str = "admin") -> JSONResponse:
    return JSONResponse({"ok": False, "error": f"Forbidden - {what} access required"}, status_code=403)
