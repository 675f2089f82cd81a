"""
SafetyHub Accounts — API Routes
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .models import (
    ROLES, init_accounts_schema, ensure_user_profile, get_user_profile,
    update_user_profile, set_user_role,
)
from .session import session_user, session_role, is_admin, unauthorized, forbidden

logger = logging.getLogger(__name__)


def register_account_routes(app: FastAPI):
    """Register session and profile endpoints."""

    init_accounts_schema()

    # ============================================================
    # SESSION
    # ============================================================

    @app.post("/api/session/login")
    async def api_session_login(request: Request):
        data = await request.json()
        user_id = (data.get("user_id") or "").strip()
        if not user_id:
            return JSONResponse({"ok": False, "error": "user_id is required"}, status_code=400)

        profile = ensure_user_profile(user_id, data.get("full_name"), data.get("email"))
        request.session["user_id"] = user_id

        if profile["is_new"]:
            logger.info(f"[Accounts] New profile created for {user_id} with role {profile['role']}")
        return {"ok": True, "user_id": user_id, "role": profile["role"], "is_new": profile["is_new"]}

    @app.post("/api/session/logout")
    async def api_session_logout(request: Request):
        request.session.clear()
        return {"ok": True}

    @app.get("/api/session/status")
    async def api_session_status(request: Request):
        user_id = session_user(request)
        if not user_id:
            return {"ok": True, "logged_in": False}
        return {"ok": True, "logged_in": True, "user_id": user_id, "role": session_role(request)}

    # ============================================================
    # PROFILES
    # ============================================================

    @app.get("/api/users/me")
    async def api_get_me(request: Request):
        user_id = session_user(request)
        if not user_id:
            return unauthorized()
        profile = get_user_profile(user_id)
        if not profile:
            return JSONResponse({"ok": False, "error": "Profile not found"}, status_code=404)
        return {"ok": True, "profile": profile}

    @app.put("/api/users/me")
    async def api_update_me(request: Request):
        user_id = session_user(request)
        if not user_id:
            return unauthorized()
        data = await request.json()
        update_user_profile(user_id, data)
        return {"ok": True, "profile": get_user_profile(user_id)}

    @app.put("/api/admin/users/{user_id}/role")
    async def api_set_role(user_id: str, request: Request):
        if not session_user(request):
            return unauthorized()
        if not is_admin(request):
            return forbidden()

        data = await request.json()
        role = data.get("role")
        if role not in ROLES:
            return JSONResponse(
                {"ok": False, "error": f"Invalid role. Must be one of: {', '.join(ROLES)}"},
                status_code=400,
            )
        if not set_user_role(user_id, role):
            return JSONResponse({"ok": False, "error": "User not found"}, status_code=404)

        logger.info(f"[Accounts] {session_user(request)} set role of {user_id} to {role}")
        return {"ok": True, "user_id": user_id, "role": role}
