"""
SafetyHub Training — API Routes
"""
import logging
import datetime

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.accounts.session import session_user, is_admin, is_manager, unauthorized, forbidden

from .models import (
    init_training_schema, parse_date, add_months,
    get_courses, get_course, create_course, update_course, delete_course,
    get_records, get_record, create_record, update_record, delete_record,
)

logger = logging.getLogger(__name__)


def _bad_request(error: str) -> JSONResponse:
    return JSONResponse({"ok": False, "error": error}, status_code=400)


def _not_found(error: str = "Not found") -> JSONResponse:
    return JSONResponse({"ok": False, "error": error}, status_code=404)


def _validity(value):
    """Return (months, error). Blank means no fixed validity period."""
    if value in (None, ""):
        return None, None
    try:
        months = int(value)
    except (TypeError, ValueError):
        return None, "validity_months must be a whole number"
    if months <= 0:
        return None, "validity_months must be positive"
    return months, None


def _dates(completed_on, expires_on):
    """Parse and cross-check record dates. Returns (completed, expires, error)."""
    try:
        completed = parse_date(completed_on)
        expires = parse_date(expires_on)
    except ValueError:
        return None, None, "Dates must be ISO formatted (YYYY-MM-DD)"
    if completed and expires and expires < completed:
        return None, None, "expires_on cannot be before completed_on"
    return completed, expires, None


def register_training_routes(app: FastAPI):
    """Register training course and record endpoints."""

    init_training_schema()

    # ============================================================
    # COURSES
    # ============================================================

    @app.get("/api/training/courses")
    async def api_get_courses(request: Request):
        if not session_user(request):
            return unauthorized()
        return {"ok": True, "courses": get_courses()}

    @app.post("/api/training/courses")
    async def api_create_course(request: Request):
        if not session_user(request):
            return unauthorized()
        if not is_admin(request):
            return forbidden()

        data = await request.json()
        name = (data.get("name") or "").strip()
        if not name:
            return _bad_request("Course name is required")
        months, err = _validity(data.get("validity_months"))
        if err:
            return _bad_request(err)

        course_id = create_course(name, months)
        logger.info(f"[Training] Course #{course_id} '{name}' created by {session_user(request)}")
        return {"ok": True, "course": get_course(course_id)}

    @app.put("/api/training/courses/{course_id}")
    async def api_update_course(course_id: int, request: Request):
        if not session_user(request):
            return unauthorized()
        if not is_admin(request):
            return forbidden()

        data = await request.json()
        changes = {}
        if "name" in data:
            name = (data.get("name") or "").strip()
            if not name:
                return _bad_request("Course name cannot be blank")
            changes["name"] = name
        if "validity_months" in data:
            months, err = _validity(data.get("validity_months"))
            if err:
                return _bad_request(err)
            changes["validity_months"] = months

        if not update_course(course_id, changes):
            return _not_found("Training course not found")
        return {"ok": True, "course": get_course(course_id)}

    @app.delete("/api/training/courses/{course_id}")
    async def api_delete_course(course_id: int, request: Request):
        if not session_user(request):
            return unauthorized()
        if not is_admin(request):
            return forbidden()
        if not delete_course(course_id):
            return _not_found("Training course not found")
        return {"ok": True}

    # ============================================================
    # RECORDS (owner-scoped)
    # ============================================================

    @app.get("/api/training/records")
    async def api_get_records(request: Request):
        user_id = session_user(request)
        if not user_id:
            return unauthorized()
        return {"ok": True, "records": get_records(user_id)}

    @app.post("/api/training/records")
    async def api_create_record(request: Request):
        user_id = session_user(request)
        if not user_id:
            return unauthorized()

        data = await request.json()
        if not data.get("course_id") or not data.get("completed_on"):
            return _bad_request("Course and completion date are required")

        course = get_course(data["course_id"])
        if not course:
            return _not_found("Training course not found")

        completed, expires, err = _dates(data.get("completed_on"), data.get("expires_on"))
        if err:
            return _bad_request(err)
        if expires is None and course.get("validity_months"):
            expires = add_months(completed, course["validity_months"])

        record_id = create_record(
            user_id, course["id"], completed, expires, data.get("certificate_url") or None,
        )
        return {"ok": True, "record": get_record(record_id), "message": "Training record created successfully"}

    @app.get("/api/training/records/{record_id}")
    async def api_get_record(record_id: int, request: Request):
        user_id = session_user(request)
        if not user_id:
            return unauthorized()
        record = get_record(record_id, user_id)
        if not record:
            return _not_found("Training record not found")
        return {"ok": True, "record": record}

    @app.put("/api/training/records/{record_id}")
    async def api_update_record(record_id: int, request: Request):
        user_id = session_user(request)
        if not user_id:
            return unauthorized()
        current = get_record(record_id, user_id)
        if not current:
            return _not_found("Training record not found")

        data = await request.json()
        changes = {k: data[k] for k in ("completed_on", "expires_on", "certificate_url") if k in data}
        if "completed_on" in changes and not changes["completed_on"]:
            return _bad_request("Completion date is required")
        _, _, err = _dates(
            changes.get("completed_on", current["completed_on"]),
            changes.get("expires_on", current["expires_on"]),
        )
        if err:
            return _bad_request(err)

        update_record(record_id, user_id, changes)
        return {"ok": True, "record": get_record(record_id, user_id)}

    @app.delete("/api/training/records/{record_id}")
    async def api_delete_record(record_id: int, request: Request):
        user_id = session_user(request)
        if not user_id:
            return unauthorized()
        if not delete_record(record_id, user_id):
            return _not_found("Training record not found")
        return {"ok": True}

    # ============================================================
    # EXPIRING (manager view)
    # ============================================================

    @app.get("/api/training/expiring")
    async def api_get_expiring(request: Request):
        if not session_user(request):
            return unauthorized()
        if not is_manager(request):
            return forbidden("manager")

        from app.reminders.engine import find_expiring_records, EXPIRY_WINDOW_DAYS
        records = find_expiring_records(datetime.datetime.now())
        return {"ok": True, "window_days": EXPIRY_WINDOW_DAYS, "records": records}
