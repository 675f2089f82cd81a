"""
SafetyHub Reminders — API Routes
"""
import datetime
import logging
from html import escape as _h
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse

from app.accounts.session import session_user, is_admin, unauthorized, forbidden
from app.training.models import parse_date

from .config import ReminderConfig, build_provider
from .digest import run_monthly_expiry_alerts
from .engine import (
    run_training_reminders, find_expiring_records, course_name,
    EXPIRY_WINDOW_DAYS, ReminderQueryError,
)
from .emails import days_until, urgency_for

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Failed to process training reminders"


def _failure(e: Exception) -> JSONResponse:
    return JSONResponse(
        {"success": False, "error": FAILURE_MESSAGE, "details": str(e)},
        status_code=500,
    )


def _cron_rejected() -> JSONResponse:
    return JSONResponse({"error": "Unauthorized cron request"}, status_code=401)


def _timestamp() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


def register_reminder_routes(app: FastAPI):
    """Register the manual and scheduled reminder triggers."""

    @app.get("/api/training/reminders")
    async def api_run_reminders_manual(request: Request):
        try:
            config = ReminderConfig.from_env()
            summary = await run_training_reminders(config, provider=build_provider(config))
        except Exception as e:
            logger.exception("[Reminders] Manual reminder run failed")
            return _failure(e)
        return {"success": True, **summary}

    @app.post("/api/training/reminders")
    async def api_run_reminders_scheduled(request: Request):
        config = ReminderConfig.from_env()
        if not config.cron_authorized(request.headers.get("authorization")):
            logger.warning("[Reminders] Rejected scheduled reminder trigger with bad credentials")
            return _cron_rejected()
        try:
            summary = await run_training_reminders(config, provider=build_provider(config))
        except Exception as e:
            logger.exception("[Reminders] Scheduled reminder run failed")
            return _failure(e)
        return {"success": True, **summary, "timestamp": _timestamp()}

    @app.post("/api/cron/monthly-training-expiry")
    async def api_run_monthly_expiry(request: Request):
        config = ReminderConfig.from_env()
        if not config.cron_authorized(request.headers.get("authorization")):
            logger.warning("[Reminders] Rejected monthly expiry trigger with bad credentials")
            return _cron_rejected()
        try:
            summary = await run_monthly_expiry_alerts(config, provider=build_provider(config))
        except Exception as e:
            logger.exception("[Reminders] Monthly expiry digest failed")
            return _failure(e)
        return {"success": True, **summary, "timestamp": _timestamp()}

    @app.get("/modals/training-reminders", response_class=HTMLResponse)
    async def modal_training_reminders(request: Request):
        if not session_user(request):
            return unauthorized()
        if not is_admin(request):
            return forbidden()
        today = datetime.date.today()
        try:
            records = find_expiring_records(today)
        except ReminderQueryError as e:
            logger.error(f"[Reminders] Reminder preview failed: {e}")
            return _failure(e)
        return _render_reminder_modal(records, today)


def _render_reminder_modal(records, today) -> str:
    """Admin view of what the next reminder run would send."""
    colors = {"URGENT": "#e53e3e", "HIGH PRIORITY": "#dd6b20", "REMINDER": "#3182ce"}
    rows = ""
    for r in records:
        expires_on = parse_date(r["expires_on"])
        days = days_until(expires_on, today)
        band = urgency_for(days)
        rows += f"""<tr>
            <td style="padding:6px 8px;">{_h(r["user_id"])}</td>
            <td style="padding:6px 8px;">{_h(course_name(r))}</td>
            <td style="padding:6px 8px;">{r['expires_on']}</td>
            <td style="padding:6px 8px;text-align:center;color:{colors[band]};">{days}</td>
        </tr>"""

    if not rows:
        rows = f'<tr><td colspan="4" style="padding:12px;color:#a0aec0;text-align:center;">No training records expiring in the next {EXPIRY_WINDOW_DAYS} days</td></tr>'

    return f"""<div class="modal-content" style="background:#1a202c;color:#e2e8f0;padding:20px;border-radius:8px;max-width:800px;">
    <h2 style="margin:0 0 16px;">Training Reminders</h2>
    <table style="width:100%;border-collapse:collapse;font-size:13px;">
        <thead><tr style="border-bottom:1px solid #4a5568;">
            <th style="padding:6px 8px;text-align:left;">User</th>
            <th style="padding:6px 8px;text-align:left;">Course</th>
            <th style="padding:6px 8px;text-align:left;">Expires</th>
            <th style="padding:6px 8px;">Days</th>
        </tr></thead>
        <tbody>{rows}</tbody>
    </table>
    <div style="margin-top:16px;">
        <button onclick="fetch('/api/training/reminders').then(r => r.json()).then(d => alert(d.message || d.error))"
                style="background:#3182ce;color:#fff;border:none;padding:6px 14px;border-radius:4px;cursor:pointer;">
            Send Reminders Now
        </button>
    </div>
</div>"""
