"""
SafetyHub Reminders — Monthly Training Expiry Digest

One digest per person listing all of their expiring courses, plus a
summary for every admin, owner and manager.
"""
import datetime
import logging
from typing import Dict, List, Optional

from app.accounts.models import get_users_by_roles, MANAGER_ROLES
from app.messaging.providers import BaseProvider, MessagePayload
from app.training.models import parse_date

from .config import ReminderConfig, build_provider
from .emails import days_until, urgency_for, render_expiry_alert, render_manager_summary
from .engine import (
    EXPIRY_WINDOW_DAYS, run_date, find_expiring_records, group_by_person,
    course_name, resolve_recipient, dispatch,
)

logger = logging.getLogger(__name__)


def build_expiry_summary(records: List[Dict], names: Dict[str, str], today: datetime.date) -> Dict:
    """Counts per urgency band and a per-record breakdown, earliest expiry first."""
    summary = {"urgent": 0, "highPriority": 0, "reminder": 0, "details": []}
    band_keys = {"URGENT": "urgent", "HIGH PRIORITY": "highPriority", "REMINDER": "reminder"}

    for record in records:
        expires_on = parse_date(record["expires_on"])
        days = days_until(expires_on, today)
        summary[band_keys[urgency_for(days)]] += 1
        summary["details"].append({
            "employeeName": names.get(record["user_id"]) or "Unknown User",
            "courseName": course_name(record),
            "expiresOn": expires_on,
            "daysUntilExpiry": days,
        })
    return summary


async def run_monthly_expiry_alerts(
    config: ReminderConfig,
    provider: Optional[BaseProvider] = None,
    now=None,
) -> Dict:
    config.require_delivery()
    provider = provider or build_provider(config)
    today = run_date(now)

    records = find_expiring_records(today)
    if not records:
        return {
            "urgent": 0,
            "highPriority": 0,
            "reminder": 0,
            "totalRecords": 0,
            "userEmailsSent": 0,
            "managerEmailsSent": 0,
            "message": f"No training expiring in next {EXPIRY_WINDOW_DAYS} days",
        }

    grouped = group_by_person(records)
    names: Dict[str, str] = {}
    errors: List[Dict] = []
    user_sent = 0

    # --- Per-person digests ---
    for person_id, person_records in grouped.items():
        profile, problem = resolve_recipient(person_id)
        names[person_id] = (profile or {}).get("full_name") or "Unknown User"
        if problem:
            logger.warning(f"[Reminders] No expiry digest for {person_id}: {problem}")
            errors.append({"personId": person_id, "error": problem})
            continue

        items = []
        for record in person_records:
            expires_on = parse_date(record["expires_on"])
            items.append({
                "course_name": course_name(record),
                "expires_on": expires_on,
                "days_until_expiry": days_until(expires_on, today),
            })

        subject, text, html = render_expiry_alert(names[person_id], items, config.company_name)
        result = await dispatch(provider, MessagePayload(
            to=profile["email"].strip(), subject=subject, body=text, body_html=html,
            metadata={"kind": "expiry_digest", "user_id": person_id},
        ))
        if result.success:
            user_sent += 1
        elif not result.skipped:
            logger.error(f"[Reminders] Expiry digest to {person_id} failed: {result.error}")
            errors.append({"personId": person_id, "error": result.error or "Unknown error"})

    # --- Manager summary ---
    summary = build_expiry_summary(records, names, today)
    manager_sent = 0
    for manager in get_users_by_roles(MANAGER_ROLES):
        email = (manager.get("email") or "").strip()
        if not email:
            logger.warning(f"[Reminders] Manager {manager['user_id']} has no email address")
            errors.append({"personId": manager["user_id"], "error": "No email address on user profile"})
            continue

        subject, text, html = render_manager_summary(
            manager.get("full_name") or "Manager", summary, config.company_name,
        )
        result = await dispatch(provider, MessagePayload(
            to=email, subject=subject, body=text, body_html=html,
            metadata={"kind": "expiry_manager_summary", "user_id": manager["user_id"]},
        ))
        if result.success:
            manager_sent += 1
        elif not result.skipped:
            logger.error(f"[Reminders] Manager summary to {manager['user_id']} failed: {result.error}")
            errors.append({"personId": manager["user_id"], "error": result.error or "Unknown error"})

    logger.info(
        f"[Reminders] Monthly expiry digest: {user_sent} user email(s), "
        f"{manager_sent} manager email(s), {len(errors)} error(s)"
    )

    result = {
        "urgent": summary["urgent"],
        "highPriority": summary["highPriority"],
        "reminder": summary["reminder"],
        "details": [dict(d, expiresOn=d["expiresOn"].isoformat()) for d in summary["details"]],
        "totalRecords": len(records),
        "userEmailsSent": user_sent,
        "managerEmailsSent": manager_sent,
        "message": "Monthly training expiry alerts sent successfully",
    }
    if errors:
        result["errors"] = errors
    return result
