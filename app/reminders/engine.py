"""
SafetyHub Reminders — Training Expiry Engine

Finds training records that lapse within the next 30 days, groups them by
person and sends one reminder per expiring record. Read-only against the
database: every run recomputes everything and nothing is marked as sent,
so a second run inside the window sends again.
"""
import sqlite3
import datetime
import logging
from typing import Dict, List, Optional, Tuple

from app.accounts.models import get_user_profile
from app.messaging.providers import BaseProvider, MessagePayload, ProviderResult
from app.training.models import get_records_expiring_between, parse_date

from .config import ReminderConfig, build_provider
from .emails import render_training_reminder

logger = logging.getLogger(__name__)

EXPIRY_WINDOW_DAYS = 30
NO_RECORDS_MESSAGE = f"No training records expiring in the next {EXPIRY_WINDOW_DAYS} days"


class ReminderQueryError(RuntimeError):
    """The expiring-records query failed; the run cannot continue."""


def run_date(now=None) -> datetime.date:
    if now is None:
        return datetime.date.today()
    if isinstance(now, datetime.datetime):
        return now.date()
    return now


def expiry_window(now=None) -> Tuple[datetime.date, datetime.date]:
    """(today, last day included). Records expiring today are already due and excluded."""
    today = run_date(now)
    return today, today + datetime.timedelta(days=EXPIRY_WINDOW_DAYS)


def find_expiring_records(now=None) -> List[Dict]:
    """Records with today < expires_on <= today + 30 days, earliest expiry first."""
    today, until = expiry_window(now)
    try:
        return get_records_expiring_between(today, until)
    except sqlite3.Error as e:
        raise ReminderQueryError(f"Database error: {e}") from e


def group_by_person(records: List[Dict]) -> Dict[str, List[Dict]]:
    """Person id -> that person's records, keeping input order within each group."""
    grouped: Dict[str, List[Dict]] = {}
    for record in records:
        grouped.setdefault(record["user_id"], []).append(record)
    return grouped


def course_name(record: Dict) -> str:
    return record.get("course_name") or "Unknown Course"


def resolve_recipient(person_id: str) -> Tuple[Optional[Dict], Optional[str]]:
    """
    Look up the person's profile. Returns (profile, problem); problem is set
    when there is no deliverable email address, in which case nothing may be
    sent to this person.
    """
    try:
        profile = get_user_profile(person_id)
    except sqlite3.Error as e:
        return None, f"Profile lookup failed: {e}"
    if not profile:
        return None, "User profile not found"
    if not (profile.get("email") or "").strip():
        return profile, "No email address on user profile"
    return profile, None


async def dispatch(provider: BaseProvider, payload: MessagePayload) -> ProviderResult:
    """One send attempt. A provider that raises is reported as a failed result."""
    try:
        return await provider.send(payload)
    except Exception as e:
        logger.exception(f"[Reminders] Provider {provider.channel} raised sending to {payload.to}")
        return ProviderResult.fail(str(e) or e.__class__.__name__)


async def send_training_reminder(
    provider: BaseProvider,
    config: ReminderConfig,
    profile: Dict,
    record: Dict,
    today: datetime.date,
) -> ProviderResult:
    subject, text, html = render_training_reminder(
        full_name=profile.get("full_name") or "there",
        course=course_name(record),
        expires_on=parse_date(record["expires_on"]),
        link=config.training_link,
        company_name=config.company_name,
        today=today,
    )
    payload = MessagePayload(
        to=profile["email"].strip(),
        subject=subject,
        body=text,
        body_html=html,
        metadata={"kind": "training_reminder", "record_id": record.get("id")},
    )
    return await dispatch(provider, payload)


async def run_training_reminders(
    config: ReminderConfig,
    provider: Optional[BaseProvider] = None,
    now=None,
) -> Dict:
    """
    Run one reminder pass and return the summary.

    Raises ConfigurationError before touching the database when email is not
    configured, and ReminderQueryError when the query fails. Everything after
    the query is absorbed into the summary's errors list.
    """
    config.require_delivery()
    provider = provider or build_provider(config)
    today = run_date(now)

    records = find_expiring_records(today)
    if not records:
        logger.info(f"[Reminders] {NO_RECORDS_MESSAGE}")
        return {
            "notificationsSent": 0,
            "notificationsSkipped": 0,
            "totalRecords": 0,
            "totalUsers": 0,
            "message": NO_RECORDS_MESSAGE,
        }

    grouped = group_by_person(records)
    logger.info(f"[Reminders] {len(records)} expiring record(s) across {len(grouped)} user(s)")

    sent = 0
    skipped = 0
    errors: List[Dict] = []

    for person_id, person_records in grouped.items():
        profile, problem = resolve_recipient(person_id)
        if problem:
            logger.warning(f"[Reminders] Skipping {len(person_records)} reminder(s) for {person_id}: {problem}")
            errors.extend(
                {"personId": person_id, "course": course_name(r), "error": problem}
                for r in person_records
            )
            continue

        for record in person_records:
            course = course_name(record)
            result = await send_training_reminder(provider, config, profile, record, today)

            if result.success:
                sent += 1
                logger.info(f"[Reminders] Training reminder sent to {person_id} for {course}")
            elif result.skipped:
                skipped += 1
                logger.info(f"[Reminders] Email skipped for {person_id} ({course}): {result.reason}")
            else:
                logger.error(f"[Reminders] Failed to send reminder to {person_id} for {course}: {result.error}")
                errors.append({
                    "personId": person_id,
                    "course": course,
                    "error": result.error or "Unknown error",
                })

    summary = {
        "notificationsSent": sent,
        "notificationsSkipped": skipped,
        "totalRecords": len(records),
        "totalUsers": len(grouped),
        "message": f"Sent {sent} training reminder notifications",
    }
    if errors:
        summary["errors"] = errors
    return summary
