"""
SafetyHub Reminders — Email Content

Builds subject, plain-text and HTML bodies for training reminder mail.
"""
import datetime
from html import escape as _h
from typing import Dict, List, Tuple

URGENT_DAYS = 7
HIGH_PRIORITY_DAYS = 14

_URGENCY_STYLE = {
    "URGENT": ("#dc2626", "#fef2f2"),
    "HIGH PRIORITY": ("#f59e0b", "#fef3c7"),
    "REMINDER": ("#3b82f6", "#eff6ff"),
}


def days_until(expires_on: datetime.date, today: datetime.date) -> int:
    return (expires_on - today).days


def urgency_for(days: int) -> str:
    if days <= URGENT_DAYS:
        return "URGENT"
    if days <= HIGH_PRIORITY_DAYS:
        return "HIGH PRIORITY"
    return "REMINDER"


def _plural_days(days: int) -> str:
    return f"{days} day{'' if days == 1 else 's'}"


def _long_date(d: datetime.date) -> str:
    return f"{d.strftime('%B')} {d.day}, {d.year}"


def _short_date(d: datetime.date) -> str:
    return f"{d.strftime('%b')} {d.day}"


def _page(title: str, color: str, heading: str, company: str, content: str, footer: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{_h(title)}</title></head>
<body style="margin:0;padding:0;background:#f9fafb;font-family:-apple-system,'Segoe UI',Roboto,sans-serif;">
  <div style="max-width:600px;margin:0 auto;background:#ffffff;">
    <div style="background:{color};padding:32px 24px;text-align:center;">
      <h1 style="color:#ffffff;margin:0;font-size:24px;">{_h(heading)}</h1>
      <p style="color:#ffffff;margin:8px 0 0;font-size:16px;opacity:0.9;">{_h(company)}</p>
    </div>
    <div style="padding:32px 24px;">
      {content}
      <div style="border-top:1px solid #e5e7eb;padding-top:24px;margin-top:32px;text-align:center;">
        <p style="color:#6b7280;margin:0;font-size:14px;">{_h(footer)}</p>
      </div>
    </div>
  </div>
</body>
</html>"""


# ================================================================
# PER-RECORD REMINDER
# ================================================================

def render_training_reminder(
    full_name: str,
    course: str,
    expires_on: datetime.date,
    link: str,
    company_name: str,
    today: datetime.date,
) -> Tuple[str, str, str]:
    """Return (subject, text, html) for one expiring course."""
    days = days_until(expires_on, today)
    color, bg = _URGENCY_STYLE[urgency_for(days)]
    subject = f"Training Certificate Expiry Reminder - {course}"
    footer = f"This is an automated training reminder from the {company_name} safety management system."

    text = "\n".join([
        "TRAINING CERTIFICATE EXPIRY REMINDER",
        company_name,
        "",
        f"Hi {full_name}, your certificate for {course} is expiring soon.",
        "",
        f"Course: {course}",
        f"Expires: {_long_date(expires_on)}",
        f"Days remaining: {days}",
        "",
        f"View your training records: {link}",
        "",
        footer,
    ])

    content = f"""
      <p style="color:#4b5563;font-size:16px;line-height:1.6;">
        Hi {_h(full_name)}, your certificate for <strong>{_h(course)}</strong> is expiring soon.
      </p>
      <div style="background:{bg};border-left:4px solid {color};padding:16px;margin:24px 0;">
        <p style="margin:0 0 8px;color:#1f2937;"><strong>Course:</strong> {_h(course)}</p>
        <p style="margin:0 0 8px;color:#1f2937;"><strong>Expires:</strong> {_h(_long_date(expires_on))}</p>
        <p style="margin:0;color:{color};font-weight:600;">{_h(_plural_days(days))} remaining</p>
      </div>
      <div style="text-align:center;margin:32px 0;">
        <a href="{_h(link)}" style="background:{color};color:#ffffff;padding:12px 24px;text-decoration:none;border-radius:8px;font-weight:600;">
          View Training Records
        </a>
      </div>"""

    html = _page(subject, color, "Training Certificate Expiry Reminder", company_name, content, footer)
    return subject, text, html


# ================================================================
# MONTHLY DIGEST (one per person)
# ================================================================

def render_expiry_alert(
    full_name: str,
    items: List[Dict],
    company_name: str,
) -> Tuple[str, str, str]:
    """
    Digest of every expiring course for one person. Each item carries
    course_name, expires_on (date) and days_until_expiry. The most urgent
    item drives the subject line and banner colour.
    """
    most_urgent = min(items, key=lambda i: i["days_until_expiry"])
    days = most_urgent["days_until_expiry"]
    urgency = urgency_for(days)
    color, bg = _URGENCY_STYLE[urgency]
    subject = f"Training Expiry Alert - {days} days remaining"
    footer = f"This is an automated training reminder from the {company_name} safety management system."

    text_lines = [
        f"TRAINING EXPIRY ALERT - {urgency}",
        company_name,
        "",
        f"Hi {full_name}, your training certification(s) are expiring soon and require renewal.",
        "",
        f"{urgency} - {_plural_days(days)} remaining",
        "",
        "EXPIRING TRAINING:",
    ]
    for item in items:
        text_lines += [
            f"- {item['course_name']}",
            f"  Expires: {_long_date(item['expires_on'])}",
            f"  Days remaining: {item['days_until_expiry']}",
        ]
    text_lines += [
        "",
        "IMMEDIATE ACTION REQUIRED:",
        "- Schedule renewal training as soon as possible",
        "- Complete training before the expiry date",
        "- Upload new certificates to the system",
    ]
    if days <= URGENT_DAYS:
        text_lines.append(f"- URGENT: Less than {URGENT_DAYS} days remaining!")
    text_lines += ["", footer]

    rows = "".join(
        f"""
        <div style="border:1px solid #e5e7eb;border-radius:6px;padding:16px;margin-bottom:12px;">
          <h4 style="margin:0 0 8px;color:#1f2937;">{_h(item['course_name'])}
            <span style="background:{_URGENCY_STYLE[urgency_for(item['days_until_expiry'])][0]};color:#ffffff;padding:2px 8px;border-radius:4px;font-size:12px;">
              {_h(_plural_days(item['days_until_expiry']))}
            </span>
          </h4>
          <p style="margin:0;color:#6b7280;font-size:14px;">Expires: {_h(_long_date(item['expires_on']))}</p>
        </div>"""
        for item in items
    )
    content = f"""
      <p style="color:#4b5563;font-size:16px;line-height:1.6;">
        Hi {_h(full_name)}, your training certification(s) are expiring soon and require renewal.
      </p>
      <div style="background:{bg};border-left:4px solid {color};padding:16px;margin:24px 0;">
        <h3 style="color:{color};margin:0 0 8px;">{urgency}</h3>
        <p style="color:{color};margin:0;">{_h(_plural_days(days))} remaining</p>
      </div>
      {rows}"""

    html = _page(subject, color, "Training Expiry Alert", company_name, content, footer)
    return subject, "\n".join(text_lines), html


# ================================================================
# MANAGER SUMMARY
# ================================================================

def render_manager_summary(
    manager_name: str,
    summary: Dict,
    company_name: str,
) -> Tuple[str, str, str]:
    subject = "Monthly Training Expiry Summary"
    footer = f"This is an automated monthly training summary from the {company_name} safety management system."

    text_lines = [
        "MONTHLY TRAINING EXPIRY SUMMARY",
        company_name,
        "",
        f"Hi {manager_name}, here's a summary of training certifications expiring in the next 30 days.",
        "",
        "SUMMARY STATISTICS:",
        f"- Urgent (<= {URGENT_DAYS} days): {summary['urgent']}",
        f"- High Priority ({URGENT_DAYS + 1}-{HIGH_PRIORITY_DAYS} days): {summary['highPriority']}",
        f"- Reminder ({HIGH_PRIORITY_DAYS + 1}-30 days): {summary['reminder']}",
        "",
        "TRAINING EXPIRY BREAKDOWN:",
    ]
    for d in summary["details"]:
        text_lines.append(
            f"- {d['employeeName']}: {d['courseName']} "
            f"(expires {_short_date(d['expiresOn'])}, {d['daysUntilExpiry']} days left)"
        )
    if summary["urgent"]:
        text_lines += ["", f"URGENT: Address training expiring within {URGENT_DAYS} days immediately"]
    text_lines += ["", footer]

    rows = "".join(
        f"""
          <tr style="border-bottom:1px solid #e5e7eb;">
            <td style="padding:8px;">{_h(d['employeeName'])}</td>
            <td style="padding:8px;">{_h(d['courseName'])}</td>
            <td style="padding:8px;text-align:center;">{_h(_short_date(d['expiresOn']))}</td>
            <td style="padding:8px;text-align:center;color:{_URGENCY_STYLE[urgency_for(d['daysUntilExpiry'])][0]};font-weight:600;">
              {d['daysUntilExpiry']}
            </td>
          </tr>"""
        for d in summary["details"]
    )
    content = f"""
      <p style="color:#4b5563;font-size:16px;line-height:1.6;">
        Hi {_h(manager_name)}, here's a summary of training certifications expiring in the next 30 days.
      </p>
      <p style="font-size:16px;">
        <strong style="color:#dc2626;">Urgent: {summary['urgent']}</strong> &middot;
        <strong style="color:#f59e0b;">High Priority: {summary['highPriority']}</strong> &middot;
        <strong style="color:#3b82f6;">Reminder: {summary['reminder']}</strong>
      </p>
      <table style="width:100%;border-collapse:collapse;font-size:14px;">
        <thead><tr style="background:#f3f4f6;">
          <th style="padding:8px;text-align:left;">Employee</th>
          <th style="padding:8px;text-align:left;">Training</th>
          <th style="padding:8px;">Expires</th>
          <th style="padding:8px;">Days Left</th>
        </tr></thead>
        <tbody>{rows}</tbody>
      </table>"""

    html = _page(subject, "#f59e0b", subject, company_name, content, footer)
    return subject, "\n".join(text_lines), html
