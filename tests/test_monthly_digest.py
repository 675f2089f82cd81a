"""
SafetyHub — Monthly Expiry Digest Tests
=======================================
Tests: urgency bands, one digest per person, manager summaries
"""

import asyncio
import datetime

from app.messaging.providers import ProviderResult
from app.reminders.digest import run_monthly_expiry_alerts, build_expiry_summary
from app.reminders.emails import urgency_for, render_expiry_alert
from tests.conftest import TODAY, add_profile, add_expiring_record


def run(config, provider, now=TODAY):
    return asyncio.run(run_monthly_expiry_alerts(config, provider=provider, now=now))


class TestUrgencyBands:

    def test_band_edges(self):
        assert urgency_for(1) == "URGENT"
        assert urgency_for(7) == "URGENT"
        assert urgency_for(8) == "HIGH PRIORITY"
        assert urgency_for(14) == "HIGH PRIORITY"
        assert urgency_for(15) == "REMINDER"
        assert urgency_for(30) == "REMINDER"

    def test_build_summary_counts(self):
        records = [
            {"user_id": "a", "course_name": "One", "expires_on": "2026-03-04"},
            {"user_id": "a", "course_name": "Two", "expires_on": "2026-03-12"},
            {"user_id": "b", "course_name": "Three", "expires_on": "2026-03-25"},
            {"user_id": "c", "course_name": None, "expires_on": "2026-03-26"},
        ]
        summary = build_expiry_summary(records, {"a": "Ann", "b": "Ben"}, TODAY)
        assert (summary["urgent"], summary["highPriority"], summary["reminder"]) == (1, 1, 2)
        assert summary["details"][0]["daysUntilExpiry"] == 3
        assert summary["details"][3]["employeeName"] == "Unknown User"
        assert summary["details"][3]["courseName"] == "Unknown Course"

    def test_alert_subject_uses_most_urgent(self):
        items = [
            {"course_name": "Ladders", "expires_on": datetime.date(2026, 3, 21), "days_until_expiry": 20},
            {"course_name": "First Aid", "expires_on": datetime.date(2026, 3, 6), "days_until_expiry": 5},
        ]
        subject, text, html = render_expiry_alert("Uma", items, "Acme Safety")
        assert subject == "Training Expiry Alert - 5 days remaining"
        assert "URGENT" in text
        assert "Ladders" in html and "First Aid" in html


class TestMonthlyRun:

    def test_one_digest_per_person_plus_managers(self, reminder_config, fake_provider):
        add_profile("u1", "Uma", "uma@example.com")
        add_profile("u2", "Vic", "vic@example.com")
        add_profile("boss", "Bea Boss", "bea@example.com", "owner")
        add_profile("mgr", "Max", "max@example.com", "manager")
        add_expiring_record("u1", "First Aid", 5)
        add_expiring_record("u1", "Forklift", 10)
        add_expiring_record("u2", "Ladders", 20)

        summary = run(reminder_config, fake_provider)

        assert summary["userEmailsSent"] == 2
        assert summary["managerEmailsSent"] == 2
        assert (summary["urgent"], summary["highPriority"], summary["reminder"]) == (1, 1, 1)
        assert summary["totalRecords"] == 3
        assert summary["details"][0] == {
            "employeeName": "Uma",
            "courseName": "First Aid",
            "expiresOn": "2026-03-06",
            "daysUntilExpiry": 5,
        }
        assert "errors" not in summary

        subjects = fake_provider.subjects()
        assert subjects.count("Monthly Training Expiry Summary") == 2
        assert "Training Expiry Alert - 5 days remaining" in subjects
        assert "Training Expiry Alert - 20 days remaining" in subjects

    def test_manager_summary_lists_everyone(self, reminder_config, fake_provider):
        add_profile("u1", "Uma", "uma@example.com")
        add_profile("mgr", "Max", "max@example.com", "manager")
        add_expiring_record("u1", "First Aid", 5)

        run(reminder_config, fake_provider)

        manager_mail = [p for p in fake_provider.sent if p.to == "max@example.com"][0]
        assert "Uma: First Aid" in manager_mail.body
        assert "Urgent (<= 7 days): 1" in manager_mail.body

    def test_failures_recorded_not_fatal(self, reminder_config, fake_provider):
        add_profile("u1", "Uma", "uma@example.com")
        add_profile("u2", "Vic", None)
        add_profile("mgr", "Max", None, "admin")
        add_expiring_record("u1", "First Aid", 5)
        add_expiring_record("u2", "Ladders", 20)
        fake_provider.outcomes["uma@example.com"] = [ProviderResult.fail("bounced")]

        summary = run(reminder_config, fake_provider)

        assert summary["userEmailsSent"] == 0
        assert summary["managerEmailsSent"] == 0
        assert {e["personId"] for e in summary["errors"]} == {"u1", "u2", "mgr"}

    def test_empty(self, reminder_config, fake_provider):
        add_profile("mgr", "Max", "max@example.com", "manager")
        summary = run(reminder_config, fake_provider)
        assert summary["totalRecords"] == 0
        assert summary["message"] == "No training expiring in next 30 days"
        assert fake_provider.sent == []
